# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Backend-native rendering of resource requests.

`ProcessingParameters` is an ordered multimap of command-line options
to their values. Backends produce it from a `ResourceSet` or parse it from
option strings (e.g. the `#BSUB` or `#PBS` directives of a job script) and
render it into the fragments of a submission command.
"""

import shlex
from dataclasses import dataclass, field
from typing import Self

from be_lib.core.error import BEError


@dataclass
class ProcessingParameters:
    """
    Ordered mapping of options to the values they were given.

    An option may occur several times (e.g. `-l mem=1gb -l walltime=1:00:00`);
    options without a value are flags.
    """

    parameters: dict[str, list[str | None]] = field(default_factory=dict)

    def add(self, option: str, value: str | None = None) -> Self:
        """
        Append a value for the specified option.

        Args:
            option (str): The option, including its leading dash(es).
            value (str | None): Value of the option. None for flags.

        Returns:
            Self: This object, to allow chaining.
        """
        self.parameters.setdefault(option, []).append(value)
        return self

    def get(self, option: str) -> list[str | None]:
        """Return all values given for the option (empty list if the option is not set)."""
        return list(self.parameters.get(option, []))

    def isEmpty(self) -> bool:
        return not self.parameters

    def merge(self, *others: "ProcessingParameters") -> "ProcessingParameters":
        """
        Combine this object with other processing parameters into a new object.

        Values of options occurring in several objects are concatenated in order.
        """
        merged = ProcessingParameters()
        for params in (self, *others):
            for option, values in params.parameters.items():
                for value in values:
                    merged.add(option, value)

        return merged

    def toFragments(self) -> list[str]:
        """
        Render the parameters into a list of command-line fragments, one per value.

        Returns:
            list[str]: Fragments such as `-q short` or `-H`.
        """
        fragments = []
        for option, values in self.parameters.items():
            for value in values:
                fragments.append(
                    option if value is None else f"{option} {shlex.quote(value)}"
                )

        return fragments

    def toStr(self) -> str:
        """Render the parameters into a single string."""
        return " ".join(self.toFragments())

    def __len__(self) -> int:
        return sum(len(values) for values in self.parameters.values())

    @classmethod
    def fromStr(cls, raw: str) -> Self:
        """
        Parse an option string into processing parameters.

        Tokens starting with a dash are options; a following token that does not
        start with a dash is the value of the preceding option.

        Args:
            raw (str): Option string, e.g. `-q short -M 1024 -x`.

        Returns:
            ProcessingParameters: The parsed parameters.

        Raises:
            BEError: If the string cannot be tokenized or contains a value without an option.
        """
        try:
            tokens = shlex.split(raw)
        except ValueError as e:
            raise BEError(f"Could not parse processing parameters '{raw}': {e}.") from e

        params = cls()
        option = None
        for token in tokens:
            if token.startswith("-"):
                if option is not None:
                    params.add(option)
                option = token
                continue

            if option is None:
                raise BEError(
                    f"Could not parse processing parameters '{raw}': value '{token}' does not belong to any option."
                )
            params.add(option, token)
            option = None

        if option is not None:
            params.add(option)

        return params
