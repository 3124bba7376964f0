# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


import os
from abc import ABCMeta

from be_lib.core.common import equals_normalized
from be_lib.core.config import CFG
from be_lib.core.error import BEError
from be_lib.core.logger import get_logger

from .interface import BatchAdapter

logger = get_logger(__name__)


class AdapterMeta(ABCMeta):
    """
    Metaclass keeping the registry of backend adapters and selecting one of them.
    """

    # registry of supported backends
    _registry: dict[str, type[BatchAdapter]] = {}

    def __str__(cls: type[BatchAdapter]):
        return cls.envName()

    @classmethod
    def register(mcs, adapter_cls: type[BatchAdapter]):
        mcs._registry[adapter_cls.envName()] = adapter_cls

    @classmethod
    def fromStr(mcs, name: str) -> type[BatchAdapter]:
        """
        Return the adapter class registered with the given name.

        The name is matched ignoring case, hyphens, and underscores.

        Raises:
            BEError: If no class is registered for the given name.
        """
        for registered, adapter in mcs._registry.items():
            if equals_normalized(registered, name.strip()):
                return adapter

        raise BEError(f"No backend registered as '{name}'.")

    @classmethod
    def guess(mcs) -> type[BatchAdapter]:
        """
        Return the first registered adapter whose backend is available on this host.

        Adapters are tried in the order of registration, so the direct backend,
        which is always available, is only selected if no scheduler is found.

        Raises:
            BEError: If no registered backend is available.
        """
        if adapter := next((a for a in mcs._registry.values() if a.isAvailable()), None):
            logger.debug(f"Guessed backend: {adapter}.")
            return adapter

        raise BEError("Could not guess a backend. No registered backend available.")

    @classmethod
    def fromEnvVarOrGuess(mcs) -> type[BatchAdapter]:
        # the environment variable takes precedence over detection
        if name := os.environ.get(CFG.env_vars.backend):
            logger.debug(f"Backend '{name}' selected by {CFG.env_vars.backend}.")
            return mcs.fromStr(name)

        return mcs.guess()

    @classmethod
    def obtain(mcs, name: str | None) -> type[BatchAdapter]:
        """
        Select an adapter by its name or, if no name is given, by
        `fromEnvVarOrGuess`.

        Raises:
            BEError: If no suitable adapter can be obtained.
        """
        return mcs.fromStr(name) if name else mcs.fromEnvVarOrGuess()


def batch_adapter(cls: type[BatchAdapter]) -> type[BatchAdapter]:
    """
    Class decorator registering a backend adapter in `AdapterMeta`.
    """
    AdapterMeta.register(cls)
    return cls
