# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
General utility functions for batcheuphoria.

This module provides helpers for working with time durations, YAML output,
string normalization, scheduler output lines, user prompts, and panel layout.
"""

import re
from datetime import timedelta
from functools import lru_cache

import readchar
import yaml
from rich.console import Console
from rich.live import Live
from rich.text import Text

from .error import BEError
from .logger import get_logger

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def load_yaml_dumper() -> type[yaml.Dumper]:
    """Return the fastest available YAML dumper (CDumper if possible)."""
    try:
        from yaml import CDumper as Dumper  # type: ignore[attr-defined]

        logger.debug("Loaded YAML CDumper.")
    except ImportError:
        from yaml import Dumper

        logger.debug("Loaded default YAML dumper.")
    return Dumper


def yes_or_no_prompt(prompt: str) -> bool:
    """
    Display an interactive yes/no prompt to the user and return the selection.

    The prompt highlights the pressed key ('y' in green for yes, 'N' in red for no)
    and defaults to 'No' if the user presses any key other than 'y'.

    Args:
        prompt (str): The text to display as the question.

    Returns:
        bool: True if the user selects 'yes' (presses 'y'), False otherwise.
    """
    prompt = f"   {prompt} "
    text = (
        Text("PROMPT", style="magenta")
        + Text(prompt, style="default")
        + Text("[y/N]", style="bold default")
    )

    with Live(text, refresh_per_second=1) as live:
        key = readchar.readkey().lower()

        # highlight the pressed key
        if key == "y":
            choice = (
                Text("[", style="bold default")
                + Text("y", style="bold green")
                + Text("/N]", style="bold default")
            )
        else:
            choice = (
                Text("[y/", style="bold default")
                + Text("N", style="bold red")
                + Text("]", style="bold default")
            )

        live.update(
            Text("PROMPT", style="magenta") + Text(prompt, style="default") + choice
        )

    return key == "y"


_HHMMSS = re.compile(r"\s*(\d+):([0-5]?\d):([0-5]?\d)\s*")
_WDHMS = re.compile(r"\s*(?:\d+\s*[wdhms]\s*)+", re.IGNORECASE)
_WDHMS_TOKEN = re.compile(r"(\d+)\s*([wdhms])", re.IGNORECASE)
_WDHMS_UNITS = {"w": "weeks", "d": "days", "h": "hours", "m": "minutes", "s": "seconds"}


def hhmmss_to_duration(timestr: str) -> timedelta:
    """Convert `H:MM:SS` (any number of hour digits) to a timedelta."""
    if not (match := _HHMMSS.fullmatch(timestr)):
        raise BEError(f"Invalid HH:MM:SS time string '{timestr}'.")

    hours, minutes, seconds = map(int, match.groups())
    return timedelta(hours=hours, minutes=minutes, seconds=seconds)


def wdhms_to_duration(timestr: str) -> timedelta:
    # e.g. "1w2d", "90m", "1d 2h 30s"; repeated units are summed
    if not _WDHMS.fullmatch(timestr):
        raise BEError(f"Invalid time string '{timestr}'.")

    kwargs = dict.fromkeys(_WDHMS_UNITS.values(), 0)
    for value, unit in _WDHMS_TOKEN.findall(timestr):
        kwargs[_WDHMS_UNITS[unit.lower()]] += int(value)

    return timedelta(**kwargs)


def parse_duration(timestr: str) -> timedelta:
    """
    Parse a walltime written either as `(H)HH:MM:SS` or as `1d2h30m`.

    Raises:
        BEError: If the string is in neither of the supported formats.
    """
    if ":" in timestr:
        return hhmmss_to_duration(timestr)

    return wdhms_to_duration(timestr)


def duration_to_hhmmss(td: timedelta) -> str:
    """
    Format a timedelta as (H)HH:MM:SS, accumulating days into hours.

    Examples:
        0:30:00          -> "00:30:00"
        1 day, 2:03:04   -> "26:03:04"
    """
    hours, remainder = divmod(int(td.total_seconds()), 3600)
    minutes, seconds = divmod(remainder, 60)

    return f"{hours:02}:{minutes:02}:{seconds:02}"


def duration_to_hhmm(td: timedelta) -> str:
    """
    Format a timedelta as (H)HH:MM, accumulating days into hours.
    Seconds are rounded up to the next full minute.

    Examples:
        0:30:00   -> "00:30"
        0:30:01   -> "00:31"
        50:00:00  -> "50:00"
    """
    total_minutes, seconds = divmod(int(td.total_seconds()), 60)
    if seconds:
        total_minutes += 1
    hours, minutes = divmod(total_minutes, 60)

    return f"{hours:02}:{minutes:02}"


def collapse_whitespace(line: str) -> str:
    """
    Strip a line and replace every run of whitespace inside it with a single space.

    Args:
        line (str): The line to normalize.

    Returns:
        str: The normalized line.
    """
    return re.sub(r"\s+", " ", line).strip()


def starts_with_job_number(line: str) -> bool:
    """
    Check whether a line of scheduler output starts with a numeric job identifier.

    Header lines, separators, and empty lines do not.

    Args:
        line (str): Line of scheduler output.

    Returns:
        bool: True if the line starts with at least one digit, False otherwise.
    """
    return re.match(r"^\s*\d+", line) is not None


def split_job_ids(string: str | None) -> list[str]:
    """Split job identifiers separated by colons, commas, or whitespace."""
    if not string:
        return []

    return [x for x in re.split(r"[:,\s]+", string) if x]


def parse_key_value(string: str) -> tuple[str, str]:
    """
    Split a `KEY=VALUE` string into the key and the value.

    Raises:
        BEError: If the string does not contain `=` or the key is empty.
    """
    key, sep, value = string.partition("=")
    if not sep or not key.strip():
        raise BEError(f"Could not parse '{string}': expected KEY=VALUE.")

    return key.strip(), value


def equals_normalized(a: str, b: str) -> bool:
    """
    Compare two names ignoring case, hyphens, and underscores
    (`direct`, `Direct`, and `di_rect` are all equal).
    """

    def strip(s: str) -> str:
        return re.sub(r"[-_]", "", s).lower()

    return strip(a) == strip(b)


def get_panel_width(
    console: Console, factor: int, min_width: int | None, max_width: int | None
) -> int:
    """
    Width of a panel occupying `1/factor` of the terminal, clamped to the optional bounds.
    """
    width = console.size.width // factor
    if min_width is not None:
        width = max(width, min_width)
    if max_width is not None:
        width = min(width, max_width)

    return width
