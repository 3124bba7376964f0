# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

from .config import CFG


def is_debug_mode() -> bool:
    """Check whether the debug mode is enabled in the environment."""
    return os.environ.get(CFG.env_vars.debug_mode) is not None


def get_logger(name: str, show_time: bool = False) -> logging.Logger:
    """
    Return a logger writing colored records to stderr through rich.

    Repeated calls for the same name return the same logger without
    attaching another handler. In debug mode, debug records and timestamps
    are shown as well.
    """
    logger = logging.getLogger(name)
    level = logging.DEBUG if is_debug_mode() else logging.INFO
    logger.setLevel(level)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            show_path=False,
            show_time=show_time or is_debug_mode(),
            log_time_format=CFG.date_formats.standard,
        )
        handler.setLevel(level)
        logger.addHandler(handler)

    logger.propagate = False
    return logger
