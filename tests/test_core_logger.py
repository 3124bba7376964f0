# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import io
import logging

from rich.console import Console
from rich.logging import RichHandler

from be_lib.core.logger import CFG, get_logger, is_debug_mode


def test_logger_debug_mode(monkeypatch):
    monkeypatch.setenv(CFG.env_vars.debug_mode, "1")

    assert is_debug_mode()
    assert get_logger("test_debug").level == logging.DEBUG


def test_logger_non_debug_mode(monkeypatch):
    monkeypatch.delenv(CFG.env_vars.debug_mode, raising=False)

    assert not is_debug_mode()
    assert get_logger("test_info").level == logging.INFO


def test_logger_attaches_single_handler():
    logger = get_logger("test_single_handler")
    get_logger("test_single_handler")

    assert len([h for h in logger.handlers if isinstance(h, RichHandler)]) == 1
    assert not logger.propagate


def test_logger_writes_message(monkeypatch):
    monkeypatch.delenv(CFG.env_vars.debug_mode, raising=False)
    buf = io.StringIO()
    monkeypatch.setitem(
        get_logger.__globals__,
        "Console",
        lambda **kwargs: Console(file=buf, force_terminal=False, width=200),
    )

    name = "test_logger_writes_message"
    logging.getLogger(name).handlers.clear()
    logger = get_logger(name)
    logger.info("hello there")
    logger.debug("not shown")

    output = buf.getvalue()
    assert "hello there" in output
    assert "INFO" in output
    assert "not shown" not in output
