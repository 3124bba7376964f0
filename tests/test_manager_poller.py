# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import time
from unittest.mock import MagicMock, patch

from be_lib.core.error import BEError
from be_lib.manager.poller import StatusPoller


def test_poller_calls_update_periodically():
    update = MagicMock()
    poller = StatusPoller(update, 0.01)

    poller.start()
    time.sleep(0.2)
    poller.stop(timeout=1)

    assert update.call_count >= 2
    assert not poller.isRunning()


def test_poller_stops_promptly_with_long_interval():
    update = MagicMock()
    poller = StatusPoller(update, 3600)

    poller.start()
    assert poller.isRunning()

    start = time.monotonic()
    poller.stop(timeout=5)

    assert time.monotonic() - start < 5
    assert not poller.isRunning()
    update.assert_not_called()


def test_poller_survives_failing_update():
    update = MagicMock(side_effect=BEError("backend unreachable"))
    poller = StatusPoller(update, 0.01)

    poller.start()
    time.sleep(0.1)

    assert poller.isRunning()
    assert update.call_count >= 2

    poller.stop(timeout=1)


def test_poller_start_twice_uses_one_thread():
    poller = StatusPoller(MagicMock(), 3600)

    poller.start()
    thread = poller._thread
    poller.start()

    assert poller._thread is thread
    poller.stop(timeout=1)


def test_poller_survives_unexpected_error():
    update = MagicMock(side_effect=ValueError("unparseable status line"))
    poller = StatusPoller(update, 0.01)

    with patch("be_lib.manager.poller.logger.warning") as warning:
        poller.start()
        time.sleep(0.1)

        assert poller.isRunning()
        assert update.call_count >= 2
        assert warning.call_count >= 2
        assert warning.call_args.kwargs["exc_info"] is True

        poller.stop(timeout=1)
