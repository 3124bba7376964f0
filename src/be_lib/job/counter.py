# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import threading


class JobCreationCounter:
    """
    Thread-safe, strictly increasing counter numbering the jobs created in a process.

    The counter is passed explicitly into every `Job`. Jobs sharing a counter
    obtain strictly increasing creation numbers in the order they were created.
    """

    def __init__(self, start: int = 0):
        self._value = start
        self._lock = threading.Lock()

    def next(self) -> int:
        """Increment the counter and return the new value."""
        with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        """The last value handed out."""
        with self._lock:
            return self._value
