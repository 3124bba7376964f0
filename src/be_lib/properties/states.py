# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from enum import Enum
from typing import Self


class JobState(Enum):
    """
    Canonical state of a job, independent of the backend that runs it.
    """

    UNSTARTED = 1
    HOLD = 2
    QUEUED = 3
    RUNNING = 4
    COMPLETED_SUCCESSFUL = 5
    COMPLETED_UNKNOWN = 6
    FAILED = 7
    ABORTED = 8
    UNKNOWN = 9
    # reported by the backend, but not recognized
    UNKNOWN_SUBMITTED = 10

    def __str__(self) -> str:
        """
        Return the human-readable string representation of the state.

        Returns:
            str: Lowercase string with underscores replaced by spaces.
        """
        return self.name.lower().replace("_", " ")

    @classmethod
    def fromStr(cls, s: str) -> Self:
        """
        Convert a string to the corresponding JobState enum variant.

        Args:
            s (str): String representation of the state (case-insensitive,
                spaces and underscores are interchangeable).

        Returns:
            JobState: Corresponding enum variant. Returns UNKNOWN if no match is found.
        """
        try:
            return cls[s.strip().upper().replace(" ", "_")]
        except KeyError:
            return cls.UNKNOWN

    def isTerminal(self) -> bool:
        """
        Check whether the state is terminal.

        Terminal states are never overwritten by status synchronization.
        """
        return self in {
            JobState.FAILED,
            JobState.COMPLETED_SUCCESSFUL,
            JobState.ABORTED,
        }

    def isFinished(self) -> bool:
        """
        Check whether the job has ended, including jobs whose outcome is not known.
        """
        return self.isTerminal() or self == JobState.COMPLETED_UNKNOWN

    def isPlannedOrRunning(self) -> bool:
        """Check whether the job is held, queued, or running."""
        return self in {JobState.HOLD, JobState.QUEUED, JobState.RUNNING}

    def isAcceptableParentState(self) -> bool:
        """
        Check whether a child job may be executed directly if its parent is in this state.
        """
        return self in {JobState.COMPLETED_SUCCESSFUL, JobState.UNKNOWN}

    @property
    def color(self) -> str:
        """
        Return the display color associated with this JobState.

        Returns:
            str: A string representing the color for presentation purposes.
        """
        return {
            self.UNSTARTED: "grey70",
            self.HOLD: "bright_magenta",
            self.QUEUED: "bright_magenta",
            self.RUNNING: "bright_blue",
            self.COMPLETED_SUCCESSFUL: "bright_green",
            self.COMPLETED_UNKNOWN: "green",
            self.FAILED: "bright_red",
            self.ABORTED: "bright_red",
            self.UNKNOWN: "grey70",
            self.UNKNOWN_SUBMITTED: "bright_yellow",
        }[self]
