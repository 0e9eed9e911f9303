"""
Exceptions that are used throughout
"""

from __future__ import annotations

from pathlib import Path


class MalformedInputError(ValueError):
    """
    Raised when the input can't be turned into observations

    The whole batch is rejected, no records are silently dropped.
    """

    def __init__(self, problem: str, source: str | Path | None = None) -> None:
        """
        Initialise the error

        Parameters
        ----------
        problem
            Description of what is wrong with the input

        source
            Where the input came from, if known
        """
        if source is None:
            error_msg = f"The input is malformed. {problem}"
        else:
            error_msg = f"The input in {source} is malformed. {problem}"

        super().__init__(error_msg)


class SnapshotWriteError(OSError):
    """
    Raised when a snapshot can't be written to its destination
    """

    def __init__(self, timestamp: str, path: Path) -> None:
        """
        Initialise the error

        Parameters
        ----------
        timestamp
            Timestamp of the graph that could not be written

        path
            Destination we tried to write to
        """
        self.timestamp = timestamp
        self.path = path

        error_msg = f"Failed to write the snapshot for {timestamp} to {path}"
        super().__init__(error_msg)
