"""Cursor tracking the consumed position of the remote change log."""

import logging

logger = logging.getLogger(__name__)


class CursorTracker:
    """
    In-memory, monotonically non-decreasing sequence marker.

    Owned by the poller task only. Not persisted: a restart begins again
    from sequence 0.
    """

    def __init__(self, start: int = 0):
        if start < 0:
            raise ValueError(f"Cursor cannot start below 0, got {start}")
        self._value = start

    @property
    def value(self) -> int:
        return self._value

    def advance(self, sequence: int) -> int:
        """
        Move the cursor to ``sequence`` unless it is already further along.

        Returns:
            The cursor value after the call.
        """
        if sequence > self._value:
            logger.debug(f"Cursor advanced {self._value} -> {sequence}")
            self._value = sequence
        return self._value

    def __repr__(self) -> str:
        return f"<CursorTracker(value={self._value})>"
