"""Package-specific exception types."""

from __future__ import annotations


class FoldingError(RuntimeError):
    """Base class for folding integration errors.

    Raised when a collaborator breaks its contract (for example the position
    service rejecting an offset). These are programming errors rather than
    malformed user input and are never recovered from silently.
    """


class BadLocationError(FoldingError):
    """Raised when an offset or line lies outside the document.

    Args:
        offset: The rejected offset or line number.
        length: Length of the document (or line count) at the time of the call.
    """

    def __init__(self, offset: int, length: int):
        self.offset = offset
        self.length = length
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        return f"Invalid location {self.offset} (valid range: 0-{self.length})"


class InvalidFoldRangeError(FoldingError):
    """Raised when a fold is closed before the offset it starts at.

    Args:
        start_offset: Offset the fold starts at.
        end_offset: Offset the fold was asked to end at.
    """

    def __init__(self, start_offset: int, end_offset: int):
        self.start_offset = start_offset
        self.end_offset = end_offset
        super().__init__(
            f"Fold end offset {self.end_offset} precedes its start offset {self.start_offset}"
        )
