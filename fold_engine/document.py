"""In-memory document with sticky positions, line mapping, and edit events."""

from __future__ import annotations

import bisect
import logging
import weakref

from .events import (
    DOCUMENT_SOURCE,
    SYNTAX_STYLE_CHANGED,
    TEXT_INSERTED,
    TEXT_REMOVED,
    EditRange,
    EventBroker,
)
from .exceptions import BadLocationError

logger = logging.getLogger(__name__)


class Position:
    """A document offset that follows the text around it as the document is edited."""

    __slots__ = ("offset", "__weakref__")

    def __init__(self, offset: int):
        self.offset = offset

    def __repr__(self) -> str:
        return f"Position({self.offset})"


def _compute_line_starts(text: str) -> list[int]:
    starts = [0]
    index = text.find("\n")
    while index != -1:
        starts.append(index + 1)
        index = text.find("\n", index + 1)
    return starts


class Document:
    """Text storage plus the position service the folding engine relies on.

    Lines are zero-based and separated by ``"\\n"``; a trailing newline starts
    a final empty line. Positions handed out by `create_position` are held
    weakly and shifted on every edit:

    * inserting ``n`` characters at ``o`` moves every position at or after
      ``o`` forward by ``n`` (a position at offset 0 stays at the start of
      the document);
    * removing ``[o, o + n)`` moves positions after the range back by ``n``
      and collapses positions inside it onto ``o``.

    Edits and language changes are published on `events` after the document
    has been fully updated.
    """

    def __init__(self, text: str = "", language: str | None = None):
        self._text = text
        self._line_starts = _compute_line_starts(text)
        self._positions: weakref.WeakSet[Position] = weakref.WeakSet()
        self._language = language
        self._dot = 0
        self._mark = 0
        self.version = 0
        self.events = EventBroker(DOCUMENT_SOURCE)

    @property
    def text(self) -> str:
        return self._text

    @property
    def length(self) -> int:
        return len(self._text)

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    @property
    def language(self) -> str | None:
        return self._language

    @language.setter
    def language(self, language: str | None) -> None:
        self._language = language
        logger.debug("Syntax style changed to %s", language)
        self.events.emit(SYNTAX_STYLE_CHANGED, language)

    @property
    def selection(self) -> tuple[int, int]:
        """Selection start and end offsets (equal when nothing is selected)."""
        return min(self._dot, self._mark), max(self._dot, self._mark)

    @property
    def caret_offset(self) -> int:
        return self._dot

    def set_selection(self, dot: int, mark: int | None = None) -> None:
        mark = dot if mark is None else mark
        for offset in (dot, mark):
            self._check_offset(offset)
        self._dot = dot
        self._mark = mark

    def create_position(self, offset: int) -> Position:
        self._check_offset(offset)
        position = Position(offset)
        self._positions.add(position)
        return position

    def get_line_of_offset(self, offset: int) -> int:
        self._check_offset(offset)
        return bisect.bisect_right(self._line_starts, offset) - 1

    def line_index(self, offset: int) -> int:
        """Line containing `offset`, clamped to the first and last lines."""
        if offset <= 0:
            return 0
        return bisect.bisect_right(self._line_starts, offset) - 1

    def get_line_start_offset(self, line: int) -> int:
        self._check_line(line)
        return self._line_starts[line]

    def get_line_end_offset(self, line: int) -> int:
        """Offset just past the last character of `line`, excluding its newline."""
        self._check_line(line)
        if line + 1 < len(self._line_starts):
            return self._line_starts[line + 1] - 1
        return len(self._text)

    def get_line_text(self, line: int) -> str:
        return self._text[self.get_line_start_offset(line) : self.get_line_end_offset(line)]

    def lines(self) -> list[str]:
        return self._text.split("\n")

    def get_text(self, offset: int, length: int) -> str:
        self._check_offset(offset)
        self._check_offset(offset + length)
        return self._text[offset : offset + length]

    def insert_string(self, offset: int, text: str) -> None:
        self._check_offset(offset)
        if not text:
            return
        length = len(text)
        self._text = self._text[:offset] + text + self._text[offset:]
        self._line_starts = _compute_line_starts(self._text)
        for position in list(self._positions):
            if position.offset > offset or (position.offset == offset and offset > 0):
                position.offset += length
        self._dot = self._shift_for_insert(self._dot, offset, length)
        self._mark = self._shift_for_insert(self._mark, offset, length)
        self.version += 1
        self.events.emit(TEXT_INSERTED, EditRange(offset, length))

    def remove(self, offset: int, length: int) -> None:
        self._check_offset(offset)
        self._check_offset(offset + length)
        if length <= 0:
            return
        end = offset + length
        self._text = self._text[:offset] + self._text[end:]
        self._line_starts = _compute_line_starts(self._text)
        for position in list(self._positions):
            position.offset = self._shift_for_remove(position.offset, offset, end)
        self._dot = self._shift_for_remove(self._dot, offset, end)
        self._mark = self._shift_for_remove(self._mark, offset, end)
        self.version += 1
        self.events.emit(TEXT_REMOVED, EditRange(offset, length))

    def replace(self, offset: int, length: int, text: str) -> None:
        self.remove(offset, length)
        self.insert_string(offset, text)

    @staticmethod
    def _shift_for_insert(value: int, offset: int, length: int) -> int:
        return value + length if value >= offset else value

    @staticmethod
    def _shift_for_remove(value: int, start: int, end: int) -> int:
        if value >= end:
            return value - (end - start)
        if value > start:
            return start
        return value

    def _check_offset(self, offset: int) -> None:
        if offset < 0 or offset > len(self._text):
            raise BadLocationError(offset, len(self._text))

    def _check_line(self, line: int) -> None:
        if line < 0 or line >= len(self._line_starts):
            raise BadLocationError(line, len(self._line_starts) - 1)

    def __repr__(self) -> str:
        return f"Document(length={self.length}, lines={self.line_count}, language={self._language!r})"
