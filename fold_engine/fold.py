"""Fold: one node of the fold forest."""

from __future__ import annotations

import functools
import weakref
from collections.abc import Callable, Iterator
from typing import Any

from .constants import UNTERMINATED
from .document import Document, Position
from .exceptions import InvalidFoldRangeError
from .models import fold_type_name

ToggleCallback = Callable[["Fold"], None]


@functools.total_ordering
class Fold:
    """A foldable region of a document.

    A fold spans from its start offset to its end offset; until `set_end_offset`
    is called it extends to the end of the document. Both offsets are sticky
    positions, so a fold keeps pointing at the same text while the document is
    edited around it.

    When collapsed, the lines ``(start_line, end_line]`` are hidden; the start
    line stays visible as the fold's summary line. Each fold caches how many
    lines its collapsed descendants hide so the manager can answer hidden line
    counts without walking the tree.

    Folds compare (and sort) by start offset only.
    """

    def __init__(
        self,
        fold_type: int,
        document: Document,
        start_offset: int,
        on_toggle: ToggleCallback | None = None,
    ):
        self.fold_type = fold_type
        self._document = document
        self._start: Position = document.create_position(start_offset)
        self._end: Position | None = None
        self._parent_ref: weakref.ReferenceType[Fold] | None = None
        self._children: list[Fold] = []
        self._collapsed = False
        self._child_collapsed_line_count = 0
        self._on_toggle = on_toggle

    def create_child(self, fold_type: int, start_offset: int) -> Fold:
        """Append a new, unterminated child fold.

        Args:
            fold_type: A `FoldType` value or a user type >= 1000.
            start_offset: Offset of the child's first character.

        Returns:
            Fold: The child. It shares this fold's document and toggle callback.

        Raises:
            BadLocationError: If `start_offset` is outside the document.

        Examples:
            method = class_fold.create_child(FoldType.CODE, brace_offset)
        """
        child = Fold(fold_type, self._document, start_offset, self._on_toggle)
        child._parent_ref = weakref.ref(self)
        self._children.append(child)
        return child

    @property
    def parent(self) -> Fold | None:
        return self._parent_ref() if self._parent_ref is not None else None

    @property
    def children(self) -> list[Fold]:
        return self._children

    @property
    def child_count(self) -> int:
        return len(self._children)

    def get_child(self, index: int) -> Fold:
        return self._children[index]

    @property
    def has_child_folds(self) -> bool:
        return bool(self._children)

    @property
    def last_child(self) -> Fold | None:
        return self._children[-1] if self._children else None

    @property
    def start_offset(self) -> int:
        return self._start.offset

    @property
    def end_offset(self) -> int:
        return self._end.offset if self._end is not None else UNTERMINATED

    @property
    def is_terminated(self) -> bool:
        return self._end is not None

    def set_end_offset(self, end_offset: int) -> None:
        """Terminate the fold at `end_offset`, the offset of its last character.

        Raises:
            InvalidFoldRangeError: If `end_offset` comes before the start offset.
            BadLocationError: If `end_offset` is outside the document.
        """
        if end_offset < self.start_offset:
            raise InvalidFoldRangeError(self.start_offset, end_offset)
        self._end = self._document.create_position(end_offset)

    @property
    def start_line(self) -> int:
        return self._document.get_line_of_offset(self.start_offset)

    @property
    def end_line(self) -> int:
        """Line of the end offset; the last line for an unterminated fold.

        Raises:
            BadLocationError: If a sticky position drifted outside the document.
        """
        if self._end is None:
            return self._document.line_count - 1
        return self._document.get_line_of_offset(self._end.offset)

    @property
    def line_count(self) -> int:
        """Number of lines hidden when collapsed (the start line is not counted)."""
        return self.end_line - self.start_line

    @property
    def child_collapsed_line_count(self) -> int:
        return self._child_collapsed_line_count

    def get_collapsed_line_count(self) -> int:
        """Lines this fold hides right now, counting collapsed descendants of an open fold."""
        return self.line_count if self._collapsed else self._child_collapsed_line_count

    def is_on_single_line(self) -> bool:
        return self.start_line == self.end_line

    def contains_line(self, line: int) -> bool:
        """True if `line` is one of the lines hidden when this fold collapses.

        The start line is excluded because it stays visible.
        """
        return self.start_line < line <= self.end_line

    def contains_or_starts_on_line(self, line: int) -> bool:
        return self.start_line <= line <= self.end_line

    def contains_offset(self, offset: int) -> bool:
        """True if `offset` lies after the start offset and on or before the end line.

        Offsets past the end of the document are never contained.

        Examples:
            fold.contains_offset(fold.start_offset)  # False
            fold.contains_offset(fold.start_offset + 1)  # True
        """
        if offset <= self.start_offset or offset > self._document.length:
            return False
        return self._document.get_line_of_offset(offset) <= self.end_line

    def get_deepest_fold_containing(self, offset: int) -> Fold:
        """Return the innermost descendant containing `offset`, or this fold itself."""
        deepest = self
        for child in self._children:
            if child.contains_offset(offset):
                deepest = child.get_deepest_fold_containing(offset)
                break
        return deepest

    def get_deepest_open_fold_containing(self, offset: int) -> Fold:
        deepest = self
        for child in self._children:
            if child.contains_offset(offset):
                if not child.collapsed:
                    deepest = child.get_deepest_open_fold_containing(offset)
                break
        return deepest

    @property
    def collapsed(self) -> bool:
        return self._collapsed

    def set_collapsed(self, collapsed: bool) -> None:
        """Collapse or expand this fold and update the counts of its ancestors.

        The toggle callback runs after the counts are updated. Setting the
        current state again does nothing.

        Args:
            collapsed: The new state.

        Examples:
            fold.set_collapsed(True)
            assert fold.get_collapsed_line_count() == fold.line_count
        """
        if collapsed == self._collapsed:
            return

        lines_to_collapse = self.line_count - self._child_collapsed_line_count
        if not collapsed:
            lines_to_collapse = -lines_to_collapse
        self._collapsed = collapsed
        parent = self.parent
        if parent is not None:
            parent._update_child_collapsed_line_count(lines_to_collapse)

        if self._on_toggle is not None:
            self._on_toggle(self)

    def toggle_collapsed_state(self) -> None:
        self.set_collapsed(not self._collapsed)

    def _update_child_collapsed_line_count(self, count: int) -> None:
        self._child_collapsed_line_count += count
        if not self._collapsed:
            parent = self.parent
            if parent is not None:
                parent._update_child_collapsed_line_count(count)

    def remove_from_parent(self) -> bool:
        """Detach this fold from its parent, which must list it as its last child.

        Returns:
            bool: False for a top-level fold, which the caller must remove from
                its own list.
        """
        parent = self.parent
        if parent is None:
            return False
        parent._children.pop()
        self._parent_ref = None
        return True

    def walk(self) -> Iterator[Fold]:
        """Yield this fold and all of its descendants, depth-first in document order."""
        stack = [self]
        while stack:
            fold = stack.pop()
            yield fold
            stack.extend(reversed(fold._children))

    def as_dict(self) -> dict[str, Any]:
        """Plain nested data for JSON output; `end_offset` is None while unterminated."""
        return {
            "type": fold_type_name(self.fold_type),
            "start_offset": self.start_offset,
            "end_offset": self.end_offset if self.is_terminated else None,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "collapsed": self._collapsed,
            "children": [child.as_dict() for child in self._children],
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Fold):
            return NotImplemented
        return self.start_offset == other.start_offset

    def __lt__(self, other: Fold) -> bool:
        if not isinstance(other, Fold):
            return NotImplemented
        return self.start_offset < other.start_offset

    # Equality tracks a mutable offset, so folds are unhashable.
    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        end = self.end_offset if self.is_terminated else "EOF"
        return (
            f"Fold(type={fold_type_name(self.fold_type)}, start={self.start_offset}, "
            f"end={end}, collapsed={self._collapsed})"
        )
