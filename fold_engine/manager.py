"""Per-document fold orchestration: reparsing, state transfer, and line queries."""

from __future__ import annotations

import bisect
import logging
from collections.abc import Iterator

from .collapser import FoldCollapser
from .config import FoldConfig
from .document import Document
from .events import (
    FOLD_MANAGER_SOURCE,
    FOLD_TOGGLED,
    FOLDS_UPDATED,
    SYNTAX_STYLE_CHANGED,
    TEXT_INSERTED,
    TEXT_REMOVED,
    Event,
    EventBroker,
    FoldsUpdated,
    FoldToggled,
)
from .fold import Fold
from .models import fold_type_from_name
from .parsers import FoldParser
from .registry import FoldParserManager
from .tokens import TokenSource

logger = logging.getLogger(__name__)


def _start_offset(fold: Fold) -> int:
    return fold.start_offset


class FoldManager:
    """Keeps the fold forest of one document current and answers questions about it.

    The manager subscribes to the document's events. Every edit and every
    language change triggers a synchronous reparse; collapsed state is carried
    over from the previous forest to folds that still start at the same
    offset. Subscribers on `events` receive ``folds_updated`` after each
    reparse and ``fold_toggled`` whenever a fold is collapsed or expanded.

    Args:
        document: The document to fold.
        token_source: Per-line tokens for `document`.
        registry: Where parsers are looked up by `document.language`.
            Defaults to `FoldParserManager.with_defaults(config)`.
        config: Folding options. Defaults to `FoldConfig()`.

    Examples:
        document = Document(source, language="java")
        manager = FoldManager(document, LexerTokenSource(document))
        manager.get_fold_for_line(2)
    """

    def __init__(
        self,
        document: Document,
        token_source: TokenSource,
        registry: FoldParserManager | None = None,
        config: FoldConfig | None = None,
    ):
        self.config = config if config is not None else FoldConfig()
        self.document = document
        self.token_source = token_source
        self.registry = (
            registry if registry is not None else FoldParserManager.with_defaults(self.config)
        )
        self.events = EventBroker(FOLD_MANAGER_SOURCE)

        self._folds: list[Fold] = []
        self._enabled = self.config.enabled
        self._migrating = False
        self._parser: FoldParser | None = None
        self._initial_collapse = [fold_type_from_name(name) for name in self.config.collapse_types]

        document.events.register_subscriber(TEXT_INSERTED, self._on_text_inserted)
        document.events.register_subscriber(TEXT_REMOVED, self._on_text_removed)
        document.events.register_subscriber(SYNTAX_STYLE_CHANGED, self._on_syntax_style_changed)

        self._update_fold_parser()
        if self.is_supported_and_enabled():
            self.reparse()

    def detach(self) -> None:
        """Stop listening to the document."""
        self.document.events.unregister_subscriber(TEXT_INSERTED, self._on_text_inserted)
        self.document.events.unregister_subscriber(TEXT_REMOVED, self._on_text_removed)
        self.document.events.unregister_subscriber(
            SYNTAX_STYLE_CHANGED, self._on_syntax_style_changed
        )

    @property
    def parser(self) -> FoldParser | None:
        return self._parser

    @property
    def folds(self) -> list[Fold]:
        """Top-level folds, sorted by start offset."""
        return list(self._folds)

    def iter_folds(self) -> Iterator[Fold]:
        """Yield every fold in the forest, depth-first in document order."""
        for fold in list(self._folds):
            yield from fold.walk()

    def fold_count(self) -> int:
        return len(self._folds)

    def get_fold(self, index: int) -> Fold:
        return self._folds[index]

    def clear(self) -> None:
        self._folds = []

    def is_enabled(self) -> bool:
        return self._enabled

    def is_supported_and_enabled(self) -> bool:
        return self._enabled and self._parser is not None

    def set_enabled(self, enabled: bool) -> None:
        """Turn folding on (reparsing right away) or off (dropping every fold)."""
        if enabled == self._enabled:
            return
        self._enabled = enabled
        logger.debug("Code folding %s", "enabled" if enabled else "disabled")
        self.reparse()

    def reparse(self) -> list[Fold]:
        """Rebuild the fold forest and publish it.

        Folds that start at the offset of a fold in the previous forest take
        over its collapsed state. A fold with no exact counterpart is looked up
        among the children of the previous fold that contains its start.

        Returns:
            list[Fold]: The new top-level folds.
        """
        old_folds = self._folds
        if self.is_supported_and_enabled():
            new_folds = self._parser.get_folds(
                self.document, self.token_source, self._on_fold_toggled
            )
            self._migrating = True
            try:
                self._keep_fold_states(new_folds, old_folds)
                self._folds = new_folds
                if self._initial_collapse:
                    FoldCollapser(self._initial_collapse).collapse_folds(self)
                    self._initial_collapse = []
            finally:
                self._migrating = False
        else:
            new_folds = []
            self._folds = new_folds

        logger.debug(
            "Reparsed %s document: %d top-level folds",
            self.document.language,
            len(new_folds),
        )
        self.events.emit(FOLDS_UPDATED, FoldsUpdated(old_folds, new_folds))
        return new_folds

    def _keep_fold_states(self, new_folds: list[Fold], old_folds: list[Fold]) -> None:
        for new_fold in new_folds:
            self._keep_fold_state(new_fold, old_folds)
            if new_fold.has_child_folds:
                self._keep_fold_states(new_fold.children, old_folds)

    def _keep_fold_state(self, new_fold: Fold, old_folds: list[Fold]) -> None:
        start = new_fold.start_offset
        index = bisect.bisect_left(old_folds, start, key=_start_offset)
        if index < len(old_folds) and old_folds[index].start_offset == start:
            new_fold.set_collapsed(old_folds[index].collapsed)
        elif index > 0:
            possible_parent = old_folds[index - 1]
            if possible_parent.contains_offset(start) and possible_parent.has_child_folds:
                self._keep_fold_state(new_fold, possible_parent.children)

    def get_fold_for_line(self, line: int) -> Fold | None:
        """Return the fold that starts on `line`, or None.

        Args:
            line: A zero-based logical line.
        """
        folds = self._folds
        while folds:
            low, high = 0, len(folds) - 1
            descend_into: list[Fold] | None = None
            while low <= high:
                mid = (low + high) // 2
                fold = folds[mid]
                start_line = fold.start_line
                if line == start_line:
                    return fold
                if line < start_line:
                    high = mid - 1
                elif line >= fold.end_line:
                    low = mid + 1
                else:
                    descend_into = fold.children
                    break
            if descend_into is None:
                return None
            folds = descend_into
        return None

    def is_fold_start_line(self, line: int) -> bool:
        """True if some fold, at any depth, starts on `line`."""
        return self.get_fold_for_line(line) is not None

    def _offset_in_document(self, offset: int) -> bool:
        return 0 <= offset <= self.document.length

    def get_deepest_fold_containing(self, offset: int) -> Fold | None:
        """Return the innermost fold containing `offset`, collapsed or not.

        Args:
            offset: A document offset. A fold contains the offsets after its
                start offset through the end of its end line.

        Returns:
            Fold | None: None when no fold contains `offset` or `offset` is
                outside the document.

        Examples:
            manager.get_deepest_fold_containing(document.selection[0])
        """
        if not self._offset_in_document(offset):
            return None
        for fold in self._folds:
            if fold.contains_offset(offset):
                return fold.get_deepest_fold_containing(offset)
        return None

    def get_deepest_open_fold_containing(self, offset: int) -> Fold | None:
        """Like `get_deepest_fold_containing`, but stops above the first collapsed fold.

        Returns None when the top-level fold containing `offset` is itself
        collapsed, and when `offset` is outside the document.
        """
        if not self._offset_in_document(offset):
            return None
        for fold in self._folds:
            if fold.contains_offset(offset):
                if fold.collapsed:
                    return None
                return fold.get_deepest_open_fold_containing(offset)
        return None

    def ensure_offset_not_in_closed_fold(self, offset: int) -> bool:
        """Expand every collapsed fold that hides `offset`.

        Args:
            offset: Usually a caret or selection offset. Offsets outside the
                document touch nothing.

        Returns:
            bool: True if at least one fold was expanded.

        Examples:
            if manager.ensure_offset_not_in_closed_fold(match_offset):
                repaint()
        """
        opened = False
        fold = self.get_deepest_fold_containing(offset)
        while fold is not None:
            if fold.collapsed:
                fold.set_collapsed(False)
                opened = True
            fold = fold.parent
        return opened

    def is_line_hidden(self, line: int) -> bool:
        """True if a collapsed fold hides `line`.

        A fold's start line is never hidden by that fold, and lines outside
        the document are reported as visible.

        Examples:
            [line for line in range(document.line_count) if not manager.is_line_hidden(line)]
        """
        folds = self._folds
        while folds:
            for fold in folds:
                if fold.contains_line(line):
                    if fold.collapsed:
                        return True
                    folds = fold.children
                    break
            else:
                return False
        return False

    def get_hidden_line_count(self) -> int:
        """Total number of lines hidden by collapsed folds."""
        return sum(fold.get_collapsed_line_count() for fold in self._folds)

    def get_hidden_line_count_above(self, line: int, physical: bool = False) -> int:
        """Count the hidden lines above `line`.

        Args:
            line: The reference line.
            physical: If True, `line` is a visible row (hidden lines already
                removed), so the cut-off moves down by every hidden line
                counted so far. If False, `line` is a logical document line.

        Returns:
            int: Number of hidden lines before the reference line.
        """
        return _hidden_line_count_above(self._folds, line, physical)

    def get_last_visible_line(self) -> int:
        """Return the last document line that is not hidden.

        That is the summary line of a collapsed fold running to the end of
        the document, or simply the last line.
        """
        last_line = self.document.line_count - 1
        if not self.is_supported_and_enabled() or not self._folds:
            return last_line

        fold = self._folds[-1]
        if fold.contains_line(last_line):
            if fold.collapsed:
                return fold.start_line
            # A child fold may end on the same line as its parent.
            while fold.has_child_folds:
                fold = fold.last_child
                if not fold.contains_line(last_line):
                    break
                if fold.collapsed:
                    return fold.start_line
        return last_line

    def get_visible_line_above(self, line: int) -> int:
        """Return the closest visible line above `line`, or -1 if there is none."""
        if line <= 0 or line >= self.document.line_count:
            return -1
        line -= 1
        while line >= 0 and self.is_line_hidden(line):
            line -= 1
        return line

    def get_visible_line_below(self, line: int) -> int:
        """Return the closest visible line below `line`, or -1 if there is none."""
        line_count = self.document.line_count
        if line < 0 or line >= line_count - 1:
            return -1
        line += 1
        while line < line_count and self.is_line_hidden(line):
            line += 1
        return -1 if line == line_count else line

    def _update_fold_parser(self) -> None:
        self._parser = self.registry.get(self.document.language)

    def _on_fold_toggled(self, fold: Fold) -> None:
        if self._migrating:
            return
        caret_offset = None
        if fold.collapsed:
            for offset in self.document.selection:
                if fold.contains_line(self.document.line_index(offset)):
                    caret_offset = self.document.get_line_end_offset(fold.start_line)
                    break
        self.events.emit(FOLD_TOGGLED, FoldToggled(fold, caret_offset))

    def _on_text_inserted(self, event: Event) -> None:
        if not self.is_supported_and_enabled():
            return
        edit = event.data
        start_line = self.document.line_index(edit.offset)
        end_line = self.document.line_index(edit.offset + edit.length)
        # New lines typed on a collapsed fold's summary line must not vanish.
        if start_line != end_line:
            self._expand_fold_on_line(start_line)
        self.reparse()

    def _on_text_removed(self, event: Event) -> None:
        if not self.is_supported_and_enabled():
            return
        self._expand_fold_on_line(self.document.get_line_of_offset(event.data.offset))
        self.reparse()

    def _expand_fold_on_line(self, line: int) -> None:
        fold = self.get_fold_for_line(line)
        if fold is not None and fold.collapsed:
            fold.toggle_collapsed_state()

    def _on_syntax_style_changed(self, event: Event) -> None:
        self._update_fold_parser()
        self.reparse()


def _hidden_line_count_above(folds: list[Fold], line: int, physical: bool) -> int:
    count = 0
    for fold in folds:
        comp = line + count if physical else line
        if fold.start_line >= comp:
            break
        if fold.end_line < comp or (fold.collapsed and fold.start_line < comp):
            count += fold.get_collapsed_line_count()
        else:
            count += _hidden_line_count_above(fold.children, comp, physical)
    return count
