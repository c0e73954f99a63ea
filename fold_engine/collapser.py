"""Batch collapsing of folds by type."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from .models import FoldType

if TYPE_CHECKING:
    from .fold import Fold
    from .manager import FoldManager


class FoldCollapser:
    """Collapses every fold whose type is in a chosen set.

    Children of folds that get collapsed are collapsed too, so expanding a
    parent later still shows each child in its collapsed state.

    Args:
        types: Fold types to collapse. Defaults to comments only.

    Examples:
        FoldCollapser().collapse_folds(manager)  # hide all multi-line comments
    """

    def __init__(self, types: Iterable[int] = (FoldType.COMMENT,)):
        self._types: set[int] = set(types)

    @property
    def types(self) -> frozenset[int]:
        return frozenset(self._types)

    def add_type_to_collapse(self, fold_type: int) -> None:
        self._types.add(fold_type)

    def should_collapse(self, fold: Fold) -> bool:
        return fold.fold_type in self._types

    def collapse_folds(self, manager: FoldManager) -> int:
        """Collapse every matching fold in `manager`.

        Returns:
            int: How many folds changed from expanded to collapsed.
        """
        changed = 0
        for fold in manager.iter_folds():
            if self.should_collapse(fold) and not fold.collapsed:
                fold.set_collapsed(True)
                changed += 1
        return changed
