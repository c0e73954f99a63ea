"""Editor commands built on a `FoldManager`.

Each command is a no-op when folding is disabled. Commands that act on "the
current fold" take a caret offset and default to the document's caret.
"""

from __future__ import annotations

from .collapser import FoldCollapser
from .fold import Fold
from .manager import FoldManager
from .models import FoldType


class _CollapseEverything(FoldCollapser):
    def should_collapse(self, fold: Fold) -> bool:
        return True


def get_closest_fold(manager: FoldManager, offset: int | None = None) -> Fold | None:
    """Return the fold starting on the caret's line, else the deepest open fold around the caret.

    Args:
        manager: Fold manager of the document.
        offset: Caret offset; defaults to `manager.document.caret_offset`.

    Returns:
        Fold | None: The fold an editor command should act on, or None.
    """
    if not manager.is_enabled():
        return None
    document = manager.document
    if offset is None:
        offset = document.caret_offset
    fold = manager.get_fold_for_line(document.line_index(offset))
    if fold is None:
        fold = manager.get_deepest_open_fold_containing(offset)
    return fold


def toggle_current_fold(manager: FoldManager, offset: int | None = None) -> bool:
    """Collapse or expand the fold closest to the caret.

    Returns:
        bool: True if a fold was toggled.
    """
    fold = get_closest_fold(manager, offset)
    if fold is None:
        return False
    fold.toggle_collapsed_state()
    return True


def change_fold_state(manager: FoldManager, offset: int | None, collapse: bool) -> bool:
    """Collapse (or expand) the fold closest to the caret.

    Returns:
        bool: True if the fold's state changed.
    """
    fold = get_closest_fold(manager, offset)
    if fold is None or fold.collapsed == collapse:
        return False
    fold.set_collapsed(collapse)
    return True


def collapse_all_folds(manager: FoldManager) -> bool:
    if not manager.is_enabled():
        return False
    return _CollapseEverything(()).collapse_folds(manager) > 0


def collapse_all_comment_folds(manager: FoldManager) -> bool:
    if not manager.is_enabled():
        return False
    return FoldCollapser((FoldType.COMMENT,)).collapse_folds(manager) > 0


def expand_all_folds(manager: FoldManager) -> bool:
    """Expand every fold at every depth.

    Returns:
        bool: True if at least one fold was collapsed before the call.
    """
    if not manager.is_enabled():
        return False
    changed = False
    for fold in manager.iter_folds():
        if fold.collapsed:
            fold.set_collapsed(False)
            changed = True
    return changed
