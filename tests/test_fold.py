from __future__ import annotations

import pytest

from fold_engine.constants import UNTERMINATED
from fold_engine.document import Document
from fold_engine.exceptions import BadLocationError, InvalidFoldRangeError
from fold_engine.fold import Fold
from fold_engine.models import FoldType

# Eight lines of six characters each (including the newline): line N starts at 6 * N.
TEXT = "\n".join(f"line{index}" for index in range(8))


def _line_start(line: int) -> int:
    return 6 * line


@pytest.fixture()
def document() -> Document:
    return Document(TEXT)


@pytest.fixture()
def outer(document: Document) -> Fold:
    fold = Fold(FoldType.CODE, document, _line_start(0))
    fold.set_end_offset(_line_start(6))
    child = fold.create_child(FoldType.COMMENT, _line_start(2))
    child.set_end_offset(_line_start(4))
    return fold


def test_create_child_links_parent_and_children(outer: Fold):
    child = outer.get_child(0)

    assert outer.child_count == 1
    assert outer.has_child_folds
    assert outer.last_child is child
    assert child.parent is outer
    assert outer.parent is None
    assert child.fold_type == FoldType.COMMENT


def test_lines_and_line_count(outer: Fold):
    child = outer.get_child(0)

    assert (outer.start_line, outer.end_line, outer.line_count) == (0, 6, 6)
    assert (child.start_line, child.end_line, child.line_count) == (2, 4, 2)


def test_unterminated_fold_extends_to_end_of_document(document: Document):
    fold = Fold(FoldType.CODE, document, _line_start(3))

    assert not fold.is_terminated
    assert fold.end_offset == UNTERMINATED
    assert fold.end_line == document.line_count - 1


def test_set_end_offset_before_start_raises(document: Document):
    fold = Fold(FoldType.CODE, document, _line_start(3))

    with pytest.raises(InvalidFoldRangeError):
        fold.set_end_offset(_line_start(1))


def test_contains_line_excludes_start_line(outer: Fold):
    assert not outer.contains_line(0)
    assert outer.contains_line(1)
    assert outer.contains_line(6)
    assert not outer.contains_line(7)
    assert outer.contains_or_starts_on_line(0)
    assert not outer.contains_or_starts_on_line(7)


def test_contains_offset(outer: Fold):
    assert not outer.contains_offset(0)
    assert outer.contains_offset(1)
    assert outer.contains_offset(_line_start(6) + 3)
    assert not outer.contains_offset(_line_start(7))


def test_unterminated_fold_does_not_contain_offsets_past_the_end(document: Document):
    fold = Fold(FoldType.CODE, document, _line_start(5))

    assert fold.contains_offset(document.length)
    assert not fold.contains_offset(document.length + 1)
    assert not fold.contains_offset(document.length + 1000)


def test_drifted_positions_raise_bad_location(outer: Fold, document: Document):
    outer._end.offset = document.length + 10

    with pytest.raises(BadLocationError):
        outer.end_line

    outer._start.offset = -1
    with pytest.raises(BadLocationError):
        outer.start_line


def test_is_on_single_line(document: Document):
    fold = Fold(FoldType.CODE, document, 1)
    fold.set_end_offset(4)

    assert fold.is_on_single_line()


def test_collapsing_child_updates_parent_count(outer: Fold):
    child = outer.get_child(0)

    child.set_collapsed(True)

    assert outer.child_collapsed_line_count == 2
    assert outer.get_collapsed_line_count() == 2
    assert child.get_collapsed_line_count() == 2


def test_collapsed_parent_hides_its_whole_range(outer: Fold):
    child = outer.get_child(0)
    child.set_collapsed(True)
    outer.set_collapsed(True)

    assert outer.get_collapsed_line_count() == 6

    child.set_collapsed(False)
    assert outer.child_collapsed_line_count == 0
    assert outer.get_collapsed_line_count() == 6

    outer.set_collapsed(False)
    assert outer.get_collapsed_line_count() == 0


def test_counts_propagate_through_every_ancestor(document: Document):
    root = Fold(FoldType.CODE, document, _line_start(0))
    root.set_end_offset(_line_start(7))
    middle = root.create_child(FoldType.CODE, _line_start(1))
    middle.set_end_offset(_line_start(6))
    leaf = middle.create_child(FoldType.CODE, _line_start(2))
    leaf.set_end_offset(_line_start(5))

    leaf.set_collapsed(True)

    assert middle.child_collapsed_line_count == 3
    assert root.child_collapsed_line_count == 3

    middle.set_collapsed(True)
    assert root.child_collapsed_line_count == 5

    middle.set_collapsed(False)
    assert root.child_collapsed_line_count == 3


def test_set_collapsed_notifies_only_on_change(document: Document):
    toggled = []
    fold = Fold(FoldType.CODE, document, 0, on_toggle=toggled.append)
    fold.set_end_offset(_line_start(2))

    fold.set_collapsed(False)
    fold.toggle_collapsed_state()
    fold.set_collapsed(True)

    assert toggled == [fold]
    assert fold.collapsed


def test_children_share_the_toggle_callback(document: Document):
    toggled = []
    fold = Fold(FoldType.CODE, document, 0, on_toggle=toggled.append)
    child = fold.create_child(FoldType.CODE, _line_start(1))

    child.set_collapsed(True)

    assert toggled == [child]


def test_deepest_fold_containing(outer: Fold):
    child = outer.get_child(0)
    offset = _line_start(3)

    assert outer.get_deepest_fold_containing(offset) is child
    assert outer.get_deepest_fold_containing(_line_start(5)) is outer

    child.set_collapsed(True)
    assert outer.get_deepest_fold_containing(offset) is child
    assert outer.get_deepest_open_fold_containing(offset) is outer


def test_offsets_follow_edits(document: Document, outer: Fold):
    document.insert_string(_line_start(1), "new\n")

    assert outer.start_offset == 0
    assert outer.end_line == 7
    assert outer.get_child(0).start_line == 3


def test_remove_from_parent(outer: Fold):
    child = outer.get_child(0)

    assert child.remove_from_parent()
    assert not outer.has_child_folds
    assert child.parent is None
    assert not outer.remove_from_parent()


def test_walk_is_depth_first_in_document_order(document: Document):
    root = Fold(FoldType.CODE, document, 0)
    first = root.create_child(FoldType.CODE, _line_start(1))
    nested = first.create_child(FoldType.CODE, _line_start(2))
    second = root.create_child(FoldType.CODE, _line_start(4))

    assert list(root.walk()) == [root, first, nested, second]
    assert [fold.start_line for fold in root.walk()] == [0, 1, 2, 4]


def test_folds_compare_by_start_offset(document: Document):
    first = Fold(FoldType.CODE, document, 6)
    same_start = Fold(FoldType.COMMENT, document, 6)
    later = Fold(FoldType.CODE, document, 12)

    assert first == same_start
    assert first < later
    assert sorted([later, first]) == [first, later]
    with pytest.raises(TypeError):
        hash(first)


def test_as_dict(outer: Fold):
    outer.get_child(0).set_collapsed(True)

    assert outer.as_dict() == {
        "type": "code",
        "start_offset": 0,
        "end_offset": 36,
        "start_line": 0,
        "end_line": 6,
        "collapsed": False,
        "children": [
            {
                "type": "comment",
                "start_offset": 12,
                "end_offset": 24,
                "start_line": 2,
                "end_line": 4,
                "collapsed": True,
                "children": [],
            }
        ],
    }


def test_as_dict_marks_unterminated_end(document: Document):
    fold = Fold(1001, document, 0)

    data = fold.as_dict()

    assert data["type"] == "1001"
    assert data["end_offset"] is None
