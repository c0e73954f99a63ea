from __future__ import annotations

import pytest

from fold_engine.document import Document
from fold_engine.events import SYNTAX_STYLE_CHANGED, TEXT_INSERTED, TEXT_REMOVED, EditRange
from fold_engine.exceptions import BadLocationError


def test_line_mapping():
    document = Document("ab\ncd\n\nef")

    assert document.line_count == 4
    assert [document.get_line_start_offset(line) for line in range(4)] == [0, 3, 6, 7]
    assert document.get_line_end_offset(0) == 2
    assert document.get_line_end_offset(3) == 9
    assert document.get_line_text(1) == "cd"
    assert document.get_line_text(2) == ""
    assert document.get_line_of_offset(2) == 0
    assert document.get_line_of_offset(3) == 1
    assert document.get_line_of_offset(9) == 3
    assert document.lines() == ["ab", "cd", "", "ef"]


def test_trailing_newline_starts_an_empty_line():
    document = Document("a\n")

    assert document.line_count == 2
    assert document.get_line_text(1) == ""


def test_empty_document_has_one_line():
    document = Document()

    assert document.line_count == 1
    assert document.length == 0


@pytest.mark.parametrize("offset", [-1, 10])
def test_offsets_outside_the_document_raise(offset):
    document = Document("ab\ncd\n\nef")

    with pytest.raises(BadLocationError):
        document.get_line_of_offset(offset)
    with pytest.raises(BadLocationError):
        document.create_position(offset)


def test_invalid_lines_raise():
    document = Document("ab\ncd")

    with pytest.raises(BadLocationError):
        document.get_line_start_offset(2)
    with pytest.raises(BadLocationError):
        document.get_line_end_offset(-1)


def test_line_index_is_clamped():
    document = Document("ab\ncd")

    assert document.line_index(-5) == 0
    assert document.line_index(100) == 1


def test_positions_shift_on_insert():
    document = Document("abcdef")
    before = document.create_position(1)
    at = document.create_position(3)
    after = document.create_position(5)

    document.insert_string(3, "XY")

    assert (before.offset, at.offset, after.offset) == (1, 5, 7)
    assert document.text == "abcXYdef"


def test_position_at_document_start_stays_on_insert_at_start():
    document = Document("abc")
    start = document.create_position(0)
    other = document.create_position(1)

    document.insert_string(0, "xx")

    assert start.offset == 0
    assert other.offset == 3


def test_positions_inside_removed_range_collapse_to_its_start():
    document = Document("0123456789")
    before = document.create_position(1)
    inside = document.create_position(4)
    end = document.create_position(6)
    after = document.create_position(8)

    document.remove(2, 4)

    assert (before.offset, inside.offset, end.offset, after.offset) == (1, 2, 2, 4)
    assert document.text == "016789"


def test_replace():
    document = Document("hello world")

    document.replace(0, 5, "goodbye")

    assert document.text == "goodbye world"


def test_edits_publish_events_after_updating():
    document = Document("abc")
    seen = []
    document.events.register_subscriber(
        TEXT_INSERTED, lambda event: seen.append((event.name, event.data, document.text))
    )
    document.events.register_subscriber(
        TEXT_REMOVED, lambda event: seen.append((event.name, event.data, document.text))
    )

    document.insert_string(1, "\n")
    document.remove(0, 1)

    assert seen == [
        (TEXT_INSERTED, EditRange(1, 1), "a\nbc"),
        (TEXT_REMOVED, EditRange(0, 1), "\nbc"),
    ]
    assert document.version == 2


def test_empty_edits_are_ignored():
    document = Document("abc")
    seen = []
    document.events.register_subscriber(TEXT_INSERTED, seen.append)
    document.events.register_subscriber(TEXT_REMOVED, seen.append)

    document.insert_string(1, "")
    document.remove(1, 0)

    assert seen == []
    assert document.version == 0


def test_language_change_publishes_event():
    document = Document("", language="java")
    seen = []
    document.events.register_subscriber(SYNTAX_STYLE_CHANGED, seen.append)

    document.language = "json"

    assert document.language == "json"
    assert [(event.source, event.data) for event in seen] == [("DOCUMENT", "json")]


def test_selection_is_ordered_and_follows_edits():
    document = Document("abcdef")
    document.set_selection(4, 1)

    assert document.selection == (1, 4)
    assert document.caret_offset == 4

    document.insert_string(0, "xx")

    assert document.selection == (3, 6)


def test_set_selection_rejects_invalid_offsets():
    document = Document("abc")

    with pytest.raises(BadLocationError):
        document.set_selection(10)
