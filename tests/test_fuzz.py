from __future__ import annotations

import os

import pytest
from conftest import make_manager

from fold_engine.registry import FoldParserManager

atheris = pytest.importorskip("atheris")

FRAGMENTS = ["{", "}", "(", ")", "[", "]", "/*", "*/", "<div>", "</div>", "<?php", "?>", "\n"]


def test_fold_managers_with_fuzzed_documents():
    data = os.urandom(4096)
    provider = atheris.FuzzedDataProvider(data)
    languages = FoldParserManager.with_defaults().languages()
    parsed = 0

    while provider.remaining_bytes() > 0 and parsed < 64:
        language = languages[provider.ConsumeIntInRange(0, len(languages) - 1)]
        text = provider.ConsumeUnicodeNoSurrogates(128)
        manager = make_manager(text, language)
        for fold in manager.iter_folds():
            assert fold.start_line <= fold.end_line
        parsed += 1

    assert parsed  # ensure we exercised the loop


def test_edits_with_fuzzed_fragments():
    data = os.urandom(4096)
    provider = atheris.FuzzedDataProvider(data)
    manager = make_manager("", "java")
    document = manager.document

    for _ in range(256):
        if provider.remaining_bytes() == 0:
            break
        offset = provider.ConsumeIntInRange(0, document.length)
        if provider.ConsumeBool() or document.length == 0:
            fragment = FRAGMENTS[provider.ConsumeIntInRange(0, len(FRAGMENTS) - 1)]
            document.insert_string(offset, fragment)
        else:
            length = provider.ConsumeIntInRange(0, document.length - offset)
            document.remove(offset, length)
        for fold in manager.iter_folds():
            if provider.ConsumeBool():
                fold.toggle_collapsed_state()
        assert 0 <= manager.get_hidden_line_count() < max(document.line_count, 1)
