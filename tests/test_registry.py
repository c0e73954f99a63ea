from __future__ import annotations

import logging

import pytest

from fold_engine.config import FoldConfig
from fold_engine.constants import LANGUAGE_C, LANGUAGE_JAVA
from fold_engine.parsers import (
    CurlyFoldParser,
    HtmlFoldParser,
    JsonFoldParser,
    LatexFoldParser,
    LispFoldParser,
    NsisFoldParser,
    XmlFoldParser,
)
from fold_engine.registry import FoldParserManager

BUILT_IN_LANGUAGES = [
    "c",
    "clojure",
    "cpp",
    "csharp",
    "css",
    "groovy",
    "html",
    "java",
    "javascript",
    "json",
    "jsp",
    "latex",
    "lisp",
    "mxml",
    "nsis",
    "perl",
    "php",
    "scala",
    "xml",
]


def test_defaults_cover_every_built_in_language():
    registry = FoldParserManager.with_defaults()

    assert registry.languages() == sorted(BUILT_IN_LANGUAGES)
    assert len(registry) == len(BUILT_IN_LANGUAGES)


@pytest.mark.parametrize(
    ("language", "parser_type"),
    [
        ("c", CurlyFoldParser),
        ("java", CurlyFoldParser),
        ("clojure", LispFoldParser),
        ("lisp", LispFoldParser),
        ("html", HtmlFoldParser),
        ("php", HtmlFoldParser),
        ("jsp", HtmlFoldParser),
        ("json", JsonFoldParser),
        ("latex", LatexFoldParser),
        ("mxml", XmlFoldParser),
        ("xml", XmlFoldParser),
        ("nsis", NsisFoldParser),
    ],
)
def test_default_parser_types(language: str, parser_type: type):
    registry = FoldParserManager.with_defaults()

    assert isinstance(registry.get(language), parser_type)


def test_only_java_groups_imports_by_default():
    registry = FoldParserManager.with_defaults()

    assert registry.get(LANGUAGE_JAVA).java is True
    assert registry.get(LANGUAGE_C).java is False


def test_defaults_follow_config():
    registry = FoldParserManager.with_defaults(FoldConfig(fold_comments=False, group_imports=False))

    java = registry.get(LANGUAGE_JAVA)
    assert java.java is False
    assert java.fold_comments is False
    assert registry.get(LANGUAGE_C).fold_comments is False


def test_register_replaces_existing_parser(caplog):
    registry = FoldParserManager.with_defaults()
    parser = JsonFoldParser()

    with caplog.at_level(logging.DEBUG, logger="fold_engine.registry"):
        registry.register(LANGUAGE_C, parser)

    assert registry.get(LANGUAGE_C) is parser
    assert "Replacing fold parser for c" in caplog.text


def test_unknown_languages_have_no_parser():
    registry = FoldParserManager()

    assert registry.get(None) is None
    assert registry.get("cobol") is None
    assert "cobol" not in registry
    assert len(registry) == 0


def test_contains():
    registry = FoldParserManager()
    registry.register("toy", CurlyFoldParser())

    assert "toy" in registry
    assert registry.languages() == ["toy"]
