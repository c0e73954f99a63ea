from __future__ import annotations

import pytest
from click.testing import CliRunner

from fold_engine.config import FoldConfig
from fold_engine.document import Document
from fold_engine.lexer import LexerTokenSource
from fold_engine.manager import FoldManager

JAVA_SOURCE = "import a.B;\nimport a.C;\nclass X {\n  void m() {\n    // comment\n  }\n}"


@pytest.fixture()
def cli_runner() -> CliRunner:
    """Provides a reusable Click CLI runner."""
    return CliRunner()


def make_manager(text: str, language: str | None, config: FoldConfig | None = None) -> FoldManager:
    document = Document(text, language)
    return FoldManager(document, LexerTokenSource(document), config=config)


def fold_lines(folds) -> list[tuple[str, int, int, list]]:
    """Summarize a forest as nested ``(type, start_line, end_line, children)`` tuples."""
    return [
        (fold.as_dict()["type"], fold.start_line, fold.end_line, fold_lines(fold.children))
        for fold in folds
    ]


@pytest.fixture()
def java_manager() -> FoldManager:
    return make_manager(JAVA_SOURCE, "java")
