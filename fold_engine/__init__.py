"""
fold-engine: code folding for source documents.

This package can be used both as a CLI tool and as a library.

CLI Usage:
    fold-engine src/Main.java --format outline

Library Usage:
    from fold_engine import Document, FoldManager, LexerTokenSource

    document = Document(source_text, language="java")
    manager = FoldManager(document, LexerTokenSource(document))
    fold = manager.get_fold_for_line(2)
    fold.set_collapsed(True)
    manager.is_line_hidden(3)
"""

from .actions import (
    change_fold_state,
    collapse_all_comment_folds,
    collapse_all_folds,
    expand_all_folds,
    get_closest_fold,
    toggle_current_fold,
)
from .collapser import FoldCollapser
from .config import ConfigError, FoldConfig, build_config, load_config
from .constants import UNTERMINATED
from .document import Document, Position
from .events import Event, EventBroker, FoldsUpdated, FoldToggled
from .exceptions import BadLocationError, FoldingError, InvalidFoldRangeError
from .fold import Fold
from .lexer import LexerTokenSource, lexer_for_language
from .manager import FoldManager
from .models import USER_DEFINED_MIN, FoldType, user_fold_type
from .parsers import (
    CurlyFoldParser,
    FoldParser,
    HtmlFoldParser,
    JsonFoldParser,
    LatexFoldParser,
    LispFoldParser,
    NsisFoldParser,
    XmlFoldParser,
)
from .registry import FoldParserManager
from .tokens import Token, TokenSource, TokenType

__version__ = "0.1.0"

__all__ = [
    # Core functionality
    "Fold",
    "FoldManager",
    "FoldParserManager",
    "FoldCollapser",
    "Document",
    "Position",
    "LexerTokenSource",
    "lexer_for_language",
    # Parsers
    "FoldParser",
    "CurlyFoldParser",
    "HtmlFoldParser",
    "JsonFoldParser",
    "LatexFoldParser",
    "LispFoldParser",
    "NsisFoldParser",
    "XmlFoldParser",
    # Actions
    "change_fold_state",
    "collapse_all_comment_folds",
    "collapse_all_folds",
    "expand_all_folds",
    "get_closest_fold",
    "toggle_current_fold",
    # Data models
    "FoldType",
    "USER_DEFINED_MIN",
    "user_fold_type",
    "Token",
    "TokenSource",
    "TokenType",
    "UNTERMINATED",
    # Events
    "Event",
    "EventBroker",
    "FoldsUpdated",
    "FoldToggled",
    # Configuration
    "FoldConfig",
    "build_config",
    "load_config",
    # Exceptions
    "BadLocationError",
    "ConfigError",
    "FoldingError",
    "InvalidFoldRangeError",
    # Version
    "__version__",
]
