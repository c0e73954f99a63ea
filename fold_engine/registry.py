"""Registry mapping language identifiers to fold parsers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .constants import (
    LANGUAGE_C,
    LANGUAGE_CLOJURE,
    LANGUAGE_CPLUSPLUS,
    LANGUAGE_CSHARP,
    LANGUAGE_CSS,
    LANGUAGE_GROOVY,
    LANGUAGE_HTML,
    LANGUAGE_JAVA,
    LANGUAGE_JAVASCRIPT,
    LANGUAGE_JSON,
    LANGUAGE_JSP,
    LANGUAGE_LATEX,
    LANGUAGE_LISP,
    LANGUAGE_MXML,
    LANGUAGE_NSIS,
    LANGUAGE_PERL,
    LANGUAGE_PHP,
    LANGUAGE_SCALA,
    LANGUAGE_XML,
)
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

if TYPE_CHECKING:
    from .config import FoldConfig

logger = logging.getLogger(__name__)

CURLY_LANGUAGES = (
    LANGUAGE_C,
    LANGUAGE_CPLUSPLUS,
    LANGUAGE_CSHARP,
    LANGUAGE_CSS,
    LANGUAGE_GROOVY,
    LANGUAGE_JAVASCRIPT,
    LANGUAGE_PERL,
    LANGUAGE_SCALA,
)


class FoldParserManager:
    """Language identifier -> `FoldParser` table.

    Registering a parser for a language that already has one replaces it.
    Instances are passed to each `FoldManager` explicitly; build one with the
    built-in parsers via `with_defaults`.
    """

    def __init__(self):
        self._parsers: dict[str, FoldParser] = {}

    @classmethod
    def with_defaults(cls, config: FoldConfig | None = None) -> FoldParserManager:
        """Create a registry seeded with a parser for every built-in language.

        Args:
            config: Controls comment folding and Java import grouping for the
                curly-brace parsers. Defaults apply when None.

        Returns:
            FoldParserManager: The populated registry.
        """
        fold_comments = True if config is None else config.fold_comments
        group_imports = True if config is None else config.group_imports

        registry = cls()
        curly = CurlyFoldParser(fold_comments=fold_comments)
        for language in CURLY_LANGUAGES:
            registry.register(language, curly)
        registry.register(
            LANGUAGE_JAVA, CurlyFoldParser(fold_comments=fold_comments, java=group_imports)
        )

        lisp = LispFoldParser()
        registry.register(LANGUAGE_CLOJURE, lisp)
        registry.register(LANGUAGE_LISP, lisp)

        registry.register(LANGUAGE_HTML, HtmlFoldParser(HtmlFoldParser.LANGUAGE_HTML))
        registry.register(LANGUAGE_PHP, HtmlFoldParser(HtmlFoldParser.LANGUAGE_PHP))
        registry.register(LANGUAGE_JSP, HtmlFoldParser(HtmlFoldParser.LANGUAGE_JSP))

        registry.register(LANGUAGE_JSON, JsonFoldParser())
        registry.register(LANGUAGE_LATEX, LatexFoldParser())

        xml = XmlFoldParser()
        registry.register(LANGUAGE_MXML, xml)
        registry.register(LANGUAGE_XML, xml)

        registry.register(LANGUAGE_NSIS, NsisFoldParser())
        return registry

    def register(self, language: str, parser: FoldParser) -> None:
        if language in self._parsers:
            logger.debug("Replacing fold parser for %s with %s", language, type(parser).__name__)
        else:
            logger.debug("Registering fold parser %s for %s", type(parser).__name__, language)
        self._parsers[language] = parser

    def get(self, language: str | None) -> FoldParser | None:
        """Return the parser for `language`, or None when folding is unsupported."""
        if language is None:
            return None
        return self._parsers.get(language)

    def languages(self) -> list[str]:
        return sorted(self._parsers)

    def __contains__(self, language: object) -> bool:
        return language in self._parsers

    def __len__(self) -> int:
        return len(self._parsers)
