"""Constants used across the fold-engine package."""

from __future__ import annotations

import sys

# End offset reported by folds whose closing delimiter was never found.
UNTERMINATED = sys.maxsize

# Language identifiers understood by the default parser registry and lexers.
LANGUAGE_C = "c"
LANGUAGE_CPLUSPLUS = "cpp"
LANGUAGE_CSHARP = "csharp"
LANGUAGE_CLOJURE = "clojure"
LANGUAGE_CSS = "css"
LANGUAGE_GROOVY = "groovy"
LANGUAGE_HTML = "html"
LANGUAGE_JAVA = "java"
LANGUAGE_JAVASCRIPT = "javascript"
LANGUAGE_JSON = "json"
LANGUAGE_JSP = "jsp"
LANGUAGE_LATEX = "latex"
LANGUAGE_LISP = "lisp"
LANGUAGE_MXML = "mxml"
LANGUAGE_NSIS = "nsis"
LANGUAGE_PERL = "perl"
LANGUAGE_PHP = "php"
LANGUAGE_SCALA = "scala"
LANGUAGE_XML = "xml"

DEFAULT_EXTENSIONS = {
    ".c": LANGUAGE_C,
    ".h": LANGUAGE_C,
    ".cc": LANGUAGE_CPLUSPLUS,
    ".cpp": LANGUAGE_CPLUSPLUS,
    ".cxx": LANGUAGE_CPLUSPLUS,
    ".hpp": LANGUAGE_CPLUSPLUS,
    ".cs": LANGUAGE_CSHARP,
    ".clj": LANGUAGE_CLOJURE,
    ".cljs": LANGUAGE_CLOJURE,
    ".css": LANGUAGE_CSS,
    ".groovy": LANGUAGE_GROOVY,
    ".gradle": LANGUAGE_GROOVY,
    ".htm": LANGUAGE_HTML,
    ".html": LANGUAGE_HTML,
    ".java": LANGUAGE_JAVA,
    ".js": LANGUAGE_JAVASCRIPT,
    ".mjs": LANGUAGE_JAVASCRIPT,
    ".json": LANGUAGE_JSON,
    ".jsp": LANGUAGE_JSP,
    ".tex": LANGUAGE_LATEX,
    ".lisp": LANGUAGE_LISP,
    ".lsp": LANGUAGE_LISP,
    ".el": LANGUAGE_LISP,
    ".mxml": LANGUAGE_MXML,
    ".nsi": LANGUAGE_NSIS,
    ".nsh": LANGUAGE_NSIS,
    ".pl": LANGUAGE_PERL,
    ".pm": LANGUAGE_PERL,
    ".php": LANGUAGE_PHP,
    ".scala": LANGUAGE_SCALA,
    ".xml": LANGUAGE_XML,
    ".xsd": LANGUAGE_XML,
    ".xsl": LANGUAGE_XML,
}

# HTML tags big enough to be worth folding.
FOLDABLE_HTML_TAGS = frozenset(
    {
        "body",
        "canvas",
        "div",
        "form",
        "head",
        "html",
        "ol",
        "pre",
        "script",
        "span",
        "style",
        "table",
        "tfoot",
        "thead",
        "tr",
        "td",
        "ul",
    }
)

DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024
