"""Lightweight lexers that feed the fold parsers.

These are not syntax highlighters: they classify just enough of each language
(comments, strings, delimiters, tags, keywords) for fold discovery to be
accurate. Multi-line constructs are tracked with a `LexerState` carried from
the end of one line to the start of the next.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod

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
from .document import Document
from .models import LexerState
from .tokens import Token, TokenType, link_tokens

logger = logging.getLogger(__name__)

WHITESPACE_PATTERN = re.compile(r"\s+")
IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_$][\w$]*")
NUMBER_PATTERN = re.compile(r"0[xX][0-9a-fA-F]+|\d+(?:\.\d+)?(?:[eE][+-]?\d+)?[fFdDlL]?")
C_SEPARATORS = "{}()[];,"

JAVA_RESERVED_WORDS = frozenset(
    """
    abstract assert boolean break byte case catch char class const continue default do
    double else enum extends final finally float for goto if implements import instanceof
    int interface long native new package private protected public return short static
    strictfp super switch synchronized this throw throws transient try void volatile while
    true false null
    """.split()
)
C_RESERVED_WORDS = frozenset(
    """
    auto break case char class const continue default delete do double else enum extern
    float for function goto if inline int let long namespace new private protected public
    return short signed sizeof static struct switch template this typedef union unsigned
    using var virtual void volatile while
    """.split()
)
LISP_RESERVED_WORDS = frozenset("defun defn defmacro defvar def let lambda fn if cond".split())
NSIS_KEYWORDS = frozenset(
    """
    Section SectionEnd SectionGroup SectionGroupEnd Function FunctionEnd PageEx PageExEnd
    Name OutFile InstallDir RequestExecutionLevel SetOutPath File Delete RMDir Call Return
    MessageBox WriteRegStr ReadRegStr DeleteRegKey CreateShortCut WriteUninstaller Exec
    ExecWait StrCpy IntOp Goto Abort Quit
    """.split()
)


def _scan_quoted(text: str, pos: int) -> int:
    """Return the index just past the string literal starting at `pos` (or end of line)."""
    quote = text[pos]
    index = pos + 1
    while index < len(text):
        char = text[index]
        if char == "\\":
            index += 2
            continue
        if char == quote:
            return index + 1
        index += 1
    return len(text)


class Lexer(ABC):
    """Splits one line at a time into classified tokens."""

    def tokenize_line(
        self, text: str, line_offset: int, state: LexerState
    ) -> tuple[list[Token], LexerState]:
        """Tokenize `text`, a single line without its newline.

        Args:
            text: The line's content.
            line_offset: Document offset of the line's first character.
            state: State left over from the end of the previous line.

        Returns:
            tuple[list[Token], LexerState]: Tokens in order and the state to
                carry into the next line.
        """
        tokens: list[Token] = []
        pos = 0
        while pos < len(text):
            token_type, end, state = self.next_token(text, pos, state)
            tokens.append(Token(text[pos:end], line_offset + pos, token_type))
            pos = end
        return tokens, self.end_of_line_state(state)

    @abstractmethod
    def next_token(self, text: str, pos: int, state: LexerState) -> tuple[TokenType, int, LexerState]:
        """Classify the token starting at `pos`; returns its type, end index, and the new state."""

    def end_of_line_state(self, state: LexerState) -> LexerState:
        return state


class CLexer(Lexer):
    """Lexer for C-family languages (and the code parts of PHP and JSP).

    Args:
        line_comments: Prefixes that start a comment running to end of line.
        reserved_words: Words classified as `RESERVED_WORD`.
        block_comments: Whether ``/* */`` comments are recognized.
        preprocessor: Whether ``#`` at the start of a line begins a
            preprocessor directive.
    """

    identifier_pattern = IDENTIFIER_PATTERN

    def __init__(
        self,
        line_comments: tuple[str, ...] = ("//",),
        reserved_words: frozenset[str] = C_RESERVED_WORDS,
        block_comments: bool = True,
        preprocessor: bool = False,
    ):
        self.line_comments = line_comments
        self.reserved_words = reserved_words
        self.block_comments = block_comments
        self.preprocessor = preprocessor

    def next_token(self, text, pos, state):
        if state in (LexerState.IN_MLC, LexerState.IN_DOC_COMMENT):
            token_type = (
                TokenType.COMMENT_DOCUMENTATION
                if state is LexerState.IN_DOC_COMMENT
                else TokenType.COMMENT_MULTILINE
            )
            close = text.find("*/", pos)
            if close == -1:
                return token_type, len(text), state
            return token_type, close + 2, LexerState.NORMAL

        match = WHITESPACE_PATTERN.match(text, pos)
        if match:
            return TokenType.WHITESPACE, match.end(), state

        if self.preprocessor and text[pos] == "#" and not text[:pos].strip():
            return TokenType.PREPROCESSOR, len(text), state

        for prefix in self.line_comments:
            if text.startswith(prefix, pos):
                return TokenType.COMMENT_EOL, len(text), state

        if self.block_comments and text.startswith("/*", pos):
            is_doc = text.startswith("/**", pos) and not text.startswith("/**/", pos)
            token_type = TokenType.COMMENT_DOCUMENTATION if is_doc else TokenType.COMMENT_MULTILINE
            close = text.find("*/", pos + 2)
            if close == -1:
                return (
                    token_type,
                    len(text),
                    LexerState.IN_DOC_COMMENT if is_doc else LexerState.IN_MLC,
                )
            return token_type, close + 2, state

        char = text[pos]
        if char == '"':
            return TokenType.LITERAL_STRING_DOUBLE_QUOTE, _scan_quoted(text, pos), state
        if char == "'":
            return TokenType.LITERAL_CHAR, _scan_quoted(text, pos), state
        if char == "`":
            return TokenType.LITERAL_BACKQUOTE, _scan_quoted(text, pos), state

        match = self.identifier_pattern.match(text, pos)
        if match:
            if match.group() in self.reserved_words:
                return TokenType.RESERVED_WORD, match.end(), state
            return TokenType.IDENTIFIER, match.end(), state

        match = NUMBER_PATTERN.match(text, pos)
        if match:
            return TokenType.LITERAL_NUMBER_DECIMAL_INT, match.end(), state

        if char in C_SEPARATORS:
            return TokenType.SEPARATOR, pos + 1, state
        if char == "@":
            match = IDENTIFIER_PATTERN.match(text, pos + 1)
            if match:
                return TokenType.ANNOTATION, match.end(), state
        return TokenType.OPERATOR, pos + 1, state


class NsisLexer(CLexer):
    """Lexer for NSIS installer scripts."""

    identifier_pattern = re.compile(r"[A-Za-z_.!][\w.!]*")
    variable_pattern = re.compile(r"\$\{[^}\s]*\}?|\$[\w.]+")

    def __init__(self):
        super().__init__(line_comments=(";", "#"), reserved_words=NSIS_KEYWORDS)

    def next_token(self, text, pos, state):
        if state is LexerState.NORMAL and text[pos] == "$":
            match = self.variable_pattern.match(text, pos)
            if match:
                return TokenType.VARIABLE, match.end(), state
        return super().next_token(text, pos, state)


class LispLexer(Lexer):
    """Lexer for Lisp dialects; every bracket is a separator."""

    symbol_pattern = re.compile(r"[^\s()\[\]{}\";]+")

    def next_token(self, text, pos, state):
        match = WHITESPACE_PATTERN.match(text, pos)
        if match:
            return TokenType.WHITESPACE, match.end(), state
        char = text[pos]
        if char == ";":
            return TokenType.COMMENT_EOL, len(text), state
        if char == '"':
            return TokenType.LITERAL_STRING_DOUBLE_QUOTE, _scan_quoted(text, pos), state
        if char in "()[]{}":
            return TokenType.SEPARATOR, pos + 1, state
        match = self.symbol_pattern.match(text, pos)
        word = match.group()
        if word in LISP_RESERVED_WORDS:
            return TokenType.RESERVED_WORD, match.end(), state
        return TokenType.IDENTIFIER, match.end(), state


class JsonLexer(Lexer):
    """Lexer for JSON documents."""

    number_pattern = re.compile(r"-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?")
    literal_pattern = re.compile(r"(?:true|false|null)\b")
    junk_pattern = re.compile(r"[^\s{}\[\]:,\"]+")

    def next_token(self, text, pos, state):
        match = WHITESPACE_PATTERN.match(text, pos)
        if match:
            return TokenType.WHITESPACE, match.end(), state
        char = text[pos]
        if char == '"':
            return TokenType.LITERAL_STRING_DOUBLE_QUOTE, _scan_quoted(text, pos), state
        if char in "{}[]:,":
            return TokenType.SEPARATOR, pos + 1, state
        match = self.number_pattern.match(text, pos)
        if match:
            return TokenType.LITERAL_NUMBER_DECIMAL_INT, match.end(), state
        match = self.literal_pattern.match(text, pos)
        if match:
            return TokenType.LITERAL_BOOLEAN, match.end(), state
        match = self.junk_pattern.match(text, pos)
        return TokenType.ERROR_IDENTIFIER, match.end(), state


class MarkupLexer(Lexer):
    """Lexer for XML and HTML, optionally with embedded PHP or JSP code.

    Args:
        sublanguage: None for plain markup, or `LANGUAGE_PHP` / `LANGUAGE_JSP`.
    """

    tag_name_pattern = re.compile(r"[A-Za-z_:][\w:.\-]*")
    attribute_pattern = re.compile(r"[^\s=>/\"']+")
    text_pattern = re.compile(r"[^<\s]+")
    php_start_pattern = re.compile(r"<\?(?:php|=)?")
    jsp_start_pattern = re.compile(r"<%[!=@]?")

    def __init__(self, sublanguage: str | None = None):
        if sublanguage not in (None, LANGUAGE_PHP, LANGUAGE_JSP):
            raise ValueError(f"Unsupported sublanguage: {sublanguage}")
        self.sublanguage = sublanguage
        self._code_lexer = CLexer(
            line_comments=("//", "#") if sublanguage == LANGUAGE_PHP else ("//",),
            reserved_words=JAVA_RESERVED_WORDS if sublanguage == LANGUAGE_JSP else C_RESERVED_WORDS,
        )
        self._end_marker = "?>" if sublanguage == LANGUAGE_PHP else "%>"

    def next_token(self, text, pos, state):
        if state is LexerState.IN_MARKUP_COMMENT:
            return self._until(text, pos, "-->", TokenType.COMMENT_MULTILINE, state)
        if state is LexerState.IN_JSP_COMMENT:
            return self._until(text, pos, "--%>", TokenType.COMMENT_MULTILINE, state)
        if state is LexerState.IN_PROCESSING_INSTRUCTION:
            return self._until(text, pos, "?>", TokenType.MARKUP_PROCESSING_INSTRUCTION, state)
        if state in (LexerState.IN_SUBLANGUAGE, LexerState.IN_SUBLANGUAGE_MLC):
            return self._next_code_token(text, pos, state)
        if state is LexerState.IN_TAG_NAME:
            match = self.tag_name_pattern.match(text, pos)
            if match:
                return TokenType.MARKUP_TAG_NAME, match.end(), LexerState.IN_TAG
            state = LexerState.IN_TAG
        if state is LexerState.IN_TAG:
            return self._next_tag_token(text, pos, state)
        return self._next_text_token(text, pos, state)

    def end_of_line_state(self, state):
        if state is LexerState.IN_TAG_NAME:
            return LexerState.IN_TAG
        return state

    def _until(self, text, pos, marker, token_type, state):
        close = text.find(marker, pos)
        if close == -1:
            return token_type, len(text), state
        return token_type, close + len(marker), LexerState.NORMAL

    def _next_text_token(self, text, pos, state):
        if self.sublanguage == LANGUAGE_JSP:
            if text.startswith("<%--", pos):
                close = text.find("--%>", pos + 4)
                if close == -1:
                    return TokenType.COMMENT_MULTILINE, len(text), LexerState.IN_JSP_COMMENT
                return TokenType.COMMENT_MULTILINE, close + 4, state
            match = self.jsp_start_pattern.match(text, pos)
            if match:
                return TokenType.SEPARATOR, match.end(), LexerState.IN_SUBLANGUAGE
        elif self.sublanguage == LANGUAGE_PHP:
            match = self.php_start_pattern.match(text, pos)
            if match:
                return TokenType.SEPARATOR, match.end(), LexerState.IN_SUBLANGUAGE

        if text.startswith("<!--", pos):
            close = text.find("-->", pos + 4)
            if close == -1:
                return TokenType.COMMENT_MULTILINE, len(text), LexerState.IN_MARKUP_COMMENT
            return TokenType.COMMENT_MULTILINE, close + 3, state
        if text.startswith("<?", pos):
            close = text.find("?>", pos + 2)
            if close == -1:
                return (
                    TokenType.MARKUP_PROCESSING_INSTRUCTION,
                    len(text),
                    LexerState.IN_PROCESSING_INSTRUCTION,
                )
            return TokenType.MARKUP_PROCESSING_INSTRUCTION, close + 2, state
        if text.startswith("<!", pos):
            close = text.find(">", pos + 2)
            end = len(text) if close == -1 else close + 1
            return TokenType.MARKUP_PROCESSING_INSTRUCTION, end, state
        if text.startswith("</", pos):
            return TokenType.MARKUP_TAG_DELIMITER, pos + 2, LexerState.IN_TAG_NAME
        if text.startswith("<", pos) and self.tag_name_pattern.match(text, pos + 1):
            return TokenType.MARKUP_TAG_DELIMITER, pos + 1, LexerState.IN_TAG_NAME

        match = WHITESPACE_PATTERN.match(text, pos)
        if match:
            return TokenType.WHITESPACE, match.end(), state
        match = self.text_pattern.match(text, pos)
        if match:
            return TokenType.IDENTIFIER, match.end(), state
        # A "<" that starts nothing.
        return TokenType.IDENTIFIER, pos + 1, state

    def _next_tag_token(self, text, pos, state):
        match = WHITESPACE_PATTERN.match(text, pos)
        if match:
            return TokenType.WHITESPACE, match.end(), state
        if text.startswith("/>", pos):
            return TokenType.MARKUP_TAG_DELIMITER, pos + 2, LexerState.NORMAL
        char = text[pos]
        if char == ">":
            return TokenType.MARKUP_TAG_DELIMITER, pos + 1, LexerState.NORMAL
        if char == "=":
            return TokenType.OPERATOR, pos + 1, state
        if char in "\"'":
            return TokenType.MARKUP_TAG_ATTRIBUTE_VALUE, _scan_quoted(text, pos), state
        match = self.attribute_pattern.match(text, pos)
        if match:
            return TokenType.MARKUP_TAG_ATTRIBUTE, match.end(), state
        return TokenType.OPERATOR, pos + 1, state

    def _next_code_token(self, text, pos, state):
        if state is LexerState.IN_SUBLANGUAGE_MLC:
            token_type, end, code_state = self._code_lexer.next_token(
                text, pos, LexerState.IN_MLC
            )
        else:
            if text.startswith(self._end_marker, pos):
                return TokenType.SEPARATOR, pos + len(self._end_marker), LexerState.NORMAL
            # Code tokens never run past the end marker.
            limit = text.find(self._end_marker, pos)
            segment = text if limit == -1 else text[:limit]
            token_type, end, code_state = self._code_lexer.next_token(
                segment, pos, LexerState.NORMAL
            )
        if code_state is LexerState.NORMAL:
            return token_type, end, LexerState.IN_SUBLANGUAGE
        return token_type, end, LexerState.IN_SUBLANGUAGE_MLC


class LatexLexer(Lexer):
    """Lexer for LaTeX; environment names after ``\\begin{``/``\\end{`` are reserved words."""

    command_pattern = re.compile(r"\\(?:[A-Za-z@]+|.)?")
    environment_pattern = re.compile(r"[A-Za-z@*:\-]+")
    word_pattern = re.compile(r"[^\s\\{}\[\]%$&]+")

    def tokenize_line(self, text, line_offset, state):
        tokens: list[Token] = []
        # 0: nothing pending, 1: saw \begin or \end, 2: saw its "{"
        pending = 0
        pos = 0
        while pos < len(text):
            if pending == 2:
                match = self.environment_pattern.match(text, pos)
                if match:
                    tokens.append(Token(match.group(), line_offset + pos, TokenType.RESERVED_WORD))
                    pos = match.end()
                    pending = 0
                    continue
            token_type, end, state = self.next_token(text, pos, state)
            lexeme = text[pos:end]
            tokens.append(Token(lexeme, line_offset + pos, token_type))
            if token_type == TokenType.RESERVED_WORD:
                pending = 1
            elif pending == 1 and lexeme == "{":
                pending = 2
            else:
                pending = 0
            pos = end
        return tokens, state

    def next_token(self, text, pos, state):
        match = WHITESPACE_PATTERN.match(text, pos)
        if match:
            return TokenType.WHITESPACE, match.end(), state
        char = text[pos]
        if char == "%":
            return TokenType.COMMENT_EOL, len(text), state
        match = self.command_pattern.match(text, pos)
        if match:
            if match.group() in ("\\begin", "\\end"):
                return TokenType.RESERVED_WORD, match.end(), state
            return TokenType.FUNCTION, match.end(), state
        if char in "{}[]":
            return TokenType.SEPARATOR, pos + 1, state
        if char in "$&":
            return TokenType.OPERATOR, pos + 1, state
        match = self.word_pattern.match(text, pos)
        return TokenType.IDENTIFIER, match.end(), state


def lexer_for_language(language: str | None) -> Lexer | None:
    """Return a lexer for `language`, or None when the language is unknown."""
    factory = _LEXER_FACTORIES.get(language) if language else None
    return factory() if factory is not None else None


_LEXER_FACTORIES = {
    LANGUAGE_C: lambda: CLexer(preprocessor=True),
    LANGUAGE_CPLUSPLUS: lambda: CLexer(preprocessor=True),
    LANGUAGE_CSHARP: lambda: CLexer(preprocessor=True),
    LANGUAGE_CSS: lambda: CLexer(line_comments=()),
    LANGUAGE_GROOVY: CLexer,
    LANGUAGE_JAVA: lambda: CLexer(reserved_words=JAVA_RESERVED_WORDS),
    LANGUAGE_JAVASCRIPT: CLexer,
    LANGUAGE_PERL: lambda: CLexer(line_comments=("#",), block_comments=False),
    LANGUAGE_SCALA: CLexer,
    LANGUAGE_CLOJURE: LispLexer,
    LANGUAGE_LISP: LispLexer,
    LANGUAGE_JSON: JsonLexer,
    LANGUAGE_XML: MarkupLexer,
    LANGUAGE_MXML: MarkupLexer,
    LANGUAGE_HTML: MarkupLexer,
    LANGUAGE_PHP: lambda: MarkupLexer(LANGUAGE_PHP),
    LANGUAGE_JSP: lambda: MarkupLexer(LANGUAGE_JSP),
    LANGUAGE_LATEX: LatexLexer,
    LANGUAGE_NSIS: NsisLexer,
}


def tokenize_document(document: Document, lexer: Lexer) -> list[Token | None]:
    """Tokenize every line of `document`; each entry is the head of that line's token chain."""
    heads: list[Token | None] = []
    state = LexerState.NORMAL
    for line in range(document.line_count):
        tokens, state = lexer.tokenize_line(
            document.get_line_text(line), document.get_line_start_offset(line), state
        )
        heads.append(link_tokens(tokens))
    return heads


class LexerTokenSource:
    """Token source backed by `lexer_for_language(document.language)`.

    The whole document is re-tokenized lazily the first time a line is
    requested after an edit or a language change.
    """

    def __init__(self, document: Document):
        self._document = document
        self._lines: list[Token | None] = []
        self._cache_key: tuple[int, str | None] | None = None

    def get_token_list_for_line(self, line: int) -> Token | None:
        self._refresh()
        if 0 <= line < len(self._lines):
            return self._lines[line]
        return None

    def _refresh(self) -> None:
        key = (self._document.version, self._document.language)
        if key == self._cache_key:
            return
        lexer = lexer_for_language(self._document.language)
        if lexer is None:
            self._lines = []
        else:
            self._lines = tokenize_document(self._document, lexer)
        self._cache_key = key
        logger.debug(
            "Tokenized %d lines as %s (version %d)",
            len(self._lines),
            self._document.language,
            self._document.version,
        )
