"""Fold parsers: single-pass scanners that turn a token stream into a fold forest.

Every parser walks the document's tokens line by line, keeping a stack of the
folds that are still open. An opening delimiter pushes a new fold (as a child
of the innermost open fold, or at top level); a matching closing delimiter
closes and pops it. Folds that end on the line they started on are pruned the
moment they close. Closers with nothing to close are ignored and openers that
are never closed extend to the end of the document; malformed input never
raises.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from .constants import FOLDABLE_HTML_TAGS
from .document import Document
from .fold import Fold, ToggleCallback
from .models import FoldType
from .tokens import Token, TokenSource, TokenType

C_MLC_END = "*/"
KEYWORD_IMPORT = "import"

MARKUP_CLOSING_TAG_START = "</"
MARKUP_SHORT_TAG_END = "/>"
MARKUP_MLC_START = "<!--"
MARKUP_MLC_END = "-->"

PHP_START = "<?"
PHP_END = "?>"
JSP_START = "<%"
JSP_END = "%>"
JSP_COMMENT_START = "<%--"
JSP_COMMENT_END = "--%>"

LATEX_BEGIN = "\\begin"
LATEX_END = "\\end"

NSIS_FUNCTION = "Function"
NSIS_FUNCTION_END = "FunctionEnd"
NSIS_SECTION = "Section"
NSIS_SECTION_END = "SectionEnd"


class ParserContext:
    """Fold forest under construction plus the stack of still-open folds.

    Attributes:
        folds: Top-level folds discovered so far, in document order.
    """

    def __init__(self, document: Document, on_toggle: ToggleCallback | None = None):
        self.folds: list[Fold] = []
        self._document = document
        self._on_toggle = on_toggle
        self._open: list[Fold] = []

    @property
    def current(self) -> Fold | None:
        """Innermost open fold, or None at top level."""
        return self._open[-1] if self._open else None

    @property
    def depth(self) -> int:
        return len(self._open)

    def _create(self, fold_type: int, start_offset: int) -> Fold:
        parent = self.current
        if parent is None:
            fold = Fold(fold_type, self._document, start_offset, self._on_toggle)
            self.folds.append(fold)
        else:
            fold = parent.create_child(fold_type, start_offset)
        return fold

    def open_fold(self, fold_type: int, start_offset: int) -> Fold:
        """Start a fold under the innermost open fold and make it the innermost."""
        fold = self._create(fold_type, start_offset)
        self._open.append(fold)
        return fold

    def close_fold(self, end_offset: int) -> Fold | None:
        """Close the innermost open fold at `end_offset`.

        Returns:
            Fold | None: The closed fold, or None when nothing was open or the
                fold ended on its start line and was pruned.
        """
        if not self._open:
            return None
        fold = self._open.pop()
        fold.set_end_offset(end_offset)
        if fold.is_on_single_line():
            self._remove(fold)
            return None
        return fold

    def add_closed_fold(self, fold_type: int, start_offset: int, end_offset: int) -> Fold:
        """Add an already-complete fold under the innermost open fold."""
        fold = self._create(fold_type, start_offset)
        fold.set_end_offset(end_offset)
        return fold

    def discard_current(self) -> None:
        """Drop the innermost open fold without closing it."""
        if self._open:
            self._remove(self._open.pop())

    def _remove(self, fold: Fold) -> None:
        # A fold being closed is always the most recent child of its parent.
        if not fold.remove_from_parent():
            self.folds.pop()


class FoldParser(ABC):
    """Locates folds in a document for one family of languages."""

    @abstractmethod
    def get_folds(
        self,
        document: Document,
        source: TokenSource,
        on_toggle: ToggleCallback | None = None,
    ) -> list[Fold]:
        """Scan `source` and return the top-level folds, sorted by start offset.

        Args:
            document: Document the folds are anchored in.
            source: Per-line tokens of `document`.
            on_toggle: Callback every created fold invokes when its collapsed
                state changes.
        """

    def _tokens(self, source: TokenSource, line: int):
        token = source.get_token_list_for_line(line)
        while token is not None and token.is_paintable():
            yield token
            token = token.next_token


@dataclass
class _ImportGroup:
    start_line: int = -1
    last_line: int = -1
    start_offset: int = -1
    end_offset: int = -1

    @property
    def active(self) -> bool:
        return self.start_line > -1


@dataclass
class _CommentState:
    in_mlc: bool = False
    mlc_start: int = 0


class CurlyFoldParser(FoldParser):
    """Folds ``{ ... }`` blocks and ``/* ... */`` comments in C-like languages.

    Args:
        fold_comments: Whether multi-line ``/* */`` comments become folds.
        java: Whether runs of ``import`` statements are grouped into an
            imports fold.
    """

    def __init__(self, fold_comments: bool = True, java: bool = False):
        self.fold_comments = fold_comments
        self.java = java

    def is_left_curly(self, token: Token) -> bool:
        return token.is_left_curly()

    def is_right_curly(self, token: Token) -> bool:
        return token.is_right_curly()

    def get_folds(self, document, source, on_toggle=None):
        ctx = ParserContext(document, on_toggle)
        comment = _CommentState()
        imports = _ImportGroup()

        for line in range(document.line_count):
            for token in self._tokens(source, line):
                if self.fold_comments and token.is_comment():
                    if self.java:
                        imports = _flush_import_group(ctx, imports)
                    _scan_block_comment(ctx, comment, token, C_MLC_END)

                elif self.is_left_curly(token):
                    if self.java:
                        imports = _flush_import_group(ctx, imports)
                    ctx.open_fold(FoldType.CODE, token.offset)

                elif self.is_right_curly(token):
                    ctx.close_fold(token.offset)

                elif self.java:
                    if token.matches(TokenType.RESERVED_WORD, KEYWORD_IMPORT):
                        if not imports.active:
                            imports.start_line = line
                            imports.start_offset = token.offset
                            imports.end_offset = token.offset
                        imports.last_line = line
                    elif imports.active and token.is_single_char(";"):
                        imports.end_offset = token.offset

        return ctx.folds


def _flush_import_group(ctx: ParserContext, imports: _ImportGroup) -> _ImportGroup:
    # A lone import is not worth a fold.
    if imports.active and imports.last_line > imports.start_line:
        ctx.add_closed_fold(FoldType.IMPORTS, imports.start_offset, imports.end_offset)
    return _ImportGroup() if imports.active else imports


def _scan_block_comment(
    ctx: ParserContext, state: _CommentState, token: Token, end_marker: str
) -> None:
    """Track a block comment that starts on one line and ends on a later one."""
    if state.in_mlc:
        if token.ends_with(end_marker):
            mlc_end = token.offset + token.length - 1
            ctx.add_closed_fold(FoldType.COMMENT, state.mlc_start, mlc_end)
            state.in_mlc = False
            state.mlc_start = 0
    elif token.token_type != TokenType.COMMENT_EOL and not token.ends_with(end_marker):
        state.in_mlc = True
        state.mlc_start = token.offset


class LispFoldParser(CurlyFoldParser):
    """Folds parenthesized forms in Lisp dialects."""

    def is_left_curly(self, token: Token) -> bool:
        return token.is_single_char("(", TokenType.SEPARATOR)

    def is_right_curly(self, token: Token) -> bool:
        return token.is_single_char(")", TokenType.SEPARATOR)


OBJECT_BLOCK = "object"
ARRAY_BLOCK = "array"


class JsonFoldParser(FoldParser):
    """Folds JSON objects and arrays; ``}`` only closes an object and ``]`` only an array."""

    def get_folds(self, document, source, on_toggle=None):
        ctx = ParserContext(document, on_toggle)
        blocks: list[str] = []

        for line in range(document.line_count):
            for token in self._tokens(source, line):
                if token.is_left_curly():
                    ctx.open_fold(FoldType.CODE, token.offset)
                    blocks.append(OBJECT_BLOCK)
                elif token.is_right_curly() and _pop_off_top(blocks, OBJECT_BLOCK):
                    ctx.close_fold(token.offset)
                elif token.is_single_char("[", TokenType.SEPARATOR):
                    ctx.open_fold(FoldType.CODE, token.offset)
                    blocks.append(ARRAY_BLOCK)
                elif token.is_single_char("]", TokenType.SEPARATOR) and _pop_off_top(
                    blocks, ARRAY_BLOCK
                ):
                    ctx.close_fold(token.offset)

        return ctx.folds


def _pop_off_top(stack: list[str], value: str) -> bool:
    if stack and stack[-1] == value:
        stack.pop()
        return True
    return False


class XmlFoldParser(FoldParser):
    """Folds XML elements and multi-line ``<!-- -->`` comments."""

    def get_folds(self, document, source, on_toggle=None):
        ctx = ParserContext(document, on_toggle)
        comment = _CommentState()

        for line in range(document.line_count):
            for token in self._tokens(source, line):
                if token.is_comment():
                    if comment.in_mlc or token.token_type == TokenType.COMMENT_MULTILINE:
                        _scan_block_comment(ctx, comment, token, MARKUP_MLC_END)

                elif token.is_single_char("<", TokenType.MARKUP_TAG_DELIMITER):
                    ctx.open_fold(FoldType.CODE, token.offset)

                elif token.matches(TokenType.MARKUP_TAG_DELIMITER, MARKUP_SHORT_TAG_END):
                    ctx.discard_current()

                elif token.matches(TokenType.MARKUP_TAG_DELIMITER, MARKUP_CLOSING_TAG_START):
                    ctx.close_fold(token.offset)

        return ctx.folds


@dataclass
class TagCloseInfo:
    """Where the ``>`` or ``/>`` ending an opening tag was found.

    Attributes:
        close_token: The delimiter token, or None when the document ended first.
        line: Line of `close_token`, or -1 when the document ended first.
    """

    close_token: Token | None = None
    line: int = -1


@dataclass
class _HtmlState:
    tag_names: list[str] = field(default_factory=list)
    in_sublanguage: bool = False
    in_mlc: bool = False
    in_jsp_mlc: bool = False


class HtmlFoldParser(FoldParser):
    """Folds large HTML elements, comments, and embedded PHP or JSP regions.

    Only the tags in `FOLDABLE_HTML_TAGS` produce folds, and a closing tag only
    closes a fold when it names the most recently opened foldable tag.

    Args:
        language: One of `LANGUAGE_HTML`, `LANGUAGE_PHP`, or `LANGUAGE_JSP`.
    """

    LANGUAGE_HTML = -1
    LANGUAGE_PHP = 0
    LANGUAGE_JSP = 1

    _LANGUAGE_START = {LANGUAGE_PHP: PHP_START, LANGUAGE_JSP: JSP_START}
    _LANGUAGE_END = {LANGUAGE_PHP: PHP_END, LANGUAGE_JSP: JSP_END}

    def __init__(self, language: int = LANGUAGE_HTML):
        if language not in (self.LANGUAGE_HTML, self.LANGUAGE_PHP, self.LANGUAGE_JSP):
            raise ValueError(f"Invalid language: {language}")
        self.language = language

    def get_folds(self, document, source, on_toggle=None):
        ctx = ParserContext(document, on_toggle)
        state = _HtmlState()

        line = 0
        while line < document.line_count:
            token = source.get_token_list_for_line(line)
            resume_line = line
            while token is not None and token.is_paintable():
                if self._scan_sublanguage(ctx, state, token):
                    token = token.next_token
                    continue

                if not state.in_sublanguage:
                    if token.token_type == TokenType.COMMENT_MULTILINE:
                        self._scan_comment(ctx, state, token)

                    elif token.is_single_char("<", TokenType.MARKUP_TAG_DELIMITER):
                        tag_name_token = token.next_token
                        if _is_foldable_tag(tag_name_token):
                            info = self.get_tag_close_info(
                                tag_name_token, source, line, document.line_count
                            )
                            if info.close_token is None:
                                return ctx.folds
                            if info.close_token.is_single_char(
                                ">", TokenType.MARKUP_TAG_DELIMITER
                            ):
                                ctx.open_fold(FoldType.CODE, token.offset)
                                state.tag_names.append(tag_name_token.lexeme)
                            token = info.close_token
                            resume_line = info.line

                    elif token.matches(
                        TokenType.MARKUP_TAG_DELIMITER, MARKUP_CLOSING_TAG_START
                    ):
                        if ctx.current is not None:
                            tag_name_token = token.next_token
                            if _is_foldable_tag(tag_name_token) and _is_end_of_last_fold(
                                state.tag_names, tag_name_token
                            ):
                                state.tag_names.pop()
                                ctx.close_fold(token.offset)
                                token = tag_name_token

                token = token.next_token
            line = resume_line + 1

        return ctx.folds

    def _scan_sublanguage(self, ctx: ParserContext, state: _HtmlState, token: Token) -> bool:
        """Handle PHP/JSP start and end markers; True when `token` was consumed as an end marker."""
        if self.language < 0 or token.token_type != TokenType.SEPARATOR:
            return False
        if token.starts_with(self._LANGUAGE_START[self.language]):
            ctx.open_fold(FoldType.CODE, token.offset)
            state.in_sublanguage = True
            return False
        if token.starts_with(self._LANGUAGE_END[self.language]):
            if state.in_sublanguage:
                ctx.close_fold(token.offset + token.length - 1)
                state.in_sublanguage = False
            return True
        return False

    def _scan_comment(self, ctx: ParserContext, state: _HtmlState, token: Token) -> None:
        if state.in_mlc:
            if token.ends_with(MARKUP_MLC_END):
                ctx.close_fold(token.offset + token.length - 1)
                state.in_mlc = False
        elif state.in_jsp_mlc:
            if token.ends_with(JSP_COMMENT_END):
                ctx.close_fold(token.offset + token.length - 1)
                state.in_jsp_mlc = False
        elif token.starts_with(MARKUP_MLC_START) and not token.ends_with(MARKUP_MLC_END):
            ctx.open_fold(FoldType.COMMENT, token.offset)
            state.in_mlc = True
        elif (
            self.language == self.LANGUAGE_JSP
            and token.starts_with(JSP_COMMENT_START)
            and not token.ends_with(JSP_COMMENT_END)
        ):
            ctx.open_fold(FoldType.COMMENT, token.offset)
            state.in_jsp_mlc = True

    @staticmethod
    def get_tag_close_info(
        tag_name_token: Token, source: TokenSource, line: int, line_count: int
    ) -> TagCloseInfo:
        """Find the delimiter ending the tag whose name is `tag_name_token`.

        The search continues onto later lines when the tag spans several.
        """
        token = tag_name_token.next_token
        while True:
            while token is not None and token.token_type != TokenType.MARKUP_TAG_DELIMITER:
                token = token.next_token
            if token is not None:
                return TagCloseInfo(close_token=token, line=line)
            line += 1
            if line >= line_count:
                return TagCloseInfo()
            token = source.get_token_list_for_line(line)


def _is_foldable_tag(tag_name_token: Token | None) -> bool:
    return tag_name_token is not None and tag_name_token.lexeme.lower() in FOLDABLE_HTML_TAGS


def _is_end_of_last_fold(tag_names: list[str], tag_name_token: Token | None) -> bool:
    if tag_name_token is None or not tag_names:
        return False
    return tag_name_token.lexeme.lower() == tag_names[-1].lower()


class LatexFoldParser(FoldParser):
    """Folds ``\\begin{env} ... \\end{env}`` environments."""

    def get_folds(self, document, source, on_toggle=None):
        ctx = ParserContext(document, on_toggle)
        expected: list[str] = []

        for line in range(document.line_count):
            token = source.get_token_list_for_line(line)
            while token is not None and token.is_paintable():
                if token.matches(TokenType.RESERVED_WORD, LATEX_BEGIN):
                    name_token = _environment_name(token)
                    if name_token is not None:
                        ctx.open_fold(FoldType.CODE, token.offset)
                        expected.append(name_token.lexeme)
                        token = name_token

                elif (
                    token.matches(TokenType.RESERVED_WORD, LATEX_END)
                    and ctx.current is not None
                    and expected
                ):
                    name_token = _environment_name(token)
                    if name_token is not None and expected[-1] == name_token.lexeme:
                        expected.pop()
                        ctx.close_fold(token.offset)
                        token = name_token

                token = token.next_token

        return ctx.folds


def _environment_name(keyword: Token) -> Token | None:
    """Return the name token in ``\\begin{name}`` / ``\\end{name}``, if well formed."""
    brace = keyword.next_token
    if brace is None or not brace.is_left_curly():
        return None
    name = brace.next_token
    if name is None or name.token_type != TokenType.RESERVED_WORD:
        return None
    return name


class NsisFoldParser(FoldParser):
    """Folds NSIS ``Section``/``Function`` blocks and ``/* */`` comments."""

    _END_KEYWORD_FOR = {NSIS_SECTION: NSIS_SECTION_END, NSIS_FUNCTION: NSIS_FUNCTION_END}

    def get_folds(self, document, source, on_toggle=None):
        ctx = ParserContext(document, on_toggle)
        comment = _CommentState()
        end_words: list[str] = []

        for line in range(document.line_count):
            for token in self._tokens(source, line):
                if token.is_comment():
                    _scan_block_comment(ctx, comment, token, C_MLC_END)

                elif (
                    token.token_type == TokenType.RESERVED_WORD
                    and token.lexeme in self._END_KEYWORD_FOR
                ):
                    ctx.open_fold(FoldType.CODE, token.offset)
                    end_words.append(self._END_KEYWORD_FOR[token.lexeme])

                elif _found_end_keyword(NSIS_SECTION_END, token, end_words) or _found_end_keyword(
                    NSIS_FUNCTION_END, token, end_words
                ):
                    if ctx.current is not None:
                        end_words.pop()
                        ctx.close_fold(token.offset)

        return ctx.folds


def _found_end_keyword(keyword: str, token: Token, end_words: list[str]) -> bool:
    return (
        token.matches(TokenType.RESERVED_WORD, keyword)
        and bool(end_words)
        and end_words[-1] == keyword
    )
