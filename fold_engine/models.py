"""Data models for fold-engine."""

from __future__ import annotations

from enum import Enum, IntEnum, auto


class FoldType(IntEnum):
    """Built-in fold types.

    Fold types are an open set: parsers for other languages may use any
    integer at or above `USER_DEFINED_MIN` (see `user_fold_type`). Every API
    that takes a fold type accepts such plain integers as well.

    Attributes:
        CODE: A block of code (braces, tags, environments, sections).
        COMMENT: A multi-line comment.
        IMPORTS: A group of consecutive import statements.
    """

    CODE = 0
    COMMENT = 1
    IMPORTS = 2


USER_DEFINED_MIN = 1000


def user_fold_type(value: int) -> int:
    """Validate and return a user-defined fold type.

    Args:
        value: Proposed fold type.

    Returns:
        int: `value`, unchanged.

    Raises:
        ValueError: If `value` would collide with the built-in types.

    Examples:
        REGION = user_fold_type(1000)
    """
    if isinstance(value, bool) or not isinstance(value, int) or value < USER_DEFINED_MIN:
        raise ValueError(f"User-defined fold types must be integers >= {USER_DEFINED_MIN}")
    return value


def fold_type_from_name(name: str | int) -> int:
    """Resolve a configuration name (``"code"``, ``"comment"``, ``"imports"``) to a fold type.

    Integers and digit strings are accepted for user-defined types.

    Raises:
        ValueError: If the name is unknown or the number is below
            `USER_DEFINED_MIN`.
    """
    if isinstance(name, int) and not isinstance(name, bool):
        return user_fold_type(name)
    key = str(name).strip()
    if key.isdigit():
        return user_fold_type(int(key))
    try:
        return FoldType[key.upper()]
    except KeyError as error:
        raise ValueError(f"Unknown fold type: {name!r}") from error


def fold_type_name(fold_type: int) -> str:
    """Human-readable name of a fold type, e.g. ``"code"`` or ``"1001"``."""
    try:
        return FoldType(fold_type).name.lower()
    except ValueError:
        return str(int(fold_type))


class LexerState(Enum):
    """Lexer states carried from the end of one line to the start of the next.

    Attributes:
        NORMAL: Default state for regular text.
        IN_MLC: Inside a ``/* */`` block comment.
        IN_DOC_COMMENT: Inside a ``/** */`` documentation comment.
        IN_TAG_NAME: Directly after ``<`` or ``</``, before the tag name.
        IN_TAG: Inside a markup tag, after its name.
        IN_MARKUP_COMMENT: Inside an ``<!-- -->`` comment.
        IN_JSP_COMMENT: Inside a ``<%-- --%>`` comment.
        IN_PROCESSING_INSTRUCTION: Inside a ``<? ?>`` processing instruction.
        IN_SUBLANGUAGE: Inside a PHP or JSP code region.
        IN_SUBLANGUAGE_MLC: Inside a block comment within a code region.
    """

    NORMAL = auto()
    IN_MLC = auto()
    IN_DOC_COMMENT = auto()
    IN_TAG_NAME = auto()
    IN_TAG = auto()
    IN_MARKUP_COMMENT = auto()
    IN_JSP_COMMENT = auto()
    IN_PROCESSING_INSTRUCTION = auto()
    IN_SUBLANGUAGE = auto()
    IN_SUBLANGUAGE_MLC = auto()
