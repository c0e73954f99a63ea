"""Fold settings read from ``pyproject.toml`` or ``.fold-engine.toml``."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
import tomllib

from .constants import DEFAULT_MAX_FILE_SIZE
from .models import fold_type_from_name

logger = logging.getLogger(__name__)

# Per directory, each file is tried in order along with the tables it may hold.
_CONFIG_SOURCES: tuple[tuple[str, tuple[tuple[str, ...], ...]], ...] = (
    ("pyproject.toml", (("tool", "fold-engine"),)),
    (".fold-engine.toml", (("fold-engine",), ("tool", "fold-engine"))),
)

_BOOLEAN_FIELDS = ("enabled", "fold_comments", "group_imports")


@dataclass
class FoldConfig:
    """Settings that shape which folds are found and how they start out.

    Attributes:
        enabled: Whether code folding is turned on.
        fold_comments: Whether multi-line ``/* */`` comments become folds in
            curly-brace languages.
        group_imports: Whether runs of Java ``import`` statements are grouped
            into a single fold.
        collapse_types: Fold types collapsed right after the first parse
            (``"code"``, ``"comment"``, ``"imports"``, or integers >= 1000).
        extensions: Extra file suffix to language mappings, e.g.
            ``{".jsx": "javascript"}``.
        max_file_size: Largest source file, in bytes, the CLI will read.

    Examples:
        FoldConfig(collapse_types=["comment"], group_imports=False)
    """

    # Folding
    enabled: bool = True
    fold_comments: bool = True
    group_imports: bool = True
    collapse_types: list[str | int] = field(default_factory=list)

    # Languages
    extensions: dict[str, str] = field(default_factory=dict)

    # Limits
    max_file_size: int = DEFAULT_MAX_FILE_SIZE


class ConfigError(ValueError):
    """A settings table is malformed or holds a value of the wrong shape."""


def load_config(search_path: Path) -> FoldConfig:
    """Find the closest fold settings at or above `search_path`.

    Each directory, starting at `search_path` and moving toward the root, is
    checked for a ``[tool.fold-engine]`` table in `pyproject.toml`, then for a
    ``[fold-engine]`` or ``[tool.fold-engine]`` table in `.fold-engine.toml`.
    The first table found wins, even an empty one. Files that cannot be read
    or parsed are skipped.

    Args:
        search_path: Directory to start from.

    Returns:
        FoldConfig: The settings found, or the defaults.

    Raises:
        ConfigError: If the winning table is not a table or has unknown keys.

    Examples:
        load_config(Path("src"))
    """
    start = search_path.resolve()
    for directory in (start, *start.parents):
        for filename, table_paths in _CONFIG_SOURCES:
            config = _config_from_file(directory / filename, table_paths)
            if config is not None:
                return normalize_config(config)
    return FoldConfig()


def _config_from_file(
    config_file: Path, table_paths: tuple[tuple[str, ...], ...]
) -> FoldConfig | None:
    data = _read_toml(config_file)
    if data is None:
        return None

    for table_path in table_paths:
        found, table = _lookup_table(data, table_path)
        if found:
            return _config_from_table(table, config_file, ".".join(table_path))
    return None


def _read_toml(config_file: Path) -> dict | None:
    if not config_file.is_file():
        return None
    try:
        return tomllib.loads(config_file.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as error:
        logger.debug("Skipping unreadable config file %s: %s", config_file, error)
        return None


def _lookup_table(data: dict, table_path: tuple[str, ...]) -> tuple[bool, object]:
    node: object = data
    for key in table_path:
        if not isinstance(node, dict) or key not in node:
            return False, None
        node = node[key]
    return True, node


def _config_from_table(table: object, config_file: Path, table_name: str) -> FoldConfig:
    if not isinstance(table, dict):
        raise ConfigError(f"Invalid `[{table_name}]` settings in {config_file}")

    # TOML keys are kebab-case by convention.
    settings = {key.replace("-", "_"): value for key, value in table.items()}
    try:
        return FoldConfig(**settings)
    except TypeError as error:
        raise ConfigError(f"Invalid `[{table_name}]` settings in {config_file}") from error


def normalize_config(config: FoldConfig) -> FoldConfig:
    """Lower-case and de-duplicate fold type names; give every suffix a leading dot."""
    collapse_types = config.collapse_types
    if isinstance(collapse_types, (list, tuple)):
        seen: list[str | int] = []
        for name in collapse_types:
            if isinstance(name, str):
                name = name.strip().lower()
            if name not in seen:
                seen.append(name)
        collapse_types = seen

    extensions = config.extensions
    if isinstance(extensions, dict):
        extensions = {
            _normalize_suffix(suffix): language
            for suffix, language in extensions.items()
            if isinstance(suffix, str)
        }

    return replace(config, collapse_types=collapse_types, extensions=extensions)


def _normalize_suffix(suffix: str) -> str:
    suffix = suffix.strip().lower()
    return suffix if suffix.startswith(".") else f".{suffix}"


def validate_config(config: FoldConfig) -> None:
    """Check every field of `config` and raise on the first bad one.

    Args:
        config: Settings to check; they are normalized first.

    Raises:
        ConfigError: If a flag is not a boolean, a fold type name is unknown,
            an extension mapping is malformed, or the size limit is not a
            positive integer.

    Examples:
        validate_config(FoldConfig(collapse_types=["comment"]))
    """
    config = normalize_config(config)

    for name in _BOOLEAN_FIELDS:
        if not isinstance(getattr(config, name), bool):
            raise ConfigError(f"`{name}` must be a boolean")

    if not isinstance(config.collapse_types, list):
        raise ConfigError("`collapse_types` must be a list")
    for fold_type in config.collapse_types:
        try:
            fold_type_from_name(fold_type)
        except ValueError as error:
            raise ConfigError(
                f"`collapse_types` entry {fold_type!r} must be one of: code, comment, imports, "
                "or an integer >= 1000"
            ) from error

    if not isinstance(config.extensions, dict):
        raise ConfigError("`extensions` must be a table")
    for suffix, language in config.extensions.items():
        if not isinstance(language, str) or not language.strip():
            raise ConfigError(f"`extensions` entry for {suffix!r} must be a language name")

    _check_size_limit(config.max_file_size)


def _check_size_limit(value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError("`max_file_size` must be an integer")
    if value < 1:
        raise ConfigError("`max_file_size` must be a positive integer")


def apply_overrides(config: FoldConfig, **overrides: object) -> FoldConfig:
    """Return `config` with every non-None override applied.

    The same object comes back when nothing is overridden. An unknown field
    name raises `TypeError` from `dataclasses.replace`.

    Examples:
        apply_overrides(config, fold_comments=False, group_imports=None)
    """
    changes = {name: value for name, value in overrides.items() if value is not None}
    return replace(config, **changes) if changes else config


def build_config(search_path: Path, **overrides: object) -> FoldConfig:
    """Settings for a run: file values, then command-line overrides, then checks.

    Args:
        search_path: Directory where the settings lookup starts.
        overrides: Field values that win over the file; None means "not given".

    Returns:
        FoldConfig: Normalized, validated settings.

    Raises:
        ConfigError: If a settings file is malformed or a value is invalid.
    """
    config = normalize_config(apply_overrides(load_config(search_path), **overrides))
    validate_config(config)
    return config
