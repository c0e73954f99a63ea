"""Guards for reading source files named on the command line."""

from __future__ import annotations

import os
import stat
from collections.abc import Mapping
from pathlib import Path

from .constants import DEFAULT_EXTENSIONS, DEFAULT_MAX_FILE_SIZE

MAX_FILE_SIZE_ENV_VAR = "FOLD_ENGINE_MAX_FILE_SIZE"


class ReadFileError(IOError):
    """Raised when a source file is unsafe to open, too large, or undecodable."""


def get_max_file_size(default: int = DEFAULT_MAX_FILE_SIZE) -> int:
    """Return the size limit in bytes, honoring `FOLD_ENGINE_MAX_FILE_SIZE`.

    Raises:
        ValueError: If the environment value is set but is not a positive integer.
    """
    raw_value = os.environ.get(MAX_FILE_SIZE_ENV_VAR)
    if raw_value is None:
        return default

    try:
        limit = int(raw_value)
    except ValueError as error:
        raise ValueError(
            f"Invalid value for {MAX_FILE_SIZE_ENV_VAR}: {raw_value!r} (expected a positive integer)"
        ) from error
    if limit < 1:
        raise ValueError(f"{MAX_FILE_SIZE_ENV_VAR} must be a positive integer, got {limit}.")
    return limit


def contains_symlink(path: Path) -> bool:
    """True if `path` or one of its ancestors is a symlink. Entries that cannot be inspected are skipped."""
    return any(_is_symlink(candidate) for candidate in (path, *path.parents))


def _is_symlink(path: Path) -> bool:
    try:
        return path.is_symlink()
    except OSError:
        return False


def normalize_filepath(raw_path: str, base_dir: Path) -> Path:
    """Resolve `raw_path` and make sure it names a regular file under `base_dir`.

    Args:
        raw_path: Path given by the user, absolute or relative; ``~`` is expanded.
        base_dir: Directory the file must live in (usually the working directory).

    Returns:
        Path: The resolved absolute path.

    Raises:
        ValueError: If the path goes through a symlink, does not exist, is not
            a regular file, or escapes `base_dir`.

    Examples:
        normalize_filepath("src/Main.java", Path.cwd())
    """
    path = Path(raw_path).expanduser()
    if contains_symlink(path):
        raise ValueError(f"Symlinks are not supported for security reasons: {path}")

    resolved = _resolve_existing(path)
    if not resolved.is_file():
        raise ValueError(f"{resolved} is not a regular file.")
    if not resolved.is_relative_to(base_dir):
        raise ValueError(f"{resolved} is outside of the working directory {base_dir}.")
    return resolved


def _resolve_existing(path: Path) -> Path:
    try:
        return path.resolve(strict=True)
    except FileNotFoundError as error:
        raise ValueError(f"{path} does not exist.") from error
    except OSError as error:
        raise ValueError(f"Error resolving {path}: {error}") from error


def collect_file_stat(filepath: Path) -> os.stat_result:
    """`lstat` the file and insist on a regular file that is not a symlink."""
    try:
        file_stat = os.lstat(filepath)
    except OSError as error:
        raise ReadFileError(f"Error accessing {filepath}: {error}") from error

    if stat.S_ISLNK(file_stat.st_mode):
        raise ReadFileError(f"Symlinks are not supported: {filepath}.")
    if not stat.S_ISREG(file_stat.st_mode):
        raise ReadFileError(f"{filepath} is not a regular file.")
    return file_stat


def enforce_file_size(file_stat: os.stat_result, max_size: int, filepath: Path) -> None:
    if file_stat.st_size > max_size:
        raise ReadFileError(f"{filepath} exceeds the maximum allowed size of {max_size} bytes.")


def read_source(filepath: Path) -> str:
    """Decode `filepath` as UTF-8. Line endings come back as ``"\\n"``.

    Raises:
        ReadFileError: If the file cannot be opened or is not valid UTF-8.
    """
    try:
        return filepath.read_text(encoding="utf-8")
    except UnicodeDecodeError as error:
        raise ReadFileError(f"{filepath} is not valid UTF-8: {error}") from error
    except OSError as error:
        raise ReadFileError(f"Error accessing {filepath}: {error}") from error


def load_source(filepath: Path, max_size: int) -> str:
    """Check the file's type and size, then read it.

    Args:
        filepath: A path already returned by `normalize_filepath`.
        max_size: Largest accepted size in bytes.

    Returns:
        str: The decoded text.

    Raises:
        ReadFileError: If any check fails or the file cannot be read.

    Examples:
        text = load_source(path, get_max_file_size())
    """
    enforce_file_size(collect_file_stat(filepath), max_size, filepath)
    return read_source(filepath)


def resolve_language(filepath: Path, extensions: Mapping[str, str] | None = None) -> str | None:
    """Guess a file's language from its suffix.

    Args:
        filepath: Path whose suffix is inspected.
        extensions: Extra suffix to language mappings that take precedence
            over the built-in table.

    Returns:
        str | None: The language identifier, or None when the suffix is unknown.

    Examples:
        resolve_language(Path("pom.xml"))  # "xml"
    """
    suffix = filepath.suffix.lower()
    if extensions and suffix in extensions:
        return extensions[suffix]
    return DEFAULT_EXTENSIONS.get(suffix)
