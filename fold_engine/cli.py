"""
Prints the fold structure of a source file.
Folds can be listed as an outline, dumped as JSON, or applied to the text.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click
from .config import (
    ConfigError,
    FoldConfig,
    apply_overrides,
    build_config,
    normalize_config,
    validate_config,
)
from .document import Document
from .filesystem import (
    get_max_file_size,
    load_source,
    normalize_filepath,
    resolve_language,
)
from .fold import Fold
from .lexer import LexerTokenSource
from .manager import FoldManager
from .models import fold_type_name
from .registry import FoldParserManager

__all__ = ["cli"]

OUTPUT_FORMATS = ["outline", "json", "render"]


@click.command()
@click.version_option()
@click.option("--language", "-l", help="Language of the file (default: guessed from its suffix)")
@click.option(
    "--collapse",
    "collapse_types",
    multiple=True,
    metavar="TYPE",
    help="Collapse folds of this type (code, comment, imports); repeatable",
)
@click.option("--no-comment-folds", is_flag=True, help="Do not fold multi-line comments")
@click.option("--no-import-groups", is_flag=True, help="Do not group Java imports")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(OUTPUT_FORMATS),
    default="outline",
    show_default=True,
    help="Output format",
)
@click.option("--verbose", is_flag=True, help="Log parsing activity to stderr")
@click.argument("filepath", type=click.Path(exists=True, dir_okay=False))
def cli(
    filepath: str,
    language: str | None = None,
    collapse_types: tuple[str, ...] = (),
    no_comment_folds: bool = False,
    no_import_groups: bool = False,
    output_format: str = "outline",
    verbose: bool = False,
):
    """
    Entry point for printing the folds of a source file.

    Args:
        filepath: Path to the source file to fold.
        language: Language identifier overriding suffix detection.
        collapse_types: Fold types to collapse before printing.
        no_comment_folds: Disable multi-line comment folds.
        no_import_groups: Disable Java import grouping.
        output_format: One of `outline`, `json`, or `render`.
        verbose: Enable debug logging.

    Returns:
        None.

    Raises:
        click.BadParameter: If the path is invalid or configuration values are
            unsupported.
        click.ClickException: If the file is too large, cannot be read, or
            its language has no fold parser.

    Examples:
        fold-engine src/Main.java --collapse comment --format render
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG)

    base_dir = Path.cwd().resolve()
    try:
        filepath = normalize_filepath(filepath, base_dir)
    except ValueError as error:
        raise click.BadParameter(str(error)) from error
    try:
        config = build_config(
            filepath.parent,
            fold_comments=False if no_comment_folds else None,
            group_imports=False if no_import_groups else None,
        )
        if collapse_types:
            config = normalize_config(
                apply_overrides(config, collapse_types=[*config.collapse_types, *collapse_types])
            )
            validate_config(config)
    except ConfigError as error:
        raise click.BadParameter(str(error)) from error

    try:
        max_file_size = get_max_file_size(default=config.max_file_size)
    except ValueError as error:
        raise click.ClickException(str(error)) from error

    try:
        text = load_source(filepath, max_file_size)
    except IOError as error:
        raise click.ClickException(str(error)) from error

    language = language or resolve_language(filepath, config.extensions)
    if language is None:
        raise click.ClickException(
            f"Cannot determine the language of {filepath.name}; use --language."
        )
    registry = FoldParserManager.with_defaults(config)
    if language not in registry:
        error_message = f"No fold parser for language {language!r}.\n"
        error_message += f"Supported languages are: {', '.join(registry.languages())}"
        raise click.ClickException(error_message)

    manager = _fold(text, language, registry, config)

    if output_format == "json":
        click.echo(json.dumps([fold.as_dict() for fold in manager.folds], indent=2))
    elif output_format == "render":
        for line in render_document(manager):
            click.echo(line)
    else:
        lines = format_outline(manager.folds)
        if not lines:
            click.echo("No folds found.")
        for line in lines:
            click.echo(line)


def _fold(text: str, language: str, registry: FoldParserManager, config: FoldConfig) -> FoldManager:
    document = Document(text, language)
    return FoldManager(document, LexerTokenSource(document), registry=registry, config=config)


def format_outline(folds: list[Fold], indent: str = "  ") -> list[str]:
    """Render a fold forest as an indented list, one fold per line.

    Line numbers are 1-based, e.g. ``code 3-7``.
    """
    lines = []
    for fold in folds:
        depth = 0
        parent = fold.parent
        while parent is not None:
            depth += 1
            parent = parent.parent
        entry = f"{fold_type_name(fold.fold_type)} {fold.start_line + 1}-{fold.end_line + 1}"
        if not fold.is_terminated:
            entry += " (unterminated)"
        if fold.collapsed:
            entry += " [collapsed]"
        lines.append(f"{indent * depth}{entry}")
        lines.extend(format_outline(fold.children, indent))
    return lines


def render_document(manager: FoldManager) -> list[str]:
    """Return the visible lines of the document, prefixed with 1-based line numbers.

    Hidden lines are dropped and each collapsed fold's summary line ends with
    `` ...``.
    """
    document = manager.document
    width = len(str(document.line_count))
    rendered = []
    for line in range(document.line_count):
        if manager.is_line_hidden(line):
            continue
        text = document.get_line_text(line)
        fold = manager.get_fold_for_line(line)
        if fold is not None and fold.collapsed:
            text += " ..."
        rendered.append(f"{line + 1:>{width}}  {text}")
    return rendered


if __name__ == "__main__":
    cli()
