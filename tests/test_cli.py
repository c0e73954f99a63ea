from __future__ import annotations

import json
import os
import textwrap
import uuid
from pathlib import Path

import pytest
from conftest import JAVA_SOURCE

import fold_engine.cli as cli_module
from fold_engine.cli import cli

C_SOURCE = """\
/*
 * header
 */
int main() {
  return 0;
}
"""


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch) -> Path:
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _source(directory: Path, filename: str, content: str = C_SOURCE) -> Path:
    target = directory / filename
    target.write_text(content, encoding="utf-8")
    return target


def _settings(directory: Path, toml: str) -> None:
    (directory / "pyproject.toml").write_text(textwrap.dedent(toml).lstrip(), encoding="utf-8")


def _run(runner, target: Path, *options: str):
    return runner.invoke(cli, [str(target), *options])


def _failure(result) -> str:
    assert result.exit_code != 0
    return f"{result.output}{result.exception}"


def test_cli_prints_outline(cli_runner, workdir):
    result = _run(cli_runner, _source(workdir, "X.java", JAVA_SOURCE))

    assert result.exit_code == 0
    assert result.output == "imports 1-2\ncode 3-7\n  code 4-6\n"


def test_cli_prints_json(cli_runner, workdir):
    result = _run(cli_runner, _source(workdir, "X.java", JAVA_SOURCE), "--format", "json")

    assert result.exit_code == 0
    data = json.loads(result.output)
    assert [fold["type"] for fold in data] == ["imports", "code"]
    assert data[1]["children"][0]["start_line"] == 3


def test_cli_renders_collapsed_folds(cli_runner, workdir):
    target = _source(workdir, "X.java", JAVA_SOURCE)

    result = _run(cli_runner, target, "--collapse", "code", "--format", "render")

    assert result.exit_code == 0
    assert result.output.splitlines() == [
        "1  import a.B;",
        "2  import a.C;",
        "3  class X { ...",
    ]


def test_cli_collapse_is_repeatable(cli_runner, workdir):
    target = _source(workdir, "X.java", JAVA_SOURCE)

    result = _run(cli_runner, target, "--collapse", "imports", "--collapse", "CODE")

    assert result.exit_code == 0
    assert result.output.splitlines() == [
        "imports 1-2 [collapsed]",
        "code 3-7 [collapsed]",
        "  code 4-6 [collapsed]",
    ]


def test_cli_without_import_groups(cli_runner, workdir):
    result = _run(cli_runner, _source(workdir, "X.java", JAVA_SOURCE), "--no-import-groups")

    assert result.exit_code == 0
    assert "imports" not in result.output


def test_cli_without_comment_folds(cli_runner, workdir):
    target = _source(workdir, "main.c")

    assert _run(cli_runner, target).output.splitlines() == ["comment 1-3", "code 4-6"]
    assert _run(cli_runner, target, "--no-comment-folds").output.splitlines() == ["code 4-6"]


@pytest.mark.parametrize(
    ("filename", "content", "options", "expected"),
    [
        ("broken.c", "{\n{\n", (), "code 1-3 (unterminated)\n  code 2-3 (unterminated)\n"),
        ("flat.c", "int x;\n", (), "No folds found.\n"),
        ("data.txt", '{\n  "a": 1\n}\n', ("-l", "json"), "code 1-3\n"),
    ],
)
def test_cli_outline_cases(cli_runner, workdir, filename, content, options, expected):
    result = _run(cli_runner, _source(workdir, filename, content), *options)

    assert result.exit_code == 0
    assert result.output == expected


@pytest.mark.parametrize(
    ("filename", "options", "messages"),
    [
        ("notes.txt", (), ["Cannot determine the language"]),
        (
            "main.c",
            ("--language", "cobol"),
            ["No fold parser for language 'cobol'", "Supported languages are:"],
        ),
        ("main.c", ("--collapse", "regions"), ["collapse_types"]),
    ],
)
def test_cli_rejects_bad_arguments(cli_runner, workdir, filename, options, messages):
    result = _run(cli_runner, _source(workdir, filename), *options)

    output = _failure(result)
    for message in messages:
        assert message in output


def test_cli_reads_config_from_pyproject(cli_runner, workdir):
    _settings(
        workdir,
        """
        [tool.fold-engine]
        collapse-types = ["comment"]
        """,
    )

    result = _run(cli_runner, _source(workdir, "main.c"), "--format", "render")

    assert result.exit_code == 0
    assert result.output.splitlines()[0] == "1  /* ..."
    assert "header" not in result.output


def test_cli_reads_extensions_from_config(cli_runner, workdir):
    _settings(
        workdir,
        """
        [tool.fold-engine.extensions]
        ".conf" = "json"
        """,
    )

    result = _run(cli_runner, _source(workdir, "app.conf", "[\n  1\n]\n"))

    assert result.exit_code == 0
    assert result.output == "code 1-3\n"


def test_cli_rejects_invalid_config(cli_runner, workdir):
    _settings(
        workdir,
        """
        [tool.fold-engine]
        max-file-size = 0
        """,
    )

    result = _run(cli_runner, _source(workdir, "main.c"))

    assert "max_file_size" in _failure(result)


def test_cli_verbose_flag(cli_runner, workdir):
    result = _run(cli_runner, _source(workdir, "main.c"), "--verbose")

    assert result.exit_code == 0
    assert "comment 1-3" in result.output


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="Symlink support is required")
def test_cli_refuses_symlinked_source(cli_runner, workdir):
    link = workdir / "alias.c"
    try:
        os.symlink(_source(workdir, "real.c"), link)
    except OSError as error:  # pragma: no cover - platform dependent
        pytest.skip(f"Unable to create symlink: {error}")

    assert "Symlinks" in _failure(_run(cli_runner, link))


def test_cli_refuses_files_outside_working_directory(cli_runner, tmp_path, monkeypatch):
    inner = tmp_path / "project"
    inner.mkdir()
    monkeypatch.chdir(inner)
    stray = _source(tmp_path, f"stray-{uuid.uuid4().hex}.c")

    assert "outside of the working directory" in _failure(_run(cli_runner, stray))


@pytest.mark.parametrize(
    ("size_limit", "expected"),
    [
        ("10", "maximum allowed size"),
        ("lots", "Invalid value for FOLD_ENGINE_MAX_FILE_SIZE"),
        ("-5", "must be a positive integer"),
    ],
)
def test_cli_size_limit_from_environment(cli_runner, workdir, monkeypatch, size_limit, expected):
    monkeypatch.setenv("FOLD_ENGINE_MAX_FILE_SIZE", size_limit)

    assert expected in _failure(_run(cli_runner, _source(workdir, "main.c")))


def test_cli_refuses_undecodable_source(cli_runner, workdir):
    target = workdir / "latin1.c"
    target.write_bytes(b"/* caf\xe9 */\nint x;\n")

    assert "is not valid UTF-8" in _failure(_run(cli_runner, target))


@pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="mkfifo not available")
def test_cli_refuses_named_pipe(cli_runner, workdir):
    pipe = workdir / "pipe.c"
    try:
        os.mkfifo(pipe)
    except OSError as error:  # pragma: no cover - platform dependent
        pytest.skip(f"Unable to create FIFO: {error}")

    assert "is not a regular file" in _failure(_run(cli_runner, pipe))


def test_cli_public_api():
    assert cli_module.__all__ == ["cli"]
