"""Tests for CLI commands."""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from wisp import __version__
from wisp.cli import app
from wisp.core.config import LOG_LEVEL_ENV_VAR


@pytest.fixture
def cli_runner():
    """Return a CLI test runner."""
    return CliRunner()


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run from an empty directory so no stray wisp.toml is picked up."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(LOG_LEVEL_ENV_VAR, raising=False)
    return tmp_path


def _program(workdir: Path, source: str, name: str = "prog.wisp") -> Path:
    path = workdir / name
    path.write_text(source, encoding="utf-8")
    return path


def test_version(cli_runner: CliRunner):
    """--version prints the package version and exits cleanly."""
    result = cli_runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert f"Wisp version {__version__}" in result.stdout


def test_run_prints_program_output(cli_runner: CliRunner, workdir: Path):
    """run writes the program's print output to stdout."""
    path = _program(
        workdir,
        "class Greeter:\n"
        "  def greet(self, name):\n"
        "    return 'Hello, ' + name\n"
        "print Greeter().greet('world')\n",
    )
    result = cli_runner.invoke(app, ["run", str(path)])
    assert result.exit_code == 0
    assert result.stdout == "Hello, world\n"


def test_run_runtime_error_exits_nonzero(cli_runner: CliRunner, workdir: Path):
    """Output produced before a runtime error is kept; the error goes to stderr."""
    path = _program(workdir, "print 'before'\nprint 1 / 0\n")
    result = cli_runner.invoke(app, ["run", str(path)])
    assert result.exit_code == 1
    assert result.stdout == "before\n"
    assert "Division by zero" in result.stderr


def test_run_parse_error_reports_location(cli_runner: CliRunner, workdir: Path):
    """Parse errors name the file and line."""
    path = _program(workdir, "x = 1\ny = )\n")
    result = cli_runner.invoke(app, ["run", str(path)])
    assert result.exit_code == 1
    assert "prog.wisp:2:" in result.stderr
    assert result.stdout == ""


def test_run_missing_file(cli_runner: CliRunner, workdir: Path):
    """A file that does not exist is rejected by argument validation."""
    result = cli_runner.invoke(app, ["run", str(workdir / "absent.wisp")])
    assert result.exit_code == 2


def test_run_with_invalid_config(cli_runner: CliRunner, workdir: Path):
    """A broken wisp.toml stops the run before the program starts."""
    path = _program(workdir, "print 1\n")
    (workdir / "wisp.toml").write_text("[run\n", encoding="utf-8")
    result = cli_runner.invoke(app, ["run", str(path)])
    assert result.exit_code == 1
    assert "Invalid TOML" in result.stderr
    assert result.stdout == ""


def test_run_with_explicit_config(cli_runner: CliRunner, workdir: Path):
    """--config points at a wisp.toml outside the working directory."""
    config_dir = workdir / "conf"
    config_dir.mkdir()
    config = config_dir / "wisp.toml"
    config.write_text("[run]\nrecursion_limit = 20000\n", encoding="utf-8")
    path = _program(workdir, "print 'ok'\n")
    result = cli_runner.invoke(app, ["run", str(path), "--config", str(config)])
    assert result.exit_code == 0
    assert result.stdout == "ok\n"


def test_tokens_lists_token_stream(cli_runner: CliRunner, workdir: Path):
    """tokens shows every token through EOF."""
    path = _program(workdir, "x = 42\n")
    result = cli_runner.invoke(app, ["tokens", str(path)])
    assert result.exit_code == 0
    for expected in ("Id{x}", "Char{=}", "Number{42}", "Newline", "Eof"):
        assert expected in result.stdout


def test_tokens_lex_error(cli_runner: CliRunner, workdir: Path):
    """tokens reports lexing failures."""
    path = _program(workdir, "x = 'open\n")
    result = cli_runner.invoke(app, ["tokens", str(path)])
    assert result.exit_code == 1
    assert "Unterminated string literal" in result.stderr


def test_no_args_shows_help(cli_runner: CliRunner):
    """Invoking without a command prints usage."""
    result = cli_runner.invoke(app, [])
    assert "Usage" in result.output
