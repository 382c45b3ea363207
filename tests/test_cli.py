"""Tests for the rscc console entry point."""

from pathlib import Path

import pytest
import typer
from typer.testing import CliRunner

from rscc.config import CONFIG_ENV_VAR
from rscc.main import app, error_exit

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    cfg = tmp_path / "rscc.toml"
    cfg.write_text("")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(cfg))
    return cfg


class TestMain:
    def test_version(self) -> None:
        result = runner.invoke(app, ["-version"])
        assert result.exit_code == 0
        assert "Target APIs" in result.output

    def test_double_dash_help(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "-emit-asm" in result.output

    def test_no_input_files(self) -> None:
        result = runner.invoke(app, ["-emit-llvm"])
        assert result.exit_code == 1
        assert "no input files" in result.output

    def test_unknown_argument(self) -> None:
        result = runner.invoke(app, ["-bogus", "foo.rs"])
        assert result.exit_code == 1
        assert "unknown argument: '-bogus'" in result.output

    def test_missing_argument(self) -> None:
        result = runner.invoke(app, ["foo.rs", "-o"])
        assert result.exit_code == 1
        assert "argument to '-o' is missing" in result.output

    def test_bad_config(self, _isolated_config: Path) -> None:
        _isolated_config.write_text("[target\n")
        result = runner.invoke(app, ["foo.rs"])
        assert result.exit_code == 1
        assert "Invalid TOML" in result.output


class TestErrorExit:
    def test_exit_code(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(typer.Exit) as exc_info:
            error_exit("something broke", code=2)
        assert exc_info.value.exit_code == 2
        assert "something broke" in capsys.readouterr().err
