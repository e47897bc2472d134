"""Tests for the CLI interface."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from envshelter.cli.main import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def secret_file(tmp_path: Path) -> Path:
    path = tmp_path / ".env"
    path.write_text("API_KEY=supersecret\n", encoding="utf-8")
    return path


def write_config(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "shelter.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_cli_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "mask secret values in env files" in result.output

    def test_mask_command_help(self, runner):
        result = runner.invoke(cli, ["mask", "--help"])
        assert result.exit_code == 0
        assert "Print an env file with its values masked" in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["version"])
        assert result.exit_code == 0
        assert result.output.strip() == "envshelter v0.1.0"


class TestMaskCommand:
    """Test mask command functionality."""

    def test_mask_missing_input_file(self, runner):
        result = runner.invoke(cli, ["mask", "nonexistent.env"])
        assert result.exit_code != 0
        assert "does not exist" in result.output.lower()

    def test_full_mask_by_default(self, runner, secret_file):
        result = runner.invoke(cli, ["mask", str(secret_file)])
        assert result.exit_code == 0
        assert result.output == "API_KEY=***********\n"

    def test_partial_mode(self, runner, secret_file):
        result = runner.invoke(cli, ["mask", str(secret_file), "--mode", "partial"])
        assert result.exit_code == 0
        assert result.output == "API_KEY=sup*****ret\n"

    def test_mask_char(self, runner, secret_file):
        result = runner.invoke(cli, ["mask", str(secret_file), "--mask-char", "#"])
        assert result.exit_code == 0
        assert result.output == "API_KEY=###########\n"

    def test_invalid_mask_char(self, runner, secret_file):
        result = runner.invoke(cli, ["mask", str(secret_file), "--mask-char", "ab"])
        assert result.exit_code == 1
        assert "single character" in result.output

    def test_unknown_mode_falls_back_to_full(self, runner, secret_file):
        result = runner.invoke(cli, ["mask", str(secret_file), "-m", "missing"])
        assert result.exit_code == 0
        assert "API_KEY=***********" in result.output

    def test_reveal_line(self, runner, tmp_path):
        path = tmp_path / ".env"
        path.write_text("FIRST=one\nSECOND=two\n", encoding="utf-8")
        result = runner.invoke(cli, ["mask", str(path), "--reveal", "1"])
        assert result.exit_code == 0
        assert result.output == "FIRST=one\nSECOND=***\n"

    def test_layout_preserved(self, runner, env_file):
        result = runner.invoke(cli, ["mask", str(env_file)])
        assert result.exit_code == 0
        assert result.output.splitlines() == [
            "# database settings",
            "DB_PASSWORD=***********",
            'API_KEY="************"',
            "export TOKEN='*************'",
            "#OLD_SECRET=retired",
            "DEBUG=**** # inline comment",
        ]

    def test_json_format(self, runner, secret_file):
        result = runner.invoke(cli, ["mask", str(secret_file), "--format", "json"])
        assert result.exit_code == 0
        assert json.loads(result.output) == [
            {
                "line": 1,
                "start_col": 8,
                "end_col": 19,
                "text": "***********",
                "highlight": "Comment",
            }
        ]

    def test_json_format_uses_configured_highlight(self, runner, tmp_path, secret_file):
        config = write_config(tmp_path, "highlight_group: Secret\n")
        result = runner.invoke(
            cli, ["--config", str(config), "mask", str(secret_file), "--format", "json"]
        )
        assert result.exit_code == 0
        assert [span["highlight"] for span in json.loads(result.output)] == ["Secret"]

    def test_output_file(self, runner, secret_file, tmp_path):
        output = tmp_path / "masked.env"
        result = runner.invoke(cli, ["mask", str(secret_file), "-o", str(output)])
        assert result.exit_code == 0
        assert output.read_text(encoding="utf-8") == "API_KEY=***********\n"
        assert "Saved masked output" in result.output

    def test_non_env_file_warns(self, runner, tmp_path):
        path = tmp_path / "settings.txt"
        path.write_text("KEY=value", encoding="utf-8")
        result = runner.invoke(cli, ["mask", str(path)])
        assert result.exit_code == 0
        assert "does not match env file patterns" in result.output
        assert "KEY=*****" in result.output

    def test_parse_error(self, runner, tmp_path):
        path = tmp_path / ".env"
        path.write_text('KEY="unterminated\n', encoding="utf-8")
        result = runner.invoke(cli, ["mask", str(path)])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_config_patterns(self, runner, tmp_path):
        config = write_config(tmp_path, 'patterns:\n  "PUBLIC_*": none\n')
        path = tmp_path / ".env"
        path.write_text("PUBLIC_URL=https://x\nSECRET=abc\n", encoding="utf-8")
        result = runner.invoke(cli, ["--config", str(config), "mask", str(path)])
        assert result.exit_code == 0
        assert result.output == "PUBLIC_URL=https://x\nSECRET=***\n"

    def test_config_from_environment(self, runner, tmp_path, secret_file, monkeypatch):
        config = write_config(tmp_path, "default_mode: none\n")
        monkeypatch.setenv("ENVSHELTER_CONFIG", str(config))
        result = runner.invoke(cli, ["mask", str(secret_file)])
        assert result.exit_code == 0
        assert result.output == "API_KEY=supersecret\n"

    def test_missing_config(self, runner, tmp_path, secret_file):
        result = runner.invoke(
            cli, ["--config", str(tmp_path / "none.yaml"), "mask", str(secret_file)]
        )
        assert result.exit_code == 1
        assert "not found" in result.output


class TestModesCommand:
    """Test listing modes."""

    def test_lists_builtins(self, runner):
        result = runner.invoke(cli, ["modes"])
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert [line.split()[0] for line in lines] == ["full", "none", "partial"]
        assert all("[builtin]" in line for line in lines)


class TestCheckConfigCommand:
    """Test settings file validation."""

    def test_valid(self, runner, tmp_path):
        config = write_config(tmp_path, "mask_char: '#'\nmodes:\n  partial:\n    show_start: 1\n")
        result = runner.invoke(cli, ["check-config", str(config)])
        assert result.exit_code == 0
        assert "is valid" in result.output

    def test_invalid_setting(self, runner, tmp_path):
        config = write_config(tmp_path, "mask_char: ab\n")
        result = runner.invoke(cli, ["check-config", str(config)])
        assert result.exit_code == 1
        assert "mask_char" in result.output

    def test_invalid_mode_option(self, runner, tmp_path):
        config = write_config(tmp_path, "modes:\n  partial:\n    show_start: -1\n")
        result = runner.invoke(cli, ["check-config", str(config)])
        assert result.exit_code == 1
        assert "show_start" in result.output

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(cli, ["check-config", str(tmp_path / "none.yaml")])
        assert result.exit_code == 2
