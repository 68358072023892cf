"""Tests for CLI configuration and output helpers."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from meshledger.cli.config import CLIConfig, get_cli_config, reset_cli_config, set_cli_config
from meshledger.cli.output import output_error, output_result


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "cli.toml"
    path.write_text('journal = "/from/file.json"\noutput = "json"\n')
    return path


class TestCLIConfigPrecedence:
    def test_defaults(self, clean_env, tmp_path):
        config = CLIConfig.load(config_path=tmp_path / "missing.toml")
        assert config.output == "text"
        assert config.journal_path == Path.home() / ".meshledger" / "journal.json"

    def test_file(self, clean_env, config_file):
        config = CLIConfig.load(config_path=config_file)
        assert config.journal_path == Path("/from/file.json")
        assert config.output == "json"

    def test_env_over_file(self, clean_env, config_file, monkeypatch):
        monkeypatch.setenv("MESHLEDGER_JOURNAL", "/from/env.json")
        monkeypatch.setenv("MESHLEDGER_OUTPUT", "text")
        config = CLIConfig.load(config_path=config_file)
        assert config.journal_path == Path("/from/env.json")
        assert config.output == "text"

    def test_invalid_env_output_ignored(self, clean_env, config_file, monkeypatch):
        monkeypatch.setenv("MESHLEDGER_OUTPUT", "yaml")
        assert CLIConfig.load(config_path=config_file).output == "json"

    def test_file_journal_expands_home_and_bad_output_skipped(self, clean_env, tmp_path):
        path = tmp_path / "cli.toml"
        path.write_text('journal = "~/ledger.json"\noutput = "yaml"\n')
        config = CLIConfig.load(config_path=path)
        assert config.journal_path == Path.home() / "ledger.json"
        assert config.output == "text"

    def test_flags_over_env(self, clean_env, config_file, monkeypatch):
        monkeypatch.setenv("MESHLEDGER_JOURNAL", "/from/env.json")
        config = CLIConfig.load(config_path=config_file, journal_path="/from/flag.json", output="text")
        assert config.journal_path == Path("/from/flag.json")
        assert config.output == "text"


class TestSingleton:
    def test_set_and_reset(self, clean_env):
        custom = CLIConfig(journal_path=Path("/x.json"), output="json")
        set_cli_config(custom)
        assert get_cli_config() is custom
        reset_cli_config()
        assert get_cli_config() is not custom


class TestOutput:
    def test_json_result(self, capsys):
        output_result({"ok": True, "items": [1, 2]}, output_format="json")
        assert json.loads(capsys.readouterr().out) == {"ok": True, "items": [1, 2]}

    def test_text_result_nests(self, capsys):
        output_result({"node": {"id": "A", "roles": ["observer"]}, "empty": []}, output_format="text")
        out = capsys.readouterr().out.splitlines()
        assert out == ["node:", "  id: A", "  roles:", "    - observer", "empty: []"]

    def test_error_text(self, capsys):
        set_cli_config(CLIConfig(journal_path=Path("/x.json"), output="text"))
        output_error("boom", {"k": 1})
        assert capsys.readouterr().err.strip() == "Error: boom"

    def test_error_json(self, capsys):
        set_cli_config(CLIConfig(journal_path=Path("/x.json"), output="json"))
        output_error("boom", {"k": 1})
        assert json.loads(capsys.readouterr().err) == {"error": "boom", "details": {"k": 1}}
