"""Tests for the meshledger CLI.

Tests cover:
1. Argument parsing and command dispatch
2. Journal persistence across invocations
3. Exit codes for errors and audit findings
4. JSON and text output
"""

from __future__ import annotations

import json

import pytest

from meshledger.cli.journal import Journal
from meshledger.cli.main import app, main
from meshledger.core.config import clear_config_cache


@pytest.fixture
def journal_path(tmp_path, clean_env):
    return tmp_path / "journal.json"


@pytest.fixture
def cli(journal_path, capsys):
    """Invoke the CLI in JSON mode; returns (exit code, parsed stdout or None)."""

    def invoke(*argv):
        code = main(["--journal", str(journal_path), "--json", *argv])
        out = capsys.readouterr()
        invoke.stderr = out.err
        return code, (json.loads(out.out) if out.out.strip() else None)

    return invoke


def journal_commands(path):
    return [entry["command"] for entry in Journal(path).load()]


def setup_validators(cli, nodes=("n1", "n2", "n3")):
    cli("seed-genesis")
    for node in nodes:
        cli("register-node", node, "--kind", "light", "--role", "validator", "--storage", "10", "--bandwidth", "10")
        cli("learn", node, "genesis", "--at", "0")


# ============================================================================
# Parser
# ============================================================================


class TestParser:
    def test_command_required(self):
        with pytest.raises(SystemExit) as exc_info:
            app().parse_args([])
        assert exc_info.value.code == 1

    def test_prev_and_parent_both_parsed(self):
        args = app().parse_args(["append-block", "X", "--prev", "G", "--parent", "G"])
        assert args.prev == "G"
        assert args.parents == ["G"]

    def test_repeatable_options(self):
        args = app().parse_args(["append-block", "D1", "--parent", "a", "--parent", "b", "--tx", "t1"])
        assert args.parents == ["a", "b"]
        assert args.transactions == ["t1"]
        assert args.prev is None

    def test_unknown_role_rejected_by_parser(self):
        with pytest.raises(SystemExit) as exc_info:
            app().parse_args(
                ["register-node", "A", "--kind", "light", "--role", "oracle", "--storage", "1", "--bandwidth", "1"]
            )
        assert exc_info.value.code == 1

    def test_usage_errors_exit_1(self, cli):
        code, result = cli("decide", "n1", "v")
        assert code == 1
        assert result is None
        assert "--at" in cli.stderr

    def test_help_exits_0(self, capsys):
        assert main(["--help"]) == 0
        assert "meshledger" in capsys.readouterr().out


# ============================================================================
# Ledger commands
# ============================================================================


class TestLedgerCommands:
    def test_genesis_then_chain_block(self, cli, journal_path):
        code, result = cli("seed-genesis")
        assert code == 0
        assert result["block"]["id"] == "genesis"

        code, result = cli("append-block", "B1", "--prev", "genesis", "--tx", "t1")
        assert code == 0
        assert result["height"] == 1
        assert journal_commands(journal_path) == ["seed-genesis", "append-block"]

    def test_rejected_block_not_journaled(self, cli, journal_path):
        cli("seed-genesis")
        cli("append-block", "B1", "--prev", "genesis", "--tx", "t1")

        code, result = cli("append-block", "B1", "--prev", "genesis", "--tx", "t1")
        assert code == 1
        assert result is None
        error = json.loads(cli.stderr.strip().splitlines()[-1])
        assert error["details"]["rule"] == "duplicate_id"
        assert journal_commands(journal_path) == ["seed-genesis", "append-block"]

    def test_prev_and_parent_together_is_edge_arity_error(self, cli, journal_path):
        cli("seed-genesis")
        code, result = cli("append-block", "X", "--prev", "genesis", "--parent", "genesis")
        assert code == 1
        assert result is None
        error = json.loads(cli.stderr.strip().splitlines()[-1])
        assert error["details"]["rule"] == "edge_arity"
        assert journal_commands(journal_path) == ["seed-genesis"]

    def test_dag_block_has_no_height(self, cli):
        cli("seed-genesis")
        code, result = cli("append-block", "D1", "--parent", "genesis", "--tx", "t1")
        assert code == 0
        assert result["height"] is None
        assert result["block"]["mode"] == "dag"


# ============================================================================
# Network commands
# ============================================================================


class TestNetworkCommands:
    def test_gossip_between_peers(self, cli):
        cli("seed-genesis")
        for node in ("A", "B"):
            cli("register-node", node, "--kind", "light", "--role", "observer", "--storage", "10", "--bandwidth", "10")
        cli("add-peer-link", "A", "B")
        cli("learn", "A", "genesis", "--at", "0")

        code, result = cli("send-gossip", "A", "B", "genesis", "--at", "5", "--size", "256")
        assert code == 0
        assert result["sender"]["sent_bytes"] == 256
        assert result["receiver"]["recv_bytes"] == 256

        code, status = cli("status", "--check")
        assert code == 0
        nodes = {n["id"]: n for n in status["nodes"]}
        assert nodes["B"]["known_blocks"] == ["genesis"]
        assert status["links"] == [["A", "B"]]
        assert status["checks"]["causality"] == []
        assert status["checks"]["traffic"] == []

    def test_gossip_to_non_peer_fails(self, cli):
        cli("seed-genesis")
        for node in ("A", "B"):
            cli("register-node", node, "--kind", "light", "--role", "observer", "--storage", "10", "--bandwidth", "10")
        cli("learn", "A", "genesis", "--at", "0")

        code, _ = cli("send-gossip", "A", "B", "genesis", "--at", "5")
        assert code == 1
        error = json.loads(cli.stderr.strip().splitlines()[-1])
        assert error["details"]["fault"] == "not_peer"

    def test_full_node_below_threshold_fails(self, cli):
        code, _ = cli("register-node", "F", "--kind", "full", "--role", "archive", "--storage", "10", "--bandwidth", "10")
        assert code == 1

    def test_full_node_threshold_from_env(self, cli, monkeypatch):
        monkeypatch.setenv("MESHLEDGER_FULL_NODE_STORAGE_THRESHOLD", "100")
        code, result = cli("register-node", "F", "--kind", "full", "--role", "archive", "--storage", "101", "--bandwidth", "1")
        assert code == 0
        assert result["node"]["kind"] == "full"

    def test_recorded_threshold_survives_env_change(self, cli, journal_path, monkeypatch):
        monkeypatch.setenv("MESHLEDGER_FULL_NODE_STORAGE_THRESHOLD", "100")
        cli("register-node", "F", "--kind", "full", "--role", "archive", "--storage", "101", "--bandwidth", "1")
        assert Journal(journal_path).load()[0]["args"]["storage_threshold"] == 100

        monkeypatch.setenv("MESHLEDGER_FULL_NODE_STORAGE_THRESHOLD", "5000")
        clear_config_cache()
        code, status = cli("status")
        assert code == 0
        assert [n["id"] for n in status["nodes"]] == ["F"]

        code, _ = cli("register-node", "G", "--kind", "full", "--role", "archive", "--storage", "101", "--bandwidth", "1")
        assert code == 1


# ============================================================================
# Consensus and audits
# ============================================================================


class TestConsensusCommands:
    def test_decide_requires_known_block(self, cli):
        cli("seed-genesis")
        cli("register-node", "n1", "--kind", "light", "--role", "validator", "--storage", "1", "--bandwidth", "1")
        cli("propose", "n1", "v", "--at", "1")
        code, _ = cli("decide", "n1", "v", "--at", "2")
        assert code == 1

    def test_safety_audit_exit_code(self, cli):
        setup_validators(cli, ("n1", "n2", "n3", "n4"))
        for t, node in enumerate(("n1", "n2", "n3"), start=1):
            cli("propose", node, "v", "--at", str(t))
        cli("propose", "n4", "v'", "--at", "4")

        assert cli("decide", "n1", "v", "--at", "10")[0] == 0
        assert cli("decide", "n2", "v'", "--at", "20")[0] == 0

        code, report = cli("run-safety-audit")
        assert code == 2
        assert report["ok"] is False
        assert report["violations"][0]["error"] == "SafetyViolation"

    def test_liveness_audit_exit_code(self, cli):
        setup_validators(cli)
        for node in ("n1", "n2", "n3"):
            cli("propose", node, "v", "--at", "1")
        cli("decide", "n1", "v", "--at", "5")
        cli("decide", "n2", "v", "--at", "5")

        code, report = cli("run-liveness-audit")
        assert code == 3
        assert [v["details"]["node"] for v in report["violations"]] == ["n3"]

        cli("decide", "n3", "v", "--at", "9")
        assert cli("run-liveness-audit")[0] == 0
        assert cli("run-liveness-audit", "--deadline", "8")[0] == 3
        assert cli("run-safety-audit")[0] == 0

    def test_faulty_node_excluded_from_liveness(self, cli):
        setup_validators(cli, ("n1", "n2"))
        cli("propose", "n1", "v", "--at", "1")
        cli("decide", "n1", "v", "--at", "2")
        cli("mark-faulty", "n2")
        assert cli("run-liveness-audit")[0] == 0


# ============================================================================
# Journal handling and output
# ============================================================================


class TestJournal:
    def test_reset(self, cli, journal_path):
        cli("seed-genesis")
        assert journal_path.exists()
        code, result = cli("reset")
        assert code == 0
        assert result["reset"] is True
        assert not journal_path.exists()

    def test_corrupt_journal(self, cli, journal_path):
        journal_path.write_text("{not json")
        code, _ = cli("status")
        assert code == 1

    def test_journal_must_be_list(self, cli, journal_path):
        journal_path.write_text('{"command": "seed-genesis"}')
        assert cli("status")[0] == 1

    def test_unknown_command_in_journal(self, cli, journal_path):
        journal_path.write_text(json.dumps([{"command": "rewrite-history", "args": {}}]))
        code, _ = cli("status")
        assert code == 1
        error = json.loads(cli.stderr.strip().splitlines()[-1])
        assert error["details"]["command"] == "rewrite-history"

    def test_empty_status(self, cli):
        code, status = cli("status")
        assert code == 0
        assert status["blocks"] == 0
        assert status["chain_tip"] is None


def test_text_output(journal_path, capsys):
    assert main(["--journal", str(journal_path), "seed-genesis"]) == 0
    out = capsys.readouterr().out
    assert "id: genesis" in out

    assert main(["--journal", str(journal_path), "seed-genesis"]) == 1
    assert "Error:" in capsys.readouterr().err
