"""
CLI smoke tests against a file-backed store.

Tests basic CLI functionality and command wiring without network access:
the denylist is read from a local file and published into a temp directory.
"""
from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from badbits_publisher.cli import app
from badbits_publisher.entries import bad_bits_entry

BAD_CID = "bafybeigdyrzt5sfp7udm7hu76uh7y26nf3efuylqabf3oclgtqy55fbzdi"


@pytest.fixture
def denylist_file(tmp_path):
    path = tmp_path / "badbits.deny"
    path.write_text(
        "# bad bits\n"
        f"//{bad_bits_entry(BAD_CID)}\n"
        f"//{bad_bits_entry('bafyanother')}\n"
        "!//allowed-entry\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture(autouse=True)
def file_store_env(monkeypatch, tmp_path):
    monkeypatch.setenv("BADBITS_STORE", "file")
    monkeypatch.setenv("BADBITS_STORE_PATH", str(tmp_path / "store"))
    monkeypatch.setenv("BADBITS_GRACE_PERIOD", "0")


class TestCLISmokeTests:
    """Smoke tests for CLI commands."""

    def setup_method(self):
        """Set up test environment."""
        self.runner = CliRunner()

    def test_publish_from_file(self, denylist_file):
        result = self.runner.invoke(app, ["publish", "--source-file", str(denylist_file)])

        assert result.exit_code == 0, result.output
        assert "Published" in result.stdout
        assert "Segments" in result.stdout

    def test_publish_json_report(self, denylist_file):
        result = self.runner.invoke(app, ["publish", "--source-file", str(denylist_file), "--json"])

        assert result.exit_code == 0, result.output
        json_line = [line for line in result.stdout.splitlines() if line.startswith("{")][-1]
        report = json.loads(json_line)
        assert report["status"] == "published"
        assert report["hash_count"] == 2
        assert report["segment_count"] == 1
        assert "duration_ms" in report

    def test_status_before_and_after_publish(self, denylist_file):
        result = self.runner.invoke(app, ["status"])
        assert result.exit_code == 0, result.output
        assert "No denylist published" in result.stdout

        self.runner.invoke(app, ["publish", "--source-file", str(denylist_file)])
        result = self.runner.invoke(app, ["status"])

        assert result.exit_code == 0, result.output
        assert "Version:" in result.stdout
        assert "Segments: 1" in result.stdout
        assert "Stored versions: 1" in result.stdout

    def test_dump_prints_sorted_hashes(self, denylist_file):
        self.runner.invoke(app, ["publish", "--source-file", str(denylist_file)])

        result = self.runner.invoke(app, ["dump"])

        assert result.exit_code == 0, result.output
        expected = sorted([bad_bits_entry(BAD_CID), bad_bits_entry("bafyanother")])
        assert [line for line in result.stdout.splitlines() if line in expected] == expected

    def test_check_cid(self, denylist_file):
        self.runner.invoke(app, ["publish", "--source-file", str(denylist_file)])

        denied = self.runner.invoke(app, ["check", BAD_CID])
        allowed = self.runner.invoke(app, ["check", "bafyclean"])
        raw = self.runner.invoke(app, ["check", bad_bits_entry(BAD_CID), "--entry"])

        assert "DENIED" in denied.stdout
        assert "allowed" in allowed.stdout
        assert "DENIED" in raw.stdout

    def test_run_with_max_cycles(self, denylist_file):
        result = self.runner.invoke(app, [
            "run", "--source-file", str(denylist_file), "--max-cycles", "1", "--interval", "0.01"
        ])
        assert result.exit_code == 0, result.output

        status = self.runner.invoke(app, ["status"])
        assert "Version:" in status.stdout

    def test_malformed_file_exit_code(self, tmp_path):
        bad = tmp_path / "bad.deny"
        bad.write_text("//has space\n", encoding="utf-8")

        result = self.runner.invoke(app, ["publish", "--source-file", str(bad)])

        assert result.exit_code == 3

    def test_invalid_config_exit_code(self, monkeypatch):
        monkeypatch.setenv("BADBITS_GRACE_PERIOD", "-5")
        result = self.runner.invoke(app, ["status"])
        assert result.exit_code == 2

    def test_invalid_interval_exit_code(self, denylist_file):
        result = self.runner.invoke(app, ["run", "--source-file", str(denylist_file), "--interval", "0"])
        assert result.exit_code == 2

    def test_help(self):
        result = self.runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("publish", "run", "status", "dump", "check"):
            assert command in result.stdout
