"""Tests for the rams command-line interface.

Run with: pytest backend/tests/unit/cli/test_cli.py -v
"""

import json
import logging

import pytest
from click.testing import CliRunner

from rams.cli import main
from rams.config import get_settings


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    """Point the CLI at a fresh SQLite database and PDF directory."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}")
    monkeypatch.setenv("PDF_STORAGE_PATH", str(tmp_path / "pdfs"))
    monkeypatch.setenv("BUSINESS_TIMEZONE", "UTC")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    get_settings.cache_clear()
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield tmp_path
    root.handlers = handlers
    root.setLevel(level)
    get_settings.cache_clear()


class TestCli:
    """Tests for CLI commands."""

    def test_version(self):
        result = CliRunner().invoke(main, ["--version"])

        assert result.exit_code == 0
        assert "1.0.0" in result.output

    def test_seed_then_list_users(self, cli_env):
        runner = CliRunner()

        seeded = runner.invoke(main, ["seed"])
        listed = runner.invoke(main, ["user", "list", "--role", "approver", "--json"])

        assert seeded.exit_code == 0, seeded.output
        assert "Seeded 5 users, 3 institutions, 9 branches" in seeded.output
        assert [u["username"] for u in json.loads(listed.output)] == ["suzuki", "takahashi"]

    def test_create_duplicate_user_fails(self, cli_env):
        runner = CliRunner()
        runner.invoke(main, ["init-db"])
        args = ["user", "create", "-u", "kato", "--password", "password123", "-r", "creator"]

        first = runner.invoke(main, args)
        second = runner.invoke(main, args)

        assert first.exit_code == 0, first.output
        assert "Roles: handler" in first.output
        assert second.exit_code == 1

    def test_stats_json(self, cli_env):
        runner = CliRunner()
        runner.invoke(main, ["init-db"])

        result = runner.invoke(main, ["stats", "--json"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["pending_approvals"] == 0

    def test_pdf_list_empty(self, cli_env):
        result = CliRunner().invoke(main, ["pdf", "list"])

        assert result.exit_code == 0
        assert "No PDFs" in result.output
