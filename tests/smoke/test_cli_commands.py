"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output.
They don't validate correctness deeply - just that commands work.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

import os
import re
import subprocess
import sys
from pathlib import Path

import pytest

# Mark all tests in this module as smoke tests
pytestmark = pytest.mark.smoke

# Project root
PROJECT_ROOT = Path(__file__).parent.parent.parent

TOPIC_ID = re.compile(r"\(([0-9a-f-]{36})\)")


@pytest.fixture
def database_url(tmp_path):
    """Throwaway SQLite file per test."""
    return f"sqlite:///{tmp_path / 'microlearn.db'}"


def run_cli_command(
    args: list[str], database_url: str, extra_env: dict[str, str] | None = None, timeout: int = 30
) -> tuple[int, str, str]:
    """
    Run a CLI command and return exit code, stdout, stderr.

    Args:
        args: Arguments after 'python -m microlearn.cli'
        database_url: Database the command runs against
        extra_env: Additional environment overrides
        timeout: Maximum time to wait

    Returns:
        Tuple of (exit_code, stdout, stderr)
    """
    env = {
        **os.environ,
        "DATABASE_URL": database_url,
        "LOG_LEVEL": "WARNING",
        "COLUMNS": "200",
        "PYTHONIOENCODING": "utf-8",
        **(extra_env or {}),
    }
    result = subprocess.run(
        [sys.executable, "-m", "microlearn.cli", *args],
        cwd=PROJECT_ROOT,
        env=env,
        capture_output=True,
        text=True,
        encoding="utf-8",
        timeout=timeout,
    )

    return result.returncode, result.stdout, result.stderr


def add_topic(database_url: str, name: str, *options: str) -> str:
    code, stdout, stderr = run_cli_command(["add", name, *options], database_url)
    assert code == 0, f"Add failed: {stderr}"
    match = TOPIC_ID.search(stdout)
    assert match, f"No topic id in output: {stdout}"
    return match.group(1)


class TestCLIHelp:
    """Test that help commands work."""

    def test_main_help(self, database_url):
        """Main help should list the commands."""
        code, stdout, stderr = run_cli_command(["--help"], database_url)

        assert code == 0, f"Help failed: {stderr}"
        assert "Commands" in stdout
        for command in ("next", "complete", "weights", "distribution"):
            assert command in stdout

    @pytest.mark.parametrize("command", ["add", "next", "complete", "reset-weights"])
    def test_command_help(self, database_url, command):
        code, stdout, stderr = run_cli_command([command, "--help"], database_url)

        assert code == 0, f"{command} help failed: {stderr}"


class TestCLIEmptyPopulation:
    """Commands against a database with no topics."""

    def test_init(self, database_url):
        code, stdout, stderr = run_cli_command(["init"], database_url)

        assert code == 0, f"Init failed: {stderr}"
        assert "Database ready" in stdout
        assert "redistribution_fraction: 0.15" in stdout

    def test_next_fails_cleanly(self, database_url):
        """Drawing from nothing is an error, not a crash."""
        code, stdout, stderr = run_cli_command(["next"], database_url)

        assert code == 1
        assert "Nothing available to select from" in stdout
        assert "Traceback" not in stderr

    def test_inverted_weight_bounds_rejected(self, database_url):
        code, stdout, stderr = run_cli_command(
            ["list"], database_url, extra_env={"MIN_WEIGHT": "150", "MAX_WEIGHT": "50"}
        )

        assert code == 1
        assert "Invalid weight range" in stdout

    def test_list_is_empty(self, database_url):
        code, stdout, stderr = run_cli_command(["list"], database_url)

        assert code == 0, f"List failed: {stderr}"
        assert "No topics yet" in stdout


class TestCLISelectionCycle:
    """Add topics, draw one, record the outcome."""

    def test_add_and_list(self, database_url):
        add_topic(database_url, "Algebra", "--scope", "math", "-i", "foundation", "-m", "20")

        code, stdout, stderr = run_cli_command(["list"], database_url)

        assert code == 0, f"List failed: {stderr}"
        assert "Algebra" in stdout
        assert "20%" in stdout

    def test_weights_table(self, database_url):
        add_topic(database_url, "Algebra", "-m", "20")
        add_topic(database_url, "Calculus", "-m", "99")

        code, stdout, stderr = run_cli_command(["weights"], database_url)

        assert code == 0, f"Weights failed: {stderr}"
        assert "Algebra" in stdout
        assert "Create New Topic" in stdout

    def test_next_with_seed_is_reproducible(self, database_url):
        add_topic(database_url, "Algebra", "-m", "20")
        add_topic(database_url, "Calculus", "-m", "60")

        first = run_cli_command(["next", "--seed", "11"], database_url)
        second = run_cli_command(["next", "--seed", "11"], database_url)

        assert first[0] == 0, f"Next failed: {first[2]}"
        assert "Next topic" in first[1]
        assert first[1] == second[1]

    def test_complete_pass_redistributes(self, database_url):
        topic_id = add_topic(database_url, "Algebra", "-m", "20")
        add_topic(database_url, "Calculus", "-m", "99")
        add_topic(database_url, "Statistics", "-m", "100")

        code, stdout, stderr = run_cli_command(
            ["complete", topic_id, "--pass", "--score", "85"], database_url
        )

        assert code == 0, f"Complete failed: {stderr}"
        assert "PASSED" in stdout
        assert "29%" in stdout
        assert "Weight Redistribution" in stdout

    def test_complete_fail_keeps_weights(self, database_url):
        topic_id = add_topic(database_url, "Algebra", "-m", "20")
        add_topic(database_url, "Calculus", "-m", "40")

        code, stdout, stderr = run_cli_command(["complete", topic_id, "--fail"], database_url)

        assert code == 0, f"Complete failed: {stderr}"
        assert "FAILED" in stdout
        assert "18%" in stdout
        assert "Weight Redistribution" not in stdout

    def test_complete_unknown_topic(self, database_url):
        add_topic(database_url, "Algebra")

        code, stdout, stderr = run_cli_command(["complete", "does-not-exist"], database_url)

        assert code == 1
        assert "Topic not found" in stdout


class TestCLIWeightMaintenance:
    """Weight distribution and rewrite commands."""

    def test_distribution(self, database_url):
        add_topic(database_url, "Algebra", "-w", "40")
        add_topic(database_url, "Calculus")

        code, stdout, stderr = run_cli_command(["distribution"], database_url)

        assert code == 0, f"Distribution failed: {stderr}"
        assert "Stored Weights" in stdout
        assert "Total: 140" in stdout

    def test_normalize_then_reset(self, database_url):
        add_topic(database_url, "Algebra", "-w", "500")

        code, stdout, stderr = run_cli_command(["normalize-weights"], database_url)
        assert code == 0, f"Normalize failed: {stderr}"
        assert "200" in stdout

        code, stdout, stderr = run_cli_command(["reset-weights"], database_url)
        assert code == 0, f"Reset failed: {stderr}"
        assert "100" in stdout
