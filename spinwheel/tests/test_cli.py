"""
Tests for the command-line interface.
"""

import json

import pytest

from ..cli import main


@pytest.fixture
def run(tmp_path, capsys):
    """Run the CLI against a temporary data directory and return stdout."""
    def _run(*args):
        main(["--data-dir", str(tmp_path), *args])
        return capsys.readouterr().out
    return _run


class TestCli:
    def test_add_and_list(self, run):
        run("add", "Alice")
        run("add", "Bob", "--color", "#000000")
        out = run("list")
        assert "Alice" in out
        assert "#000000" in out

    def test_spin_and_stats(self, run):
        run("add", "Alice")
        run("add", "Bob")
        out = run("spin", "--times", "3")
        assert out.count("#") == 3

        stats = run("stats")
        assert "Total spins: 3" in stats

    def test_history_csv(self, run):
        run("add", "Alice")
        run("add", "Bob")
        run("spin")
        out = run("history", "--csv")
        assert out.splitlines()[0] == "Spin #,Timestamp,Participant"

    def test_error_exits_nonzero(self, run, capsys):
        with pytest.raises(SystemExit) as exc_info:
            run("add", "A")
        assert exc_info.value.code == 1
        assert "Error:" in capsys.readouterr().out

    def test_spin_needs_two(self, run):
        run("add", "Alice")
        with pytest.raises(SystemExit):
            run("spin")

    def test_settings(self, run):
        out = run("settings", "spinDuration=3", "dark_mode=true")
        assert "spin_duration_seconds = 3" in out
        assert "dark_mode = True" in out

    def test_export_import(self, run, tmp_path):
        run("add", "Alice")
        backup = tmp_path / "backup.json"
        run("export", "-o", str(backup))
        assert json.loads(backup.read_text(encoding="utf-8"))["users"][0]["name"] == "Alice"

        run("reset", "--yes")
        assert "No participants" in run("list")

        run("import", str(backup))
        assert "Alice" in run("list")

    def test_reset_requires_confirmation(self, run):
        with pytest.raises(SystemExit):
            run("reset")

    def test_share_and_load(self, run, tmp_path, capsys):
        run("add", "Alice")
        run("add", "Bob")
        token = run("share").strip()

        other = tmp_path / "other"
        main(["--data-dir", str(other), "load-share", token])
        assert "2 participants" in capsys.readouterr().out

    def test_no_command(self, tmp_path):
        with pytest.raises(SystemExit):
            main(["--data-dir", str(tmp_path)])
