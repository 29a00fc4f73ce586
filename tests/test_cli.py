"""
Test Suite for the notegraph command line
"""

import json

import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from notegraph.main import main


def run_cli(capsys, *argv):
    main(list(argv))
    return json.loads(capsys.readouterr().out)


def run_cli_error(capsys, *argv):
    with pytest.raises(SystemExit) as exc_info:
        main(list(argv))
    assert exc_info.value.code == 1
    return json.loads(capsys.readouterr().out)


class TestAuthoringCommands:
    """Test: create / update"""

    def test_create_then_update(self, tmp_path, capsys):
        notes = str(tmp_path / "notes")

        created = run_cli(
            capsys, "--notes-dir", notes, "create",
            "--title", "Root", "--text", "one\n\ntwo", "--alternative", "root", "--top-level",
        )
        assert created["note"]["id"] == 1
        assert created["note"]["key"] == "root"
        assert created["note"]["content"]["paragraphs"] == ["one", "two"]
        assert created["note"]["top_level"] is True

        child = run_cli(capsys, "--notes-dir", notes, "create", "--title", "Child", "--parent", "1")
        assert child["note"]["parent_id"] == 1

        updated = run_cli(
            capsys, "--notes-dir", notes, "update", "--key", "@2",
            "--previous", "1", "--not-top-level",
        )
        assert updated["note"]["previous_ids"] == [1]
        assert updated["note"]["parent_id"] == 1
        assert len(updated["note"]["update_at"]) == 1

    def test_create_with_missing_parent(self, tmp_path, capsys):
        error = run_cli_error(capsys, "--notes-dir", str(tmp_path), "create", "--parent", "3")
        assert error["type"] == "NotFoundError"
        assert "@3" in error["error"]


class TestReadCommands:
    """Test: stats / list-notes / get-note / get-graph / render"""

    @pytest.fixture
    def notes(self, tmp_path, capsys):
        notes = str(tmp_path / "notes")
        run_cli(capsys, "--notes-dir", notes, "create", "--title", "Root", "--alternative", "home", "--top-level")
        run_cli(capsys, "--notes-dir", notes, "create", "--title", "Child", "--parent", "1")
        run_cli(capsys, "--notes-dir", notes, "update", "--key", "@2", "--previous", "1")
        return notes

    def test_stats(self, notes, capsys):
        assert run_cli(capsys, "--notes-dir", notes, "stats") == {
            "notes": 2, "own_edges": 1, "cause_edges": 1, "top_level": 1,
        }

    def test_list_notes(self, notes, capsys):
        result = run_cli(capsys, "--notes-dir", notes, "list-notes")
        assert [n["key"] for n in result["notes"]] == ["home", "@2"]

    def test_get_note(self, notes, capsys):
        result = run_cli(capsys, "--notes-dir", notes, "get-note", "--key", "home")
        assert result["note"]["id"] == 1
        assert result["note"]["children"] == [2]

    def test_get_graph(self, notes, capsys):
        result = run_cli(capsys, "--notes-dir", notes, "get-graph")
        assert result["edges"] == [
            {"source": 1, "target": 2, "kind": "own"},
            {"source": 1, "target": 2, "kind": "cause"},
        ]
        assert result["top_level"] == [1]

    def test_render(self, notes, capsys):
        result = run_cli(capsys, "--notes-dir", notes, "render", "--key", "@1", "--base-url", "/n")
        assert result["key"] == "home"
        assert 'href="/n/@2"' in result["html"]

    def test_publish(self, notes, tmp_path, capsys):
        out = tmp_path / "out"
        result = run_cli(capsys, "--notes-dir", notes, "publish", "--out", str(out), "--assets", str(tmp_path))
        assert result == {"pages": 2, "assets": 0}
        assert (out / "home" / "index.html").is_file()


class TestErrors:
    """Test: failures print JSON and exit 1"""

    def test_unknown_key(self, tmp_path, capsys):
        error = run_cli_error(capsys, "--notes-dir", str(tmp_path), "get-note", "--key", "@9")
        assert error["type"] == "NotFoundError"

    def test_malformed_key(self, tmp_path, capsys):
        error = run_cli_error(capsys, "--notes-dir", str(tmp_path), "get-note", "--key", "@nine")
        assert error["type"] == "InvalidKeyError"

    def test_broken_record(self, tmp_path, capsys):
        (tmp_path / "1.note").write_text("id\n1\n", encoding="utf-8")
        error = run_cli_error(capsys, "--notes-dir", str(tmp_path), "stats")
        assert error["type"] == "FormatError"
        assert "1.note" in error["error"]

    def test_no_command(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1
