import shlex
import sys
from pathlib import Path

import pytest

from daybook.editor import (WHOLE_QUESTION, EditorLaunchError, EditorResult, FileOpened,
                            edit_lines, normalize_content, open_in_editor, parse_lines,
                            rebuild_entries, resolve_editor_command)
from daybook.storage import Entry

# any executable that is sure to exist; the runner never actually starts it
ENV = {"EDITOR": shlex.quote(sys.executable)}


def writer(text):
    """Fake runner that replaces the scratch file contents with ``text``."""
    calls = []

    def run(argv):
        calls.append(argv)
        Path(argv[-1]).write_text(text, encoding="utf-8")
    run.calls = calls
    return run


def failing_runner(argv):
    failing_runner.path = Path(argv[-1])
    raise EditorLaunchError("editor exited with status 1")


class TestResolveEditorCommand:
    def test_visual_wins(self):
        argv = resolve_editor_command("f.txt", {"VISUAL": "code -w", "EDITOR": "nano"},
                                      which=lambda name: "/bin/" + name)
        assert argv == ["code", "-w", "f.txt"]

    def test_editor_with_arguments(self):
        argv = resolve_editor_command("f.txt", {"EDITOR": "vim -u 'my rc'"},
                                      which=lambda name: "/bin/" + name)
        assert argv == ["vim", "-u", "my rc", "f.txt"]

    def test_falls_back_to_vim(self):
        seen = []
        argv = resolve_editor_command("f.txt", {}, which=lambda name: seen.append(name) or "x")
        assert argv == ["vim", "f.txt"]
        assert seen == ["vim"]

    def test_missing_program(self):
        with pytest.raises(EditorLaunchError, match="not found"):
            resolve_editor_command("f.txt", {"EDITOR": "nosuch"}, which=lambda name: None)


class TestContentHelpers:
    def test_normalize_content(self):
        assert normalize_content("a\r\nb\n\n") == "a\nb"

    def test_parse_lines_trims_and_drops_blanks(self):
        assert parse_lines("  a \n\n\t\nb") == ["a", "b"]

    def test_rebuild_reuses_earliest_matching_time(self):
        existing = [Entry("t1", "a"), Entry("t2", "a"), Entry("t3", "b")]
        stamps = iter(["new1", "new2"])
        got = rebuild_entries(existing, ["a", "a", "a", "b"], lambda: next(stamps))
        assert got == [Entry("t1", "a"), Entry("t2", "a"), Entry("new1", "a"), Entry("t3", "b")]

    def test_rebuild_changed_text_gets_fresh_time(self):
        got = rebuild_entries([Entry("t1", "a")], ["a!"], lambda: "fresh")
        assert got == [Entry("fresh", "a!")]


class TestEditLines:
    def test_whole_question_edit(self):
        run = writer("c\na\n\n  b  \nd\n")
        result = edit_lines("Q", ("a", "b", "c"), runner=run, environ=ENV)
        assert result == EditorResult("Q", WHOLE_QUESTION, ("c", "a", "b", "d"), changed=True)
        assert run.calls[0][0] == sys.executable

    def test_editor_sees_current_lines(self):
        seen = {}

        def run(argv):
            seen["text"] = Path(argv[-1]).read_text(encoding="utf-8")
        edit_lines("Q", ("a", "b"), runner=run, environ=ENV)
        assert seen["text"] == "a\nb\n"

    def test_unchanged_file(self):
        result = edit_lines("Q", ("a", "b"), runner=writer("a\nb"), environ=ENV)
        assert not result.changed
        assert result.responses == ("a", "b")

    def test_single_entry_edit(self):
        result = edit_lines("Q", ("old",), entry_index=2, runner=writer("  new text \n"),
                            environ=ENV)
        assert result == EditorResult("Q", 2, ("new text",), changed=True)

    def test_single_entry_cleared(self):
        result = edit_lines("Q", ("old",), entry_index=0, runner=writer("\n"), environ=ENV)
        assert result.changed
        assert result.responses == ()

    def test_failure_is_reported_and_scratch_removed(self):
        result = edit_lines("Q", ("a",), runner=failing_runner, environ=ENV)
        assert isinstance(result.error, EditorLaunchError)
        assert result.question == "Q"
        assert not failing_runner.path.exists()

    def test_missing_editor_is_reported(self):
        result = edit_lines("Q", ("a",), runner=writer("x"), environ={"EDITOR": "/no/such/ed"})
        assert isinstance(result.error, EditorLaunchError)
        assert not result.changed


class TestOpenInEditor:
    def test_success(self, tmp_path):
        path = tmp_path / "day.json"
        path.write_text("{}")
        run = writer('{"answers": {}}')
        assert open_in_editor(path, "day", runner=run, environ=ENV) == FileOpened("day")
        assert run.calls == [[sys.executable, str(path)]]

    def test_failure(self, tmp_path):
        result = open_in_editor(tmp_path / "x.json", "config", runner=failing_runner,
                                environ=ENV)
        assert result.kind == "config"
        assert isinstance(result.error, EditorLaunchError)
