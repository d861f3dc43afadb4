"""Unit tests for the bounded shell history and the line reader over it."""

from __future__ import annotations

import pytest
from prompt_toolkit.application import create_app_session
from prompt_toolkit.input import create_pipe_input
from prompt_toolkit.output import DummyOutput

from kairos.cli.prompt_utils import LineReader
from kairos.cli.shell_history import PromptHistory, ShellHistory


@pytest.mark.unit
def test_append_persists_and_load_reads_back(tmp_path):
    path = tmp_path / "state" / "history"
    history = ShellHistory(path)
    history.append("projects")
    history.append("  ")
    history.append("use PHYS01 ")

    assert path.read_text(encoding="utf-8") == "projects\nuse PHYS01\n"
    assert ShellHistory(path).load() == ["projects", "use PHYS01"]


@pytest.mark.unit
def test_history_is_capped(tmp_path):
    path = tmp_path / "history"
    history = ShellHistory(path, limit=3)
    for i in range(5):
        history.append(f"cmd {i}")

    assert history.entries == ["cmd 2", "cmd 3", "cmd 4"]
    assert ShellHistory(path, limit=3).load() == ["cmd 2", "cmd 3", "cmd 4"]


@pytest.mark.unit
def test_load_keeps_only_the_newest_lines(tmp_path):
    path = tmp_path / "history"
    path.write_text("a\n\nb\nc\nd\n", encoding="utf-8")

    assert ShellHistory(path, limit=2).load() == ["c", "d"]


@pytest.mark.unit
def test_missing_file_loads_empty(tmp_path):
    assert ShellHistory(tmp_path / "nope").load() == []


@pytest.mark.unit
def test_in_memory_history_never_touches_disk():
    history = ShellHistory(None)
    history.append("status")

    assert history.entries == ["status"]
    assert history.load() == []


@pytest.mark.unit
def test_older_and_newer_walk_the_entries():
    history = ShellHistory(None)
    for line in ("one", "two", "three"):
        history.append(line)

    assert history.newer() == ""
    assert history.older() == "three"
    assert history.older() == "two"
    assert history.older() == "one"
    assert history.older() == "one"
    assert history.newer() == "two"
    assert history.newer() == "three"
    assert history.newer() == ""
    assert history.older() == "three"


@pytest.mark.unit
def test_append_resets_the_cursor():
    history = ShellHistory(None)
    history.append("one")
    history.append("two")
    history.older()
    history.older()

    history.append("three")

    assert history.older() == "three"


@pytest.mark.unit
def test_prompt_history_serves_newest_first_and_records_accepted_lines(tmp_path):
    path = tmp_path / "history"
    history = ShellHistory(path)
    history.append("projects")
    history.append("status")
    adapter = PromptHistory(history)

    assert list(adapter.load_history_strings()) == ["status", "projects"]

    adapter.store_string("use PHYS01")

    assert history.entries[-1] == "use PHYS01"
    assert path.read_text(encoding="utf-8").splitlines()[-1] == "use PHYS01"


@pytest.mark.unit
def test_piped_reader_records_commands_but_not_answers(monkeypatch):
    replies = iter(["status", "y"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(replies))
    history = ShellHistory(None)
    reader = LineReader(history, interactive=False)

    assert reader.command("kairos ❯ ") == "status"
    assert reader.answer("Confirm? ") == "y"
    assert history.entries == ["status"]


@pytest.mark.unit
def test_reader_maps_eof_to_none(monkeypatch):
    def eof(prompt=""):
        raise EOFError

    monkeypatch.setattr("builtins.input", eof)

    assert LineReader(ShellHistory(None), interactive=False).command("> ") is None


@pytest.mark.unit
def test_terminal_reader_stores_commands_through_prompt_toolkit():
    history = ShellHistory(None)
    with create_pipe_input() as pipe, create_app_session(input=pipe, output=DummyOutput()):
        reader = LineReader(history, interactive=True)
        pipe.send_text("use PHYS01\r")

        assert reader.command("kairos ❯ ") == "use PHYS01"

    assert history.entries == ["use PHYS01"]
