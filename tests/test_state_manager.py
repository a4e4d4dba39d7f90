# tests/test_state_manager.py

from __future__ import annotations

import json
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

import pytest

from efficacy.core import state as state_module
from efficacy.core.errors import (
    FilesystemError,
    InvalidContextNameError,
    SerializationError,
    UnknownCategoryError,
    UnknownContextError,
    UnknownIdError,
)
from efficacy.core.state import DeleteOutcome, StateManager
from efficacy.tasks.category_index import NO_CATEGORY
from efficacy.tasks.task_models import Task, TaskState


def _on_disk(data_dir: Path, context: str) -> list[dict]:
    return json.loads((data_dir / f"{context}.json").read_text())


def test_first_run_starts_in_an_empty_default_context(manager: StateManager) -> None:
    assert manager.current_context == "default"
    assert manager.contexts() == ["default"]
    assert manager.tasks() == []
    assert manager.category_map() == {}


def test_add_add_complete_scenario(manager: StateManager, settings) -> None:
    manager.add("Buy milk", category=None)
    manager.add("Finish report", category="Work")
    manager.complete(0)

    assert manager.category_map() == {NO_CATEGORY: [0], "Work": [1]}
    assert manager.get_task(0).state is TaskState.DONE

    reopened = StateManager.open(settings.data_dir)
    assert reopened.tasks() == manager.tasks()
    assert reopened.category_map() == {NO_CATEGORY: [0], "Work": [1]}


def test_every_mutation_is_persisted_before_returning(manager: StateManager, settings) -> None:
    due = datetime(2030, 6, 1, 8, tzinfo=timezone.utc)
    manager.add("  Pay rent ", category=" Home ", information="before the 5th", due=due)
    assert _on_disk(settings.data_dir, "default") == [
        {
            "description": "Pay rent",
            "state": "Todo",
            "category": "Home",
            "information": "before the 5th",
            "due": "2030-06-01T08:00:00+00:00",
        }
    ]

    manager.edit(0, description="Pay the rent")
    assert _on_disk(settings.data_dir, "default")[0]["description"] == "Pay the rent"

    manager.rename_category("Home", "Flat")
    assert _on_disk(settings.data_dir, "default")[0]["category"] == "Flat"

    manager.complete(0)
    manager.clean()
    assert _on_disk(settings.data_dir, "default") == []


def test_blank_category_is_uncategorized(manager: StateManager) -> None:
    manager.add("a", category="   ")
    assert manager.get_task(0).category is None


def test_blank_text_fields_are_normalized_the_same_on_add_and_edit(manager: StateManager, settings) -> None:
    manager.add("a", information="   ")
    assert manager.get_task(0).information is None

    manager.edit(0, information="  chapter 4  ")
    assert manager.get_task(0).information == "chapter 4"

    manager.edit(0, information="   ", category="  ")
    assert manager.get_task(0).information == "chapter 4"
    assert manager.get_task(0).category is None
    assert _on_disk(settings.data_dir, "default")[0]["information"] == "chapter 4"


def test_empty_description_is_rejected(manager: StateManager, settings) -> None:
    with pytest.raises(ValueError):
        manager.add("   ")
    with pytest.raises(ValueError):
        manager.rename_category(NO_CATEGORY, " ")
    assert manager.tasks() == []


def test_structural_errors_leave_state_alone(manager: StateManager, settings) -> None:
    manager.add("a", category="Work")

    with pytest.raises(UnknownIdError):
        manager.complete(1)
    with pytest.raises(UnknownIdError):
        manager.delete(5)
    with pytest.raises(UnknownCategoryError):
        manager.delete_category(None)
    with pytest.raises(UnknownCategoryError):
        manager.rename_category("Home", "Flat")

    assert manager.tasks() == [Task(description="a", category="Work")]
    assert _on_disk(settings.data_dir, "default") == [Task(description="a", category="Work").to_dict()]


def test_delete_category_renumbers_contiguously(manager: StateManager) -> None:
    for desc, cat in [("a", None), ("b", "Work"), ("c", "Home"), ("d", "Work")]:
        manager.add(desc, category=cat)

    removed = manager.delete_category("Work")

    assert [t.description for t in removed] == ["d", "b"]
    assert [t.description for t in manager.tasks()] == ["a", "c"]
    assert manager.category_map() == {NO_CATEGORY: [0], "Home": [1]}


def test_new_context_validation(manager: StateManager) -> None:
    with pytest.raises(InvalidContextNameError):
        manager.new_context("default")
    with pytest.raises(InvalidContextNameError):
        manager.new_context("my context")
    assert manager.contexts() == ["default"]

    assert manager.new_context("work") == "work"
    assert manager.current_context == "work"
    assert manager.context_exists("work")


def test_new_context_refuses_existing_name(manager: StateManager, settings) -> None:
    manager.new_context("work")
    manager.add("important")
    manager.change_context("default")

    with pytest.raises(InvalidContextNameError):
        manager.new_context("work")

    assert _on_disk(settings.data_dir, "work")[0]["description"] == "important"


def test_switch_saves_the_outgoing_context(manager: StateManager, settings) -> None:
    manager.add("in default")
    manager.new_context("work")

    assert manager.tasks() == []
    assert _on_disk(settings.data_dir, "default")[0]["description"] == "in default"
    marker = json.loads((settings.data_dir / "context.json").read_text())
    assert marker == {"context_name": "work"}


def test_switching_away_and_back_loses_nothing(manager: StateManager) -> None:
    manager.new_context("a")
    manager.add("a1", category="X")
    manager.add("a2")
    manager.complete(1)
    before = [replace(t) for t in manager.tasks()]

    manager.new_context("b")
    manager.add("b1")
    manager.change_context("a")
    manager.change_context("b")
    manager.change_context("a")

    assert manager.tasks() == before
    assert manager.category_map() == {"X": [0], NO_CATEGORY: [1]}


def test_current_context_survives_restart(manager: StateManager, settings) -> None:
    manager.new_context("work")
    manager.add("w")

    reopened = StateManager.open(settings.data_dir)

    assert reopened.current_context == "work"
    assert [t.description for t in reopened.tasks()] == ["w"]
    assert reopened.contexts() == ["default", "work"]


def test_change_to_unknown_context_raises(manager: StateManager) -> None:
    manager.add("a")
    with pytest.raises(UnknownContextError):
        manager.change_context("nope")
    assert manager.current_context == "default"
    assert len(manager.tasks()) == 1


def test_switch_to_corrupt_context_loads_empty_and_keeps_bytes(manager: StateManager, settings) -> None:
    manager.new_context("broken")
    manager.change_context("default")
    (settings.data_dir / "broken.json").write_text("{definitely not json")

    manager.change_context("broken")

    assert manager.current_context == "broken"
    assert manager.tasks() == []
    assert (settings.data_dir / "broken.json").read_text() == "{definitely not json"


def test_switch_to_context_whose_file_vanished_loads_empty(manager: StateManager, settings) -> None:
    manager.new_context("gone")
    manager.change_context("default")
    (settings.data_dir / "gone.json").unlink()

    manager.change_context("gone")

    assert manager.tasks() == []


def test_switch_to_context_with_undecodable_bytes_loads_empty(manager: StateManager, settings) -> None:
    manager.new_context("latin")
    manager.change_context("default")
    raw = b"\xff\xfe[{\"description\": \"caf\xe9\"}]"
    (settings.data_dir / "latin.json").write_bytes(raw)

    manager.change_context("latin")

    assert manager.current_context == "latin"
    assert manager.tasks() == []
    assert (settings.data_dir / "latin.json").read_bytes() == raw


def test_failed_switch_keeps_the_previous_context(manager: StateManager, settings) -> None:
    manager.add("stay here")
    manager.new_context("locked")
    manager.change_context("default")
    (settings.data_dir / "locked.json").unlink()
    (settings.data_dir / "locked.json").mkdir()

    with pytest.raises(FilesystemError):
        manager.change_context("locked")

    assert manager.current_context == "default"
    assert [t.description for t in manager.tasks()] == ["stay here"]
    marker = json.loads((settings.data_dir / "context.json").read_text())
    assert marker == {"context_name": "default"}

    manager.add("still works")
    assert [t["description"] for t in _on_disk(settings.data_dir, "default")] == ["stay here", "still works"]


def test_corrupt_file_is_surfaced_at_startup(settings) -> None:
    StateManager.open(settings.data_dir)
    (settings.data_dir / "default.json").write_text("[{oops")

    with pytest.raises(SerializationError):
        StateManager.open(settings.data_dir)
    assert (settings.data_dir / "default.json").read_text() == "[{oops"


def test_undecodable_file_is_surfaced_at_startup(settings) -> None:
    StateManager.open(settings.data_dir)
    (settings.data_dir / "default.json").write_bytes(b"\xff\xfe\x00")

    with pytest.raises(SerializationError, match="UTF-8"):
        StateManager.open(settings.data_dir)
    assert (settings.data_dir / "default.json").read_bytes() == b"\xff\xfe\x00"


def test_marker_naming_a_missing_context_falls_back_to_default(settings) -> None:
    StateManager.open(settings.data_dir)
    (settings.data_dir / "context.json").write_text('{"context_name": "ghost"}')

    assert StateManager.open(settings.data_dir).current_context == "default"


def test_malformed_marker_falls_back_to_default(settings) -> None:
    StateManager.open(settings.data_dir)
    (settings.data_dir / "context.json").write_text("???")

    assert StateManager.open(settings.data_dir).current_context == "default"


def test_undecodable_marker_falls_back_to_default(settings) -> None:
    StateManager.open(settings.data_dir)
    (settings.data_dir / "context.json").write_bytes(b"\xff\xfe\x00")

    assert StateManager.open(settings.data_dir).current_context == "default"


def test_delete_context_refusals(manager: StateManager) -> None:
    manager.new_context("work")

    assert manager.delete_context("default") is DeleteOutcome.REFUSED_DEFAULT
    assert manager.delete_context("work") is DeleteOutcome.REFUSED_CURRENT
    assert manager.contexts() == ["default", "work"]


def test_delete_context_removes_file_and_registry_entry(manager: StateManager, settings) -> None:
    manager.new_context("work")
    manager.change_context("default")

    assert manager.delete_context("work") is DeleteOutcome.DELETED

    assert not (settings.data_dir / "work.json").exists()
    assert not manager.context_exists("work")
    assert manager.contexts() == ["default"]
    with pytest.raises(UnknownContextError):
        manager.change_context("work")


def test_delete_unknown_context_raises(manager: StateManager) -> None:
    with pytest.raises(UnknownContextError):
        manager.delete_context("nope")


def test_failed_save_is_surfaced_with_memory_ahead_of_disk(manager: StateManager, settings, monkeypatch) -> None:
    def broken_write(path: Path, text: str) -> None:
        raise FilesystemError("write", path, OSError(28, "No space left on device"))

    monkeypatch.setattr(state_module, "write_text_atomic", broken_write)

    with pytest.raises(FilesystemError):
        manager.add("unsaved")

    assert [t.description for t in manager.tasks()] == ["unsaved"]
    assert _on_disk(settings.data_dir, "default") == []
