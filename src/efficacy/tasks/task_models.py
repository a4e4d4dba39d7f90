# src/efficacy/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from ..core.errors import SerializationError


class TaskState(StrEnum):
    """
    Completion state.

    Values are capitalized ("Todo"/"Done") so task files stay readable by older
    builds that wrote the enum variant names verbatim.
    """

    TODO = "Todo"
    DONE = "Done"

    @classmethod
    def from_raw(cls, raw: Any) -> TaskState:
        if isinstance(raw, str):
            for member in cls:
                if member.value.lower() == raw.strip().lower():
                    return member
        raise SerializationError(f"unknown task state {raw!r}")


def _due_to_str(due: datetime | None) -> str | None:
    if due is None:
        return None
    return due.astimezone(timezone.utc).isoformat()


def _str_to_due(raw: Any) -> datetime | None:
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise SerializationError(f"due must be a timestamp string, got {raw!r}")
    try:
        due = datetime.fromisoformat(raw)
    except ValueError as e:
        raise SerializationError(f"bad due timestamp {raw!r}") from e
    if due.tzinfo is None:
        due = due.replace(tzinfo=timezone.utc)
    return due.astimezone(timezone.utc)


def _optional_text(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None or isinstance(value, str):
        return value
    raise SerializationError(f"{key} must be text or null, got {value!r}")


@dataclass(slots=True)
class Task:
    description: str
    state: TaskState = TaskState.TODO
    category: str | None = None
    information: str | None = None
    due: datetime | None = None

    @property
    def done(self) -> bool:
        return self.state is TaskState.DONE

    def to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "state": self.state.value,
            "category": self.category,
            "information": self.information,
            "due": _due_to_str(self.due),
        }

    @classmethod
    def from_dict(cls, data: Any) -> Task:
        """
        Decode one persisted record.

        Only description and state are required; any optional key that is
        missing reads as None so files written before a field existed still load.
        """
        if not isinstance(data, dict):
            raise SerializationError(f"task record must be an object, got {type(data).__name__}")
        description = data.get("description")
        if not isinstance(description, str) or not description.strip():
            raise SerializationError("task record has no description")
        if "state" not in data:
            raise SerializationError(f"task {description!r} has no state")
        return cls(
            description=description,
            state=TaskState.from_raw(data["state"]),
            category=_optional_text(data, "category"),
            information=_optional_text(data, "information"),
            due=_str_to_due(data.get("due")),
        )
