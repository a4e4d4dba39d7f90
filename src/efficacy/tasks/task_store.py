# src/efficacy/tasks/task_store.py

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator
from datetime import datetime
from pathlib import Path

from ..core.errors import SerializationError, UnknownCategoryError, UnknownIdError
from .category_index import NO_CATEGORY, CategoryIndex, CategoryMap, category_label
from .task_models import Task, TaskState

logger = logging.getLogger(__name__)


def dump_tasks(tasks: Iterable[Task]) -> str:
    return json.dumps([t.to_dict() for t in tasks], ensure_ascii=False, indent=2)


def parse_tasks(text: str, *, path: Path | None = None) -> list[Task]:
    """
    Decode a task file.

    A blank file is an empty list (new contexts start out as empty files).
    Anything else that is not a JSON array of task records raises
    SerializationError.
    """
    if not text.strip():
        return []
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SerializationError(f"invalid JSON ({e.msg} at line {e.lineno})", path) from e
    if not isinstance(data, list):
        raise SerializationError(f"expected a list of tasks, got {type(data).__name__}", path)
    try:
        return [Task.from_dict(item) for item in data]
    except SerializationError as e:
        raise SerializationError(str(e), path) from e


class TaskStore:
    """
    Ordered task list of one context plus its category index.

    A task's id is its position. Removing a task shifts every later id down by
    one, so every removal path rebuilds the index; only add() takes the
    incremental path.

    Every method validates its arguments before touching the list, so a raised
    UnknownIdError/UnknownCategoryError leaves the store unchanged.
    """

    def __init__(self, tasks: Iterable[Task] | None = None) -> None:
        self._tasks: list[Task] = list(tasks or [])
        self._index = CategoryIndex()
        self._index.rebuild(self._tasks)

    # ---- read access ----

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[Task]:
        return iter(self._tasks)

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    @property
    def category_index(self) -> CategoryIndex:
        return self._index

    def category_map(self) -> CategoryMap:
        return self._index.as_dict()

    def get(self, task_id: int) -> Task:
        self._check_id(task_id)
        return self._tasks[task_id]

    def _check_id(self, task_id: int) -> None:
        if task_id < 0 or task_id >= len(self._tasks):
            raise UnknownIdError(task_id, len(self._tasks))

    # ---- bulk ----

    def replace(self, tasks: Iterable[Task]) -> None:
        """Swap in a freshly loaded list. Never merges."""
        self._tasks = list(tasks)
        self._index.rebuild(self._tasks)

    def rebuild_index(self) -> None:
        self._index.rebuild(self._tasks)

    # ---- task operations ----

    def add(self, task: Task) -> int:
        task_id = len(self._tasks)
        self._tasks.append(task)
        self._index.insert_incremental(task, task_id)
        logger.debug("Task added id=%s category=%s", task_id, category_label(task))
        return task_id

    def complete(self, task_id: int) -> Task:
        task = self.get(task_id)
        task.state = TaskState.DONE
        logger.debug("Task completed id=%s", task_id)
        return task

    def edit(
        self,
        task_id: int,
        *,
        description: str | None = None,
        category: str | None = None,
        information: str | None = None,
        due: datetime | None = None,
    ) -> Task:
        """Apply the supplied fields; None leaves a field unchanged."""
        task = self.get(task_id)
        if description is not None:
            task.description = description
        if information is not None:
            task.information = information
        if due is not None:
            task.due = due
        if category is not None and category != task.category:
            task.category = category
            self._index.rebuild(self._tasks)
        logger.debug("Task edited id=%s", task_id)
        return task

    def delete(self, task_id: int) -> Task:
        self._check_id(task_id)
        removed = self._tasks.pop(task_id)
        self._index.rebuild(self._tasks)
        logger.debug("Task deleted id=%s remaining=%s", task_id, len(self._tasks))
        return removed

    def clean(self) -> list[Task]:
        """Drop every Done task, keeping the relative order of the rest."""
        removed = [t for t in self._tasks if t.done]
        self._tasks = [t for t in self._tasks if not t.done]
        self._index.rebuild(self._tasks)
        logger.debug("Cleaned %s done tasks, %s left", len(removed), len(self._tasks))
        return removed

    # ---- category operations ----

    def rename_category(self, old: str, new: str) -> int:
        if old not in self._index:
            raise UnknownCategoryError(old)
        ids = self._index.ids(old)
        for task_id in ids:
            self._tasks[task_id].category = new
        self._index.rebuild(self._tasks)
        logger.debug("Category renamed %r -> %r (%s tasks)", old, new, len(ids))
        return len(ids)

    def delete_category(self, category: str | None) -> list[Task]:
        """
        Remove every task in the bucket; None selects "No category".

        Ids are removed highest first so the positions still to be removed do
        not move. Returned tasks are in that removal order.
        """
        label = NO_CATEGORY if category is None else category
        if label not in self._index:
            raise UnknownCategoryError(label)
        removed = [self._tasks.pop(task_id) for task_id in sorted(self._index.ids(label), reverse=True)]
        self._index.rebuild(self._tasks)
        logger.debug("Category %r deleted (%s tasks)", label, len(removed))
        return removed
