# src/efficacy/tasks/category_index.py

"""
Category index: label -> ids of the tasks carrying that label.

Categories are never stored on their own; a label exists only while at least
one task references it. The index is therefore a pure cache over the task list
and build_category_index() is the one authoritative way to compute it.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from .task_models import Task

NO_CATEGORY = "No category"

CategoryMap = dict[str, list[int]]


def category_label(task: Task) -> str:
    return task.category if task.category is not None else NO_CATEGORY


def build_category_index(tasks: Iterable[Task]) -> CategoryMap:
    """Derive the index with a single scan. Ids within a bucket are ascending."""
    out: CategoryMap = {}
    for task_id, task in enumerate(tasks):
        out.setdefault(category_label(task), []).append(task_id)
    return out


class CategoryIndex:
    def __init__(self) -> None:
        self._buckets: CategoryMap = {}

    def rebuild(self, tasks: Iterable[Task]) -> None:
        self._buckets = build_category_index(tasks)

    def insert_incremental(self, task: Task, task_id: int) -> None:
        """
        Fast path for a task appended at the end of the list.

        Only valid when no existing id moved; anything else must rebuild.
        """
        self._buckets.setdefault(category_label(task), []).append(task_id)

    def ids(self, label: str) -> list[int]:
        return list(self._buckets.get(label, ()))

    def as_dict(self) -> CategoryMap:
        return {label: list(ids) for label, ids in self._buckets.items()}

    def __contains__(self, label: object) -> bool:
        return label in self._buckets

    def __iter__(self) -> Iterator[str]:
        return iter(self._buckets)

    def __len__(self) -> int:
        return len(self._buckets)

    def __repr__(self) -> str:
        return f"CategoryIndex({self._buckets!r})"
