# src/efficacy/core/state.py

"""
StateManager: the one object every command goes through.

It owns the active context's TaskStore (tasks + category index) and the
ContextRegistry, and keeps the two in step with the files on disk: every
mutating call changes memory first and then rewrites the current context's file
and the marker before returning.
"""

from __future__ import annotations

import logging
from datetime import datetime
from enum import StrEnum
from pathlib import Path

from ..contexts.registry import DEFAULT_CONTEXT, ContextRegistry, validate_context_name
from ..storage import read_text, write_text_atomic
from ..tasks.category_index import CategoryMap
from ..tasks.task_models import Task, TaskState
from ..tasks.task_store import TaskStore, dump_tasks, parse_tasks
from .errors import (
    EfficacyError,
    FilesystemError,
    InvalidContextNameError,
    SerializationError,
    UnknownContextError,
)

logger = logging.getLogger(__name__)


class DeleteOutcome(StrEnum):
    DELETED = "deleted"
    REFUSED_DEFAULT = "refused_default"
    REFUSED_CURRENT = "refused_current"


def _clean_optional(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _require_text(value: str, what: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{what} is required")
    return value


class StateManager:
    def __init__(self, registry: ContextRegistry) -> None:
        self.registry = registry
        self.store = TaskStore()
        self._current = DEFAULT_CONTEXT

    @classmethod
    def open(cls, data_dir: str | Path) -> StateManager:
        """
        Bootstrap the data directory and load the current context.

        A corrupt task file is surfaced here (SerializationError) instead of
        being replaced by an empty list, so the next save cannot overwrite it.
        """
        registry = ContextRegistry(data_dir)
        if registry.bootstrap():
            logger.info("Initialized data directory %s", registry.data_dir)
        manager = cls(registry)
        manager.load(strict=True)
        logger.debug(
            "StateManager ready context=%s tasks=%s", manager.current_context, len(manager.store)
        )
        return manager

    # ---- read access ----

    @property
    def current_context(self) -> str:
        return self._current

    def contexts(self) -> list[str]:
        return self.registry.names()

    def context_exists(self, name: str) -> bool:
        return name in self.registry

    def tasks(self) -> list[Task]:
        return self.store.tasks

    def get_task(self, task_id: int) -> Task:
        return self.store.get(task_id)

    def category_map(self) -> CategoryMap:
        return self.store.category_map()

    # ---- persistence ----

    def _resolve_marker(self) -> str:
        try:
            name = self.registry.read_marker()
        except SerializationError:
            logger.warning("Unreadable current-context marker, falling back to %s", DEFAULT_CONTEXT)
            return DEFAULT_CONTEXT
        if name not in self.registry:
            logger.warning("Marker names unknown context %r, falling back to %s", name, DEFAULT_CONTEXT)
            return DEFAULT_CONTEXT
        return name

    def _read_tasks(self, name: str, *, strict: bool) -> list[Task]:
        path = self.registry.path_for(name)
        try:
            return parse_tasks(read_text(path), path=path)
        except SerializationError:
            if strict:
                raise
            logger.warning("Context %s has a malformed task file %s, loading it as empty", name, path)
        except FilesystemError as e:
            if strict or not isinstance(e.cause, FileNotFoundError):
                raise
            logger.warning("Context %s has no task file %s, loading it as empty", name, path)
        return []

    def load(self, *, strict: bool = False) -> None:
        """
        Replace the in-memory store with the current context's file.

        With strict=False a missing or malformed file loads as an empty list.
        Nothing changes in memory unless the read succeeds.
        """
        name = self._resolve_marker()
        tasks = self._read_tasks(name, strict=strict)
        self._current = name
        self.store.replace(tasks)
        logger.debug("Loaded context=%s tasks=%s", name, len(tasks))

    def save(self) -> None:
        path = self.registry.path_for(self._current)
        write_text_atomic(path, dump_tasks(self.store))
        self.registry.write_marker(self._current)

    # ---- task operations ----

    def add(
        self,
        description: str,
        *,
        category: str | None = None,
        information: str | None = None,
        due: datetime | None = None,
    ) -> int:
        task = Task(
            description=_require_text(description, "description"),
            state=TaskState.TODO,
            category=_clean_optional(category),
            information=_clean_optional(information),
            due=due,
        )
        task_id = self.store.add(task)
        self.save()
        return task_id

    def complete(self, task_id: int) -> Task:
        task = self.store.complete(task_id)
        self.save()
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
        if description is not None:
            description = _require_text(description, "description")
        task = self.store.edit(
            task_id,
            description=description,
            category=_clean_optional(category),
            information=_clean_optional(information),
            due=due,
        )
        self.save()
        return task

    def delete(self, task_id: int) -> Task:
        removed = self.store.delete(task_id)
        self.save()
        return removed

    def clean(self) -> list[Task]:
        removed = self.store.clean()
        self.save()
        return removed

    # ---- category operations ----

    def rename_category(self, old: str, new: str) -> int:
        moved = self.store.rename_category(old, _require_text(new, "new category title"))
        self.save()
        return moved

    def delete_category(self, category: str | None) -> list[Task]:
        removed = self.store.delete_category(category)
        self.save()
        return removed

    # ---- context operations ----

    def new_context(self, name: str) -> str:
        """Create an empty context and switch to it. Returns the stored name."""
        name = validate_context_name(name)
        if name in self.registry:
            raise InvalidContextNameError(name, "a context with that name already exists")
        self.registry.register(name)
        self.change_context(name)
        return name

    def change_context(self, name: str) -> None:
        """
        Switch the active context.

        The outgoing context is saved before the marker moves, so a failure
        part way through never loses its in-memory edits.
        """
        if name not in self.registry:
            raise UnknownContextError(name)
        previous = self._current
        self.save()
        self.registry.write_marker(name)
        try:
            self.load()
        except EfficacyError:
            # Memory still holds `previous`; point the marker back at it.
            try:
                self.registry.write_marker(previous)
            except FilesystemError:
                logger.exception("Could not restore the current-context marker to %s", previous)
            raise
        logger.info("Context switched %s -> %s (%s tasks)", previous, self._current, len(self.store))

    def delete_context(self, name: str) -> DeleteOutcome:
        """
        Remove a context's file and registry entry.

        The default and the current context are refused without an error so the
        registry always keeps a valid current entry.
        """
        if name == DEFAULT_CONTEXT:
            logger.info("Refusing to delete the default context")
            return DeleteOutcome.REFUSED_DEFAULT
        if name == self._current:
            logger.info("Refusing to delete the current context %s", name)
            return DeleteOutcome.REFUSED_CURRENT
        if name not in self.registry:
            raise UnknownContextError(name)
        self.registry.deregister(name)
        return DeleteOutcome.DELETED
