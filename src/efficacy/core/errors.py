# src/efficacy/core/errors.py

"""
Error kinds raised by the state layer.

Structural errors (unknown id/category/context, bad context name) are raised
before anything is mutated, so the in-memory state is unchanged when they
propagate. FilesystemError may be raised after an in-memory mutation when the
save fails: memory is then ahead of disk.
"""

from __future__ import annotations

from pathlib import Path


class EfficacyError(Exception):
    """Base class for every error the core reports to its callers."""


class UnknownIdError(EfficacyError):
    def __init__(self, task_id: int, size: int) -> None:
        if size:
            msg = f"No task with id #{task_id} (valid ids: 0..{size - 1})"
        else:
            msg = f"No task with id #{task_id} (the task list is empty)"
        super().__init__(msg)
        self.task_id = task_id
        self.size = size


class UnknownCategoryError(EfficacyError):
    def __init__(self, category: str) -> None:
        super().__init__(f"Category '{category}' has no tasks")
        self.category = category


class InvalidContextNameError(EfficacyError):
    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"Invalid context name '{name}': {reason}")
        self.name = name
        self.reason = reason


class UnknownContextError(EfficacyError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Context '{name}' does not exist")
        self.name = name


class FilesystemError(EfficacyError):
    """Any OSError while reading, writing or creating state files."""

    def __init__(self, action: str, path: Path, cause: OSError) -> None:
        super().__init__(f"Could not {action} {path}: {cause.strerror or cause}")
        self.action = action
        self.path = path
        self.cause = cause


class SerializationError(EfficacyError):
    """A persisted record could not be decoded."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        super().__init__(f"{path}: {message}" if path is not None else message)
        self.path = path
