# src/efficacy/contexts/registry.py

"""
Context registry: which contexts exist and which one is current.

On disk, a data directory looks like:

    context.json   marker: {"context_name": "<current>"}
    default.json   tasks of the reserved "default" context
    <name>.json    tasks of every other context

The registry's key set mirrors the *.json files in the directory (minus the
marker), with "default" always present.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from ..core.errors import FilesystemError, InvalidContextNameError, SerializationError, UnknownContextError
from ..storage import create_file, read_text, remove_file, write_text_atomic

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT = "default"
CONTEXT_SUFFIX = ".json"
MARKER_FILENAME = "context.json"
EMPTY_TASKS = "[]"


def validate_context_name(name: str) -> str:
    """Return the trimmed name, or raise InvalidContextNameError."""
    trimmed = name.strip()
    if not trimmed:
        raise InvalidContextNameError(name, "name is empty")
    if trimmed == DEFAULT_CONTEXT:
        raise InvalidContextNameError(name, "'default' is reserved")
    if trimmed == Path(MARKER_FILENAME).stem:
        raise InvalidContextNameError(name, "name collides with the current-context marker file")
    if any(ch.isspace() for ch in trimmed):
        raise InvalidContextNameError(name, "name must not contain whitespace")
    if "/" in trimmed or "\\" in trimmed or trimmed.startswith("."):
        raise InvalidContextNameError(name, "name must be a plain file name")
    return trimmed


class ContextRegistry:
    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir)
        self.marker_path = self.data_dir / MARKER_FILENAME
        self.default_path = self.data_dir / f"{DEFAULT_CONTEXT}{CONTEXT_SUFFIX}"
        self._paths: dict[str, Path] = {DEFAULT_CONTEXT: self.default_path}

    # ---- startup ----

    def bootstrap(self) -> bool:
        """
        Create whatever part of the layout is missing, then scan.

        Existing files are never rewritten. Returns True if anything had to be
        created (first run, or a partially deleted directory).
        """
        created = False
        if not self.data_dir.is_dir():
            try:
                self.data_dir.mkdir(parents=True)
            except OSError as e:
                raise FilesystemError("create directory", self.data_dir, e) from e
            logger.info("Created data directory %s", self.data_dir)
            created = True

        if not self.marker_path.exists():
            create_file(self.marker_path, self._marker_json(DEFAULT_CONTEXT))
            created = True

        if not self.default_path.exists():
            create_file(self.default_path, EMPTY_TASKS)
            created = True

        self.scan()
        logger.debug("Context registry ready dir=%s contexts=%s", self.data_dir, self.names())
        return created

    def scan(self) -> None:
        paths: dict[str, Path] = {}
        try:
            entries = sorted(self.data_dir.iterdir())
        except OSError as e:
            raise FilesystemError("scan", self.data_dir, e) from e
        for path in entries:
            if path.suffix != CONTEXT_SUFFIX or not path.is_file():
                continue
            if path == self.marker_path or path == self.default_path:
                continue
            paths[path.stem] = path
        paths[DEFAULT_CONTEXT] = self.default_path
        self._paths = paths

    # ---- membership ----

    def __contains__(self, name: object) -> bool:
        return name in self._paths

    def names(self) -> list[str]:
        return sorted(self._paths)

    def path_for(self, name: str) -> Path:
        try:
            return self._paths[name]
        except KeyError:
            raise UnknownContextError(name) from None

    def register(self, name: str) -> Path:
        """Create an empty backing file for a new context. Names must be validated first."""
        path = self.data_dir / f"{name}{CONTEXT_SUFFIX}"
        create_file(path, EMPTY_TASKS)
        self._paths[name] = path
        logger.info("Context registered name=%s path=%s", name, path)
        return path

    def deregister(self, name: str) -> None:
        """Remove the backing file and forget the context."""
        path = self.path_for(name)
        if path.exists():
            remove_file(path)
        else:
            logger.warning("Context file for %s already gone: %s", name, path)
        del self._paths[name]
        logger.info("Context deregistered name=%s", name)

    # ---- current-context marker ----

    @staticmethod
    def _marker_json(name: str) -> str:
        return json.dumps({"context_name": name})

    def read_marker(self) -> str:
        text = read_text(self.marker_path)
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise SerializationError(f"invalid JSON ({e.msg})", self.marker_path) from e
        name = data.get("context_name") if isinstance(data, dict) else None
        if not isinstance(name, str) or not name:
            raise SerializationError("marker has no context_name", self.marker_path)
        return name

    def write_marker(self, name: str) -> None:
        write_text_atomic(self.marker_path, self._marker_json(name))
