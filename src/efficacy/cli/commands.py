# src/efficacy/cli/commands.py

from __future__ import annotations

import argparse
import logging
from collections.abc import Callable
from typing import Any

from rich.console import Group, RenderableType
from rich.pretty import Pretty
from rich.text import Text

from ..core.state import DeleteOutcome, StateManager
from .dates import parse_due
from .formatting import format_context, format_task_list, format_task_spotlight

CommandHandler = Callable[[StateManager, argparse.Namespace, Any], RenderableType]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Maps command names (as set by the argument parser) to handlers."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(self, name: str, handler: CommandHandler, help_text: str) -> None:
        self._handlers[name] = handler
        self._help[name] = help_text

    def help_for(self, name: str) -> str:
        return self._help[name]

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def handle(
        self,
        name: str,
        manager: StateManager,
        args: argparse.Namespace,
        settings: Any,
    ) -> RenderableType:
        handler = self._handlers.get(name)
        if handler is None:
            return Text(f"Unknown command: {name}. Use --help to list available commands.")
        logger.debug("Running command %s context=%s", name, manager.current_context)
        return handler(manager, args, settings)


registry = CommandRegistry()


def _task_list(manager: StateManager, settings: Any) -> Text:
    return format_task_list(settings.task_format, manager.tasks(), manager.category_map())


def _due(args: argparse.Namespace):
    raw = getattr(args, "due", None)
    return parse_due(raw) if raw else None


def cmd_list(manager: StateManager, args: argparse.Namespace, settings: Any) -> RenderableType:
    return _task_list(manager, settings)


def cmd_add(manager: StateManager, args: argparse.Namespace, settings: Any) -> RenderableType:
    manager.add(
        args.description,
        category=args.category,
        information=args.information,
        due=_due(args),
    )
    return _task_list(manager, settings)


def cmd_done(manager: StateManager, args: argparse.Namespace, settings: Any) -> RenderableType:
    manager.complete(args.id)
    return _task_list(manager, settings)


def cmd_show(manager: StateManager, args: argparse.Namespace, settings: Any) -> RenderableType:
    return format_task_spotlight(manager.get_task(args.id), args.id)


def cmd_edit_task(manager: StateManager, args: argparse.Namespace, settings: Any) -> RenderableType:
    fields = (args.description, args.category, args.information, args.due)
    if all(f is None for f in fields):
        return Text("Nothing to edit: pass at least one of --title, --category, --info, --due.")
    manager.edit(
        args.id,
        description=args.description,
        category=args.category,
        information=args.information,
        due=_due(args),
    )
    return _task_list(manager, settings)


def cmd_edit_category(manager: StateManager, args: argparse.Namespace, settings: Any) -> RenderableType:
    manager.rename_category(args.old_title, args.new_title)
    return _task_list(manager, settings)


def cmd_delete_task(manager: StateManager, args: argparse.Namespace, settings: Any) -> RenderableType:
    manager.delete(args.id)
    return _task_list(manager, settings)


def cmd_delete_category(manager: StateManager, args: argparse.Namespace, settings: Any) -> RenderableType:
    manager.delete_category(args.title)
    return _task_list(manager, settings)


def cmd_clean(manager: StateManager, args: argparse.Namespace, settings: Any) -> RenderableType:
    manager.clean()
    return _task_list(manager, settings)


def cmd_context_list(manager: StateManager, args: argparse.Namespace, settings: Any) -> RenderableType:
    current = manager.current_context
    return Text("\n").join(format_context(name, name == current) for name in manager.contexts())


def cmd_context_new(manager: StateManager, args: argparse.Namespace, settings: Any) -> RenderableType:
    name = manager.new_context(args.name)
    return Text(f"Created context '{name}' and switched to it.")


def cmd_context_switch(manager: StateManager, args: argparse.Namespace, settings: Any) -> RenderableType:
    manager.change_context(args.name)
    return Group(Text(f"Switched to context '{manager.current_context}'.\n"), _task_list(manager, settings))


def cmd_context_delete(manager: StateManager, args: argparse.Namespace, settings: Any) -> RenderableType:
    outcome = manager.delete_context(args.name)
    if outcome is DeleteOutcome.REFUSED_DEFAULT:
        return Text("Cannot delete the default context.")
    if outcome is DeleteOutcome.REFUSED_CURRENT:
        return Text("Cannot delete the current context. Switch to another context before deleting.")
    return Text(f"Deleted context '{args.name}'.")


def cmd_debug(manager: StateManager, args: argparse.Namespace, settings: Any) -> RenderableType:
    return Group(
        Text(f"Context: {manager.current_context}"),
        Text("Task objects:"),
        Pretty(manager.tasks()),
        Text("Category map:"),
        Pretty(manager.category_map()),
    )


registry.register("list", cmd_list, help_text="list tasks grouped by category")
registry.register("add", cmd_add, help_text="add a task")
registry.register("done", cmd_done, help_text="mark a task as done")
registry.register("show", cmd_show, help_text="show every detail of one task")
registry.register("edit-task", cmd_edit_task, help_text="edit a task's fields")
registry.register("edit-category", cmd_edit_category, help_text="rename a category")
registry.register("delete-task", cmd_delete_task, help_text="delete a task")
registry.register(
    "delete-category",
    cmd_delete_category,
    help_text="delete every task in a category (no title: uncategorized tasks)",
)
registry.register("clean", cmd_clean, help_text="remove every done task")
registry.register("context-list", cmd_context_list, help_text="list contexts (current one marked ~name~)")
registry.register("context-new", cmd_context_new, help_text="create a context and switch to it")
registry.register("context-switch", cmd_context_switch, help_text="switch to another context")
registry.register("context-delete", cmd_context_delete, help_text="delete a context and its tasks")
registry.register("debug", cmd_debug, help_text="dump the raw task list and category map")
