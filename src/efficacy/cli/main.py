# src/efficacy/cli/main.py

"""
CLI entrypoint.

Initializes logging, opens the StateManager, runs one command and exits.
"""

from __future__ import annotations

import argparse
import logging
from collections.abc import Sequence

from rich.console import Console
from rich.text import Text

from ..config import get_settings
from ..core.errors import EfficacyError, FilesystemError, SerializationError
from ..logging_setup import setup_logging
from .bootstrap import create_state
from .commands import registry

logger = logging.getLogger(__name__)


def _task_id(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid task id: {raw!r}") from None
    if value < 0:
        raise argparse.ArgumentTypeError(f"task ids start at 0, got {value}")
    return value


def build_parser(prog: str = "efficacy") -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=prog,
        description="Personal task manager with categories and separate contexts.",
    )
    parser.set_defaults(command=None)
    subparsers = parser.add_subparsers(metavar=f"(for more help: {prog} <command> -h)")

    def add_command(sub, name: str, command: str, **kwargs) -> argparse.ArgumentParser:
        p = sub.add_parser(name, help=registry.help_for(command), **kwargs)
        p.set_defaults(command=command)
        return p

    add_command(subparsers, "list", "list", aliases=["ls"])

    add = add_command(subparsers, "add", "add")
    add.add_argument("description", help="what needs doing")
    add.add_argument("-c", "--category", dest="category", help="category label")
    add.add_argument("-i", "--info", dest="information", help="free-text note")
    add.add_argument("-d", "--due", dest="due", help="due date (weekday, 'tomorrow', '2024-05-01 17:00', ...)")

    done = add_command(subparsers, "done", "done")
    done.add_argument("id", type=_task_id, help="task id")

    show = add_command(subparsers, "show", "show")
    show.add_argument("id", type=_task_id, help="task id")

    edit = subparsers.add_parser("edit", help="edit a task or a category")
    edit_sub = edit.add_subparsers(metavar="(task | category)", required=True)
    edit_task = add_command(edit_sub, "task", "edit-task")
    edit_task.add_argument("id", type=_task_id, help="task id")
    edit_task.add_argument("-t", "--title", dest="description", help="new description")
    edit_task.add_argument("-c", "--category", dest="category", help="new category")
    edit_task.add_argument("-i", "--info", dest="information", help="new note")
    edit_task.add_argument("-d", "--due", dest="due", help="new due date")
    edit_category = add_command(edit_sub, "category", "edit-category")
    edit_category.add_argument("old_title", help="current category label")
    edit_category.add_argument("new_title", help="new category label")

    delete = subparsers.add_parser("delete", aliases=["rm"], help="delete a task or a category")
    delete_sub = delete.add_subparsers(metavar="(task | category)", required=True)
    delete_task = add_command(delete_sub, "task", "delete-task")
    delete_task.add_argument("id", type=_task_id, help="task id")
    delete_category = add_command(delete_sub, "category", "delete-category")
    delete_category.add_argument("title", nargs="?", default=None, help="category label")

    add_command(subparsers, "clean", "clean")

    context = subparsers.add_parser("context", aliases=["ctx"], help="manage contexts")
    context_sub = context.add_subparsers(metavar="(list | new | switch | delete)")
    context.set_defaults(command="context-list")
    add_command(context_sub, "list", "context-list", aliases=["ls"])
    context_new = add_command(context_sub, "new", "context-new")
    context_new.add_argument("name", help="context name (no whitespace)")
    context_switch = add_command(context_sub, "switch", "context-switch", aliases=["sw"])
    context_switch.add_argument("name", help="context name")
    context_delete = add_command(context_sub, "delete", "context-delete", aliases=["rm"])
    context_delete.add_argument("name", help="context name")

    add_command(subparsers, "debug", "debug")
    return parser


def main(argv: Sequence[str] | None = None, *, settings=None) -> int:
    if settings is None:
        settings = get_settings()

    level_name = str(getattr(settings, "log_level", "WARNING")).upper()
    console_level = getattr(logging, level_name, logging.WARNING)
    setup_logging(log_dir=getattr(settings, "log_dir", None), console_level=console_level)

    args = build_parser(getattr(settings, "app_name", "efficacy")).parse_args(argv)
    command = args.command or "list"

    console = Console(highlight=False, no_color=not getattr(settings, "color", True))
    err_console = Console(stderr=True, highlight=False, no_color=not getattr(settings, "color", True))

    def fail(message: str) -> int:
        err_console.print(Text(f"Error: {message}", style="red"))
        return 1

    try:
        manager = create_state(settings=settings)
    except SerializationError as e:
        logger.error("Refusing to start on a malformed file: %s", e)
        return fail(f"{e}\nFix or remove the file; it was left untouched.")
    except EfficacyError as e:
        logger.error("Startup failed: %s", e)
        return fail(str(e))

    try:
        output = registry.handle(command, manager, args, settings)
    except FilesystemError as e:
        logger.error("Command %s failed to persist: %s", command, e)
        return fail(f"{e}\nChanges were not persisted.")
    except (EfficacyError, ValueError) as e:
        logger.info("Command %s rejected: %s", command, e)
        return fail(str(e))

    console.print(output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
