# src/efficacy/cli/formatting.py

"""
Rendering of tasks, categories and contexts as rich Text.

The task line layout comes from a user format string:

    %b  checkbox, "[ ]" or "[X]"
    %d  description
    %i  id, as "#3"
    %D  due date relative to now ("3 days"); when a task has no due date the
        literal "-> %D" is dropped, so "%d -> %D" degrades to "%d"

Done tasks render dimmed.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from datetime import datetime, timedelta, timezone

from rich.text import Text

from ..tasks.task_models import Task, TaskState

DATE_DISPLAY_FORMAT = "%Y-%m-%d %H:%M"

DIM = "bright_black"

_TOKEN_RE = re.compile(r"%([bdiD])")


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit}" if n == 1 else f"{n} {unit}s"


def format_due_date(due: datetime, *, now: datetime | None = None) -> Text:
    now = now or datetime.now(timezone.utc)
    overdue = due < now
    diff = now - due if overdue else due - now

    if diff < timedelta(minutes=1):
        out = Text(_plural(int(diff.total_seconds()), "second"), style="red")
    elif diff < timedelta(hours=1):
        out = Text(_plural(int(diff.total_seconds() // 60), "minute"), style="red")
    elif diff < timedelta(days=1):
        out = Text(_plural(int(diff.total_seconds() // 3600), "hour"), style="red")
    elif diff < timedelta(weeks=4):
        style = "red" if diff.days == 1 else "bright_red"
        out = Text(_plural(diff.days, "day"), style=style)
    elif diff < timedelta(weeks=52):
        out = Text(_plural(diff.days // 7 // 4, "month"))
    else:
        out = Text(_plural(diff.days // 7 // 52, "year"))

    if overdue:
        out.append(" ago")
        out.stylize("bold red")
    return out


def format_task(fmt: str, task: Task, task_id: int, *, now: datetime | None = None) -> Text:
    done = task.state is TaskState.DONE
    base = DIM if done else None
    if task.due is None:
        fmt = fmt.replace("-> %D", "").replace("%D", "")

    out = Text()
    pos = 0
    for m in _TOKEN_RE.finditer(fmt):
        out.append(fmt[pos:m.start()], style=base)
        code = m.group(1)
        if code == "b":
            out.append("[X]" if done else "[ ]", style=base)
        elif code == "d":
            out.append(task.description, style=base)
        elif code == "i":
            out.append(f"#{task_id}", style=DIM)
        elif task.due is not None:
            out.append_text(format_due_date(task.due, now=now))
        pos = m.end()
    out.append(fmt[pos:], style=base)
    out.rstrip()
    return out


def format_task_spotlight(task: Task, task_id: int, *, now: datetime | None = None) -> Text:
    out = Text()
    out.append("[X] " if task.state is TaskState.DONE else "[ ] ")
    out.append(task.description, style="bold")
    out.append("\n")

    out.append("Due: ", style=DIM)
    if task.due is not None:
        out.append_text(format_due_date(task.due, now=now))
        local = task.due.astimezone().strftime(DATE_DISPLAY_FORMAT)
        out.append(f" ({local})", style=DIM)
    else:
        out.append("None", style=DIM)
    out.append("\n")

    out.append(f"category: {task.category or 'None'}\n", style=DIM)
    out.append(f"id: #{task_id}\n", style=DIM)
    out.append("\n")
    if task.information:
        out.append(task.information)
    else:
        out.append("No information.", style=DIM)
    return out


def format_category(label: str, ids: Sequence[int]) -> Text:
    out = Text(label, style="bold")
    out.append(": ")
    out.append(_plural(len(ids), "task"), style=DIM)
    return out


def format_context(name: str, is_current: bool) -> Text:
    if is_current:
        return Text.assemble("~", (name, "italic"), "~")
    return Text(name)


def format_nothing() -> Text:
    return Text("No tasks!", style=DIM)


def format_task_list(
    fmt: str,
    tasks: Sequence[Task],
    category_map: Mapping[str, Sequence[int]],
    *,
    now: datetime | None = None,
) -> Text:
    """
    All tasks grouped by category label (alphabetical), Todo before Done inside
    a group, then by id. Groups are separated by a blank line.
    """
    groups: list[Text] = []
    for label in sorted(category_map):
        ids = category_map[label]
        lines = [format_category(label, ids)]
        for task_id in sorted(ids, key=lambda i: (tasks[i].state is TaskState.DONE, i)):
            lines.append(format_task(fmt, tasks[task_id], task_id, now=now))
        groups.append(Text("\n").join(lines))

    if not groups:
        return format_nothing()
    return Text("\n\n").join(groups)
