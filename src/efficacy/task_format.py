# src/efficacy/task_format.py

"""
The task line format vocabulary shared by settings and rendering.

    %b  checkbox
    %d  description
    %i  id
    %D  due date
"""

from __future__ import annotations

TASK_FORMAT_CODES = frozenset("bdiD")
DEFAULT_TASK_FORMAT = "%b %d %i -> %D"
FALLBACK_TASK_FORMAT = "%b %d"


def valid_task_format(fmt: str) -> bool:
    """Every "%" must be followed by one of the known codes."""
    follows_escape = False
    for ch in fmt:
        if follows_escape:
            if ch not in TASK_FORMAT_CODES:
                return False
            follows_escape = False
        elif ch == "%":
            follows_escape = True
    return True
