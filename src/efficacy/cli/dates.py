# src/efficacy/cli/dates.py

"""Due-date parsing for --due arguments. Results are always UTC."""

from __future__ import annotations

from datetime import datetime, time, timedelta, timezone

from dateutil import parser as dtparser
from dateutil import tz
from dateutil.relativedelta import FR, MO, SA, SU, TH, TU, WE, relativedelta

# Tasks due "on a day" are due at this local hour.
DUE_HOUR = 8

WEEKDAYS = {
    "mon": MO, "monday": MO,
    "tu": TU, "tue": TU, "tues": TU, "tuesday": TU,
    "wed": WE, "wednesday": WE,
    "thu": TH, "thur": TH, "thurs": TH, "thursday": TH,
    "fri": FR, "friday": FR,
    "sa": SA, "sat": SA, "saturday": SA,
    "su": SU, "sun": SU, "sunday": SU,
}


class DueDateError(ValueError):
    pass


def parse_due(text: str, *, now: datetime | None = None) -> datetime:
    """
    Parse a due date.

    Accepts "today", "tomorrow", a weekday name (the next such day, today
    included) or anything dateutil understands. Day-only values mean DUE_HOUR
    local time; naive date-times are local time.
    """
    local = tz.tzlocal()
    now = (now or datetime.now(timezone.utc)).astimezone(local)
    key = text.strip().lower()
    if not key:
        raise DueDateError("empty due date")

    if key == "today":
        day = now.date()
    elif key == "tomorrow":
        day = now.date() + timedelta(days=1)
    elif key in WEEKDAYS:
        day = now.date() + relativedelta(weekday=WEEKDAYS[key](+1))
    else:
        default = now.replace(hour=DUE_HOUR, minute=0, second=0, microsecond=0, tzinfo=None)
        try:
            parsed = dtparser.parse(text, default=default)
        except (dtparser.ParserError, ValueError, OverflowError) as e:
            raise DueDateError(f"cannot understand due date {text!r}") from e
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=local)
        return parsed.astimezone(timezone.utc)

    return datetime.combine(day, time(DUE_HOUR), tzinfo=local).astimezone(timezone.utc)
