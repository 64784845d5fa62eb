"""Daily notes: one note per local calendar day, titled YYYY-MM-DD."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from datetime import date, timedelta

from .core.model import Note
from .core.store import NoteStore

log = logging.getLogger(__name__)

DAILY_TITLE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
DAILY_TAGS = ("daily", "journal")
RECENT_DAYS = 7
RECENT_LIMIT = 6

TEMPLATE = """{weekday}, {long_date}

Today's Focus:


Notes:


Reflections:


This is your daily note for {iso}. Use it to capture thoughts, tasks, and reflections for the day."""


def daily_title(day: date) -> str:
    return day.isoformat()


def daily_template(day: date) -> str:
    return TEMPLATE.format(
        weekday=day.strftime("%A"),
        long_date=f"{day.strftime('%B')} {day.day}, {day.year}",
        iso=day.isoformat(),
    )


class DailyNoteScheduler:
    """
    Creates today's note on demand, at most once per day.

    The store is the authority: `ensure_today` always checks it for an
    existing note before creating one. `last_checked` records the last day a
    check ran so callers can skip repeat work within the same day.
    """

    def __init__(
        self,
        store: NoteStore,
        today: Callable[[], date] = date.today,
        tags: Sequence[str] = DAILY_TAGS,
    ):
        self.store = store
        self.today = today
        self.tags = tuple(tags)
        self.last_checked: date | None = None

    def needs_check(self) -> bool:
        return self.last_checked != self.today()

    def today_note(self) -> Note | None:
        return self.store.get_by_title(daily_title(self.today()))

    def ensure_today(self) -> Note:
        day = self.today()
        title = daily_title(day)
        note = self.store.get_by_title(title)
        if note is None:
            note = self.store.add(title, daily_template(day), self.tags)
            log.info("Created daily note %s", title)
        self.last_checked = day
        return note


def daily_notes(notes: Sequence[Note]) -> list[Note]:
    """Notes titled like a date, newest date first."""
    dailies = [n for n in notes if DAILY_TITLE_RE.match(n.title)]
    return sorted(dailies, key=lambda n: n.title, reverse=True)


def recent_daily_notes(notes: Sequence[Note], today: date) -> list[Note]:
    cutoff = daily_title(today - timedelta(days=RECENT_DAYS))
    current = daily_title(today)
    recent = [n for n in daily_notes(notes) if cutoff <= n.title < current]
    return recent[:RECENT_LIMIT]


def describe_day(day: date, today: date) -> str:
    if day == today:
        return "Today"
    if day == today - timedelta(days=1):
        return "Yesterday"
    return f"{day.strftime('%a, %b')} {day.day}"
