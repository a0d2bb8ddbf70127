"""
Due date resolution for task commands.
Turns phrases like "friday 16:00" into an RFC 3339 UTC timestamp.
"""
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from enum import Enum
from typing import Optional

from config.settings import DATE_TEMPLATE
from modules.errors import ConfigError


DAYS_MAP = {
    "monday": 0, "tuesday": 1, "wednesday": 2,
    "thursday": 3, "friday": 4, "saturday": 5, "sunday": 6
}

# strptime-style directive -> (field, pattern)
TEMPLATE_FIELDS = {
    "%d": ("day", r"[0-9]{1,2}"),
    "%m": ("month", r"[0-9]{1,2}"),
    "%Y": ("year", r"[0-9]{4}"),
}


class InvalidFormat(ValueError):
    """Raised when a due date phrase can't be resolved."""
    pass


class DayKind(Enum):
    TODAY = "today"
    TOMORROW = "tomorrow"
    EXPLICIT_DATE = "explicit_date"
    WEEKDAY = "weekday"
    INVALID = "invalid"


@dataclass(frozen=True)
class DayToken:
    """A classified day token. `value` holds the raw date text or weekday name."""
    kind: DayKind
    value: Optional[str] = None


@dataclass(frozen=True)
class DateContext:
    """The local "now" that relative day tokens are resolved against."""
    today: date
    tz: Optional[tzinfo] = None  # None means the system local zone

    @property
    def weekday(self) -> int:
        return self.today.weekday()

    @classmethod
    def now(cls, tz: Optional[tzinfo] = None) -> "DateContext":
        """Build a context from the system clock."""
        if tz is None:
            return cls(today=datetime.now().date())
        return cls(today=datetime.now(tz).date(), tz=tz)


def _compile_template(template: str) -> tuple[re.Pattern, list[str]]:
    parts = re.split(r"(%[A-Za-z])", template)
    regex = ""
    fields = []
    for part in parts:
        if not part:
            continue
        if part in TEMPLATE_FIELDS:
            field, pattern = TEMPLATE_FIELDS[part]
            regex += f"({pattern})"
            fields.append(field)
        elif part.startswith("%") and len(part) == 2:
            raise ConfigError(f"Unsupported date directive {part} in CUES_DATE_TEMPLATE \"{template}\"")
        else:
            regex += re.escape(part)
    return re.compile(regex), fields


def parse_date_template(text: str, template: str = DATE_TEMPLATE) -> date:
    """
    Parse a date by binding template fields positionally, left to right.

    A field bound twice must carry the same value both times, and the
    result needs a day, a month and a year.

    Raises:
        InvalidFormat: if the text doesn't fit the template or is incomplete
    """
    pattern, fields = _compile_template(template)
    match = pattern.fullmatch(text)
    if not match:
        raise InvalidFormat(f"'{text}' does not match date template {template}")

    bound: dict[str, int] = {}
    for field, raw in zip(fields, match.groups()):
        value = int(raw)
        if bound.get(field, value) != value:
            raise InvalidFormat(f"Conflicting {field} values in '{text}'")
        bound[field] = value

    missing = [f for f in ("day", "month", "year") if f not in bound]
    if missing:
        raise InvalidFormat(f"Date template {template} leaves {', '.join(missing)} unset")

    try:
        return date(bound["year"], bound["month"], bound["day"])
    except ValueError as e:
        raise InvalidFormat(str(e)) from e


def classify_day_token(token: str, template: str = DATE_TEMPLATE) -> DayToken:
    """Classify the first token of a due date phrase."""
    if token == "today":
        return DayToken(DayKind.TODAY)
    if token == "tomorrow":
        return DayToken(DayKind.TOMORROW)

    pattern, _ = _compile_template(template)
    if pattern.fullmatch(token):
        return DayToken(DayKind.EXPLICIT_DATE, token)
    if token in DAYS_MAP:
        return DayToken(DayKind.WEEKDAY, token)
    return DayToken(DayKind.INVALID, token)


def next_weekday(today: date, name: str) -> date:
    """Next occurrence of a weekday strictly after today."""
    days_ahead = (DAYS_MAP[name] - today.weekday()) % 7
    if days_ahead == 0:  # Same weekday means next week
        days_ahead = 7
    return today + timedelta(days=days_ahead)


def _resolve_day(token: DayToken, now: DateContext, template: str) -> date:
    if token.kind is DayKind.TODAY:
        return now.today
    if token.kind is DayKind.TOMORROW:
        return now.today + timedelta(days=1)
    if token.kind is DayKind.EXPLICIT_DATE:
        return parse_date_template(token.value, template)
    if token.kind is DayKind.WEEKDAY:
        return next_weekday(now.today, token.value)
    raise InvalidFormat(f"Unrecognised day: '{token.value}'")


def _parse_time(token: str) -> tuple[int, int]:
    try:
        parsed = datetime.strptime(token, "%H:%M")
    except ValueError as e:
        raise InvalidFormat(f"Invalid time: '{token}'") from e
    return parsed.hour, parsed.minute


def _to_utc(local: datetime, tz: Optional[tzinfo]) -> datetime:
    """Attach the zone in effect on that date and convert to UTC."""
    if tz is None:
        utc = local.astimezone(timezone.utc)
        back = utc.astimezone().replace(tzinfo=None)
    else:
        utc = local.replace(tzinfo=tz).astimezone(timezone.utc)
        back = utc.astimezone(tz).replace(tzinfo=None)

    # Wall-clock times skipped by a DST jump don't round-trip
    if back != local:
        raise InvalidFormat(f"{local:%Y-%m-%d %H:%M} does not exist in the local time zone")
    return utc


def resolve_due_datetime(phrase: str, now: DateContext,
                         template: str = DATE_TEMPLATE) -> datetime:
    """
    Resolve a two-token due date phrase to an aware UTC datetime.

    Args:
        phrase: e.g. "today 16:00", "tomorrow 9:30", "friday 04:00"
        now: Resolution anchor (local date and zone)
        template: Positional template for explicit dates

    Returns:
        Timezone-aware datetime in UTC

    Raises:
        InvalidFormat: for anything that isn't "<day> <HH:MM>"
    """
    parts = phrase.strip().lower().split()
    if len(parts) != 2:
        raise InvalidFormat(f"Expected '<day> <HH:MM>', got '{phrase}'")

    day_text, time_text = parts
    hour, minute = _parse_time(time_text)
    due_date = _resolve_day(classify_day_token(day_text, template), now, template)

    local = datetime(due_date.year, due_date.month, due_date.day, hour, minute, 0)
    return _to_utc(local, now.tz)


def resolve_due(phrase: str, now: DateContext, template: str = DATE_TEMPLATE) -> str:
    """Resolve a due date phrase to an RFC 3339 UTC string."""
    return resolve_due_datetime(phrase, now, template).isoformat()
