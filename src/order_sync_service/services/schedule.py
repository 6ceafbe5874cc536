"""Import schedules of shop configurations.

A shop is imported either in a fixed interval or on a calendar. Calendar
configurations are lines of ``key=value``::

    minute=*/15
    hour=6-22
    dayOfWeek=mon-fri
    start=2026/01/01
    end=2026/12/31

Both kinds are evaluated with Celery schedule objects, so the worker's beat
dispatcher and the API agree on when the next run is due.
"""

from collections.abc import Callable, Iterable
from datetime import datetime, timedelta, timezone
from typing import Any

import structlog
from celery.schedules import BaseSchedule, ParseException, crontab, schedule

from order_sync_service.exceptions import ConfigurationError

logger = structlog.get_logger()

CALENDAR_FIELDS = {
    "minute": "minute",
    "hour": "hour",
    "dayOfWeek": "day_of_week",
    "dayOfMonth": "day_of_month",
    "month": "month_of_year",
}
CALENDAR_DEFAULTS = {"minute": "0", "hour": "0"}
UNSUPPORTED_CALENDAR_FIELDS = {"second", "year", "timezone"}
CALENDAR_DATE_FORMAT = "%Y/%m/%d"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes from the database as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_calendar(lines: Iterable[str]) -> tuple[dict[str, str], datetime | None, datetime | None]:
    """
    Parse calendar lines into crontab arguments and an optional date window.

    Raises:
        ConfigurationError: unknown key or unparsable date
    """
    fields: dict[str, str] = {}
    start: datetime | None = None
    end: datetime | None = None

    for line in lines:
        line = line.strip()
        if not line:
            continue
        key, _, value = line.partition("=")
        key, value = key.strip(), value.strip()

        if key in ("start", "end"):
            try:
                parsed = datetime.strptime(value, CALENDAR_DATE_FORMAT).replace(tzinfo=timezone.utc)
            except ValueError:
                raise ConfigurationError(f"invalid {key} date '{value}', expected yyyy/mm/dd") from None
            if key == "start":
                start = parsed
            else:
                end = parsed
        elif key in CALENDAR_FIELDS:
            if value:
                fields[CALENDAR_FIELDS[key]] = value
        elif key in UNSUPPORTED_CALENDAR_FIELDS:
            logger.warning("Calendar field not supported, ignored", field=key, value=value)
        else:
            raise ConfigurationError(f"unknown calendar entry '{line}'")

    for key, default in CALENDAR_DEFAULTS.items():
        fields.setdefault(CALENDAR_FIELDS[key], default)
    return fields, start, end


class ImportSchedule:
    """When a shop configuration has to be imported."""

    def __init__(
        self,
        interval_seconds: int | None = None,
        calendar: Iterable[str] | None = None,
        start_at: datetime | None = None,
        stop_at: datetime | None = None,
        now: Callable[[], datetime] = _utcnow,
    ):
        self.now = now
        self.start_at = as_utc(start_at)
        self.stop_at = as_utc(stop_at)
        self.calendar = [line for line in (calendar or []) if line.strip()]

        if self.calendar:
            fields, start, end = parse_calendar(self.calendar)
            self.start_at = start or self.start_at
            self.stop_at = end or self.stop_at
            try:
                self._schedule: BaseSchedule = crontab(nowfun=now, **fields)
            except (ValueError, ParseException) as e:
                raise ConfigurationError(f"invalid calendar: {e}") from e
            self.is_calendar = True
        elif interval_seconds and interval_seconds > 0:
            self._schedule = schedule(run_every=timedelta(seconds=interval_seconds), nowfun=now)
            self.is_calendar = False
        else:
            raise ConfigurationError("schedule needs an interval or a calendar")

    @classmethod
    def from_configuration(cls, configuration: Any, now: Callable[[], datetime] = _utcnow) -> "ImportSchedule":
        return cls(
            interval_seconds=configuration.interval_seconds,
            calendar=configuration.calendar,
            start_at=configuration.start_at,
            stop_at=configuration.stop_at,
            now=now,
        )

    def is_expired(self) -> bool:
        """True once the stop date has passed."""
        return self.stop_at is not None and self.now() > self.stop_at

    def is_due(self, last_run_at: datetime | None) -> bool:
        """
        Whether a run is due now.

        Without a previous run an interval schedule is due from its start
        date on, a calendar schedule at the first calendar match after its
        start date (or right away without one).
        """
        now = self.now()
        if self.is_expired():
            return False
        if self.start_at is not None and now < self.start_at:
            return False

        reference = as_utc(last_run_at)
        if reference is None:
            if self.is_calendar and self.start_at is not None:
                reference = self.start_at
            else:
                return True
        return self._schedule.is_due(reference).is_due

    def next_run_at(self, last_run_at: datetime | None) -> datetime | None:
        """Estimated time of the next run, None if the schedule has ended."""
        if self.is_expired():
            return None
        now = self.now()
        if self.start_at is not None and now < self.start_at and last_run_at is None:
            return self.start_at

        reference = as_utc(last_run_at)
        if reference is None:
            if not (self.is_calendar and self.start_at is not None):
                return now
            reference = self.start_at

        remaining = self._schedule.remaining_estimate(reference)
        next_run = now + max(remaining, timedelta(0))
        if self.stop_at is not None and next_run > self.stop_at:
            return None
        return next_run

    def describe(self) -> str:
        if self.is_calendar:
            return "; ".join(self.calendar)
        return f"every {int(self._schedule.run_every.total_seconds())}s"
