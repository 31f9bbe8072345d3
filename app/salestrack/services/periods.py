from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Iterable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.salestrack.core.config import settings
from app.salestrack.core.error_catalog import AppError, ErrorCatalog

_UTC_ALIASES = ("UTC", "Z", "Etc/UTC", "GMT")


@dataclass(frozen=True)
class DateWindow:
    """Half-open [start, end) window; ``start_utc``/``end_utc`` are naive UTC as stored."""

    start_local: datetime | None
    end_local: datetime | None
    start_utc: datetime | None
    end_utc: datetime | None
    tz: tzinfo

    @property
    def start_date(self) -> date | None:
        return self.start_local.date() if self.start_local else None

    @property
    def end_date(self) -> date | None:
        # last day included in the window
        return (self.end_local - timedelta(days=1)).date() if self.end_local else None


def resolve_timezone(timezone_name: str | None) -> tzinfo:
    name = timezone_name or settings.DEFAULT_TIMEZONE
    if name in _UTC_ALIASES:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise AppError(
            ErrorCatalog.VALIDATION_ERROR,
            details={"field": "tz", "message": f"Unknown timezone {name}"},
        ) from exc


def to_utc_naive(value: datetime | None, tz: tzinfo = timezone.utc) -> datetime | None:
    """Normalize to the naive UTC datetimes the database stores; naive inputs are read in ``tz``."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=tz)
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def from_utc_naive(value: datetime, tz: tzinfo) -> datetime:
    return value.replace(tzinfo=timezone.utc).astimezone(tz)


def local_midnight(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def resolve_date_window(
    start: date | None,
    end: date | None,
    tz: tzinfo,
    *,
    max_days: int | None = None,
) -> DateWindow:
    if start and end and end < start:
        raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "end_date must not precede start_date"})
    if max_days and start and end and (end - start).days + 1 > max_days:
        raise AppError(
            ErrorCatalog.VALIDATION_ERROR,
            details={"message": "date range exceeds limit", "max_days": max_days},
        )
    start_local = local_midnight(start, tz) if start else None
    end_local = local_midnight(end + timedelta(days=1), tz) if end else None
    return DateWindow(
        start_local=start_local,
        end_local=end_local,
        start_utc=to_utc_naive(start_local),
        end_utc=to_utc_naive(end_local),
        tz=tz,
    )


def iter_dates(start: date, end: date) -> Iterable[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
