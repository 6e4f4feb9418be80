"""Datetime standardization utilities.

Query results display timestamps in one fixed-width UTC form no matter how the
engine stored them (naive TIMESTAMP, TIMESTAMPTZ in the session time zone, or
second/milli/nano precision variants).
"""

from datetime import UTC, date, datetime, timedelta


def normalize_datetime(dt: datetime) -> datetime:
    """Always return a timezone-aware (UTC) datetime.

    - Naive datetime -> assumed UTC, made aware
    - Aware datetime -> converted to UTC

    Examples:
        >>> normalize_datetime(datetime(2024, 1, 15, 10, 30))
        datetime.datetime(2024, 1, 15, 10, 30, tzinfo=datetime.timezone.utc)
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def format_timestamp(dt: datetime) -> str:
    """Format as ``YYYY-MM-DD HH:MM:SS.mmm`` in UTC.

    Sub-millisecond precision is truncated, so every storage unit converges to
    milliseconds.

    Examples:
        >>> format_timestamp(datetime(2024, 1, 15, 10, 30, 0, 123456))
        '2024-01-15 10:30:00.123'
    """
    utc = normalize_datetime(dt)
    return (
        f"{format_date(utc)} "
        f"{utc.hour:02d}:{utc.minute:02d}:{utc.second:02d}.{utc.microsecond // 1000:03d}"
    )


def format_date(d: date) -> str:
    """Format a calendar date as ``YYYY-MM-DD``."""
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def format_interval(td: timedelta) -> str:
    """Format a duration the way DuckDB prints an INTERVAL.

    Examples:
        >>> format_interval(timedelta(days=2, hours=3, minutes=4, seconds=5))
        '2 days 03:04:05'
        >>> format_interval(timedelta(seconds=1.5))
        '00:00:01.5'
    """
    total_us = td // timedelta(microseconds=1)
    sign = "-" if total_us < 0 else ""
    days, rest_us = divmod(abs(total_us), 86_400_000_000)
    seconds, micros = divmod(rest_us, 1_000_000)
    hours, seconds = divmod(seconds, 3600)
    minutes, seconds = divmod(seconds, 60)

    parts = []
    if days:
        parts.append(f"{sign}{days} {'day' if days == 1 else 'days'}")
    if rest_us or not days:
        clock = f"{sign}{hours:02d}:{minutes:02d}:{seconds:02d}"
        if micros:
            clock += f".{micros:06d}".rstrip("0")
        parts.append(clock)
    return " ".join(parts)
