"""Argument checks and time window for the rhythm report."""

import enum
from datetime import datetime, time, timedelta, timezone
from typing import Optional, Tuple


class OutputFormat(enum.Enum):
    """Report output formats."""

    PRETTY = "pretty"
    JSON = "json"
    CSV = "csv"


def rhythm_window(
    days: int,
    output_format: OutputFormat,
    now: Optional[datetime] = None,
) -> Tuple[datetime, datetime]:
    """Return the UTC ``(from, to)`` range covering the past ``days`` days.

    The range starts at local midnight ``days`` days before today and ends
    at ``now``. Raises ``ValueError`` for ``days < 1`` or CSV output, which
    the rhythm report does not support.
    """
    if days < 1:
        raise ValueError("--days must be >= 1")
    if output_format is OutputFormat.CSV:
        raise ValueError("rhythm command does not support --format csv")

    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.astimezone()

    local_today = now.astimezone().date()
    start_date = local_today - timedelta(days=days)
    start = datetime.combine(start_date, time()).astimezone()
    return start.astimezone(timezone.utc), now.astimezone(timezone.utc)