from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.utcnow()


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")


def format_date_vn(value) -> str:
    """
    Render a stored "YYYY-MM-DD" date as "DD/MM/YYYY".

    Anything that is not dash-separated is returned as text unchanged.
    """
    if not value:
        return ""
    text = str(value)
    if "-" in text:
        parts = text.split("-")
        if len(parts) == 3:
            y, m, d = parts
            return f"{d}/{m}/{y}"
    return text


def parse_date_vn(value: Optional[str]) -> Optional[str]:
    """
    Parse "D/M/YYYY" or "DD/MM/YYYY" into an ISO "YYYY-MM-DD" string.

    Returns None when the text is not a real calendar date.
    """
    if not value:
        return None
    parts = value.strip().split("/")
    if len(parts) != 3:
        return None
    d, m, y = (p.strip() for p in parts)
    if len(y) != 4 or not (d.isdigit() and m.isdigit() and y.isdigit()):
        return None
    try:
        return date(int(y), int(m), int(d)).isoformat()
    except ValueError:
        return None
