# passgate/utils/documents.py
"""
Tolerant accessors for schema-less documents.

Stored documents come from several generations of the registration flow, so
timestamps may be datetimes, ISO strings, epoch numbers or
{"_seconds": ...} maps, and list fields may be missing or None.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_datetime(value: Any) -> Optional[datetime]:
    """Best-effort conversion of a stored timestamp to an aware UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        # Heuristic: anything past year ~2286 in seconds is milliseconds
        seconds = value / 1000 if value > 1e10 else value
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    if isinstance(value, dict):
        seconds = value.get("_seconds", value.get("seconds"))
        if isinstance(seconds, (int, float)):
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        return None
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def to_iso(value: Any) -> Optional[str]:
    dt = to_datetime(value)
    return dt.isoformat() if dt else None


def created_at_millis(doc: Dict[str, Any]) -> int:
    """Sort key for documents; missing timestamps sort last when descending."""
    dt = to_datetime(doc.get("createdAt"))
    return int(dt.timestamp() * 1000) if dt else 0


def str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, str) and v]
