from __future__ import annotations

import uuid
from datetime import datetime, timezone
from urllib.parse import urlparse

from dateutil import parser as dt_parser


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_id() -> str:
    return uuid.uuid4().hex


def parse_timestamp(value) -> datetime | None:
    if value is None or value == "":
        return None
    try:
        if isinstance(value, datetime):
            parsed = value
        else:
            parsed = dt_parser.isoparse(str(value))
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        # offsets near datetime.min/max cannot be expressed in UTC
        return parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        return None


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_timestamp(value: datetime, timespec: str = "auto") -> str:
    return (
        value.astimezone(timezone.utc)
        .isoformat(timespec=timespec)
        .replace("+00:00", "Z")
    )


def normalize_tags(raw) -> list[str]:
    if not raw:
        return []
    if isinstance(raw, str):
        raw = raw.replace(";", ",").split(",")
    tokens = [str(t).strip() for t in raw if t is not None]
    return sorted({t for t in tokens if t})


def is_http_url(url: str) -> bool:
    if not url:
        return False
    parsed = urlparse(url.strip())
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)
