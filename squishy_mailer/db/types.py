"""Custom SQLAlchemy types used by the persistence layer."""
from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from typing import Iterable, List, Optional

from sqlalchemy.types import Text, TypeDecorator

# Fixed-precision layout; trailing zeros are kept so that textual ordering
# matches chronological ordering.
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"
ONE_MICROSECOND = timedelta(microseconds=1)


def utc_now() -> datetime:
    return datetime.now(UTC)


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        raise ValueError("naive datetimes are ambiguous; pass an aware datetime")
    return value.astimezone(UTC).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=UTC)


class UTCTimestamp(TypeDecorator[datetime]):
    """Aware datetimes stored as fixed-layout UTC text with microseconds."""

    cache_ok = True
    impl = Text

    def process_bind_param(self, value, dialect):  # type: ignore[override]
        if value is None:
            return None
        if isinstance(value, str):
            # validate the layout rather than storing arbitrary text
            return format_timestamp(parse_timestamp(value))
        return format_timestamp(value)

    def process_result_value(self, value, dialect):  # type: ignore[override]
        if value is None:
            return None
        return parse_timestamp(value)


class JSONStringList(TypeDecorator[List[str]]):
    """Ordered list of strings stored as a JSON array in a text column."""

    cache_ok = True
    impl = Text

    def process_bind_param(self, value: Optional[Iterable[str]], dialect):  # type: ignore[override]
        if value is None:
            return None
        if isinstance(value, str):
            raise TypeError("JSONStringList expects an iterable of strings, got a bare str")
        return json.dumps([str(v) for v in value])

    def process_result_value(self, value, dialect):  # type: ignore[override]
        if value is None or value == "":
            return []
        parsed = json.loads(value)
        if not isinstance(parsed, list):
            raise ValueError(f"expected a JSON array, got {type(parsed).__name__}")
        return [str(v) for v in parsed]
