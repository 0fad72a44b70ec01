"""Timestamp helpers: every stored or compared datetime is timezone-aware UTC."""

from datetime import datetime, timezone
from typing import Annotated, Optional

from pydantic import AfterValidator


def to_utc(value: datetime) -> datetime:
    """Aware UTC datetime. Naive values are taken to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_utc_or_none(value: Optional[datetime]) -> Optional[datetime]:
    return to_utc(value) if value is not None else None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# Field type for pydantic models: naive input is accepted and stored as UTC.
UtcDatetime = Annotated[datetime, AfterValidator(to_utc)]
