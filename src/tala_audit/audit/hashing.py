"""Hash-chain primitives.

The digest input is the plain concatenation

    previous_hash + entity_type + entity_id + action + timestamp + user_id

with no separators, the root sentinel contributing an empty string. The
timestamp enters as text, so ``format_timestamp`` is part of the contract:
every writer and verifier must go through it.
"""

import hashlib
from datetime import datetime, timezone
from typing import Optional

# previous_hash of the first record in a chain
ROOT_SENTINEL: Optional[str] = None


def as_utc(dt: datetime) -> datetime:
    """Aware UTC datetime; naive values (as read back from SQLite) are taken as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def now_utc() -> datetime:
    """Current UTC time truncated to whole milliseconds."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def format_timestamp(dt: datetime) -> str:
    """ISO-8601 UTC with millisecond precision, e.g. ``2025-01-31T08:15:42.123Z``."""
    dt = as_utc(dt)
    return dt.strftime("%Y-%m-%dT%H:%M:%S") + f".{dt.microsecond // 1000:03d}Z"


def compute_data_hash(
    previous_hash: Optional[str],
    entity_type: str,
    entity_id: str,
    action: str,
    timestamp: str,
    user_id: str,
) -> str:
    """SHA-256 hex digest of the concatenated chain fields."""
    data = f"{previous_hash or ''}{entity_type}{entity_id}{action}{timestamp}{user_id}"
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def hash_matches(
    data_hash: str,
    previous_hash: Optional[str],
    entity_type: str,
    entity_id: str,
    action: str,
    timestamp: str,
    user_id: str,
) -> bool:
    return compute_data_hash(
        previous_hash, entity_type, entity_id, action, timestamp, user_id
    ) == data_hash
