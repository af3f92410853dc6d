"""Chain verification over ordered audit records.

Two scan modes live here and they deliberately disagree about what
"previous" means:

* ``verify_chain`` walks one entity's own chain. Each record is re-hashed
  from the ``previous_hash`` it stores, and (optionally) that value must
  equal the ``data_hash`` of the record before it in the same chain.
* ``scan_for_tampering`` walks a whole tenant's history as a single flat
  ledger ordered by time. Each record is re-hashed using the ``data_hash``
  of whatever record precedes it in that flat order, regardless of entity.

When several entities interleave, the two modes flag different records.
Both inputs are sequences of objects exposing the AuditLogModel fields.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Sequence

from tala_audit.audit.hashing import (
    ROOT_SENTINEL,
    as_utc,
    compute_data_hash,
    format_timestamp,
)
from tala_audit.common.logging import chain_context

logger = logging.getLogger(__name__)

SECURE = "SECURE"
COMPROMISED = "COMPROMISED"


@dataclass
class ChainVerdict:
    """Outcome of verifying one entity's chain."""
    chain_valid: bool
    chain_broken_at: Optional[datetime] = None
    broken_record_id: Optional[str] = None
    records: list[Any] = field(default_factory=list)


@dataclass
class TamperedRecord:
    """A record whose stored hash disagrees with the flat tenant-wide recomputation."""
    log_id: str
    entity_type: str
    entity_id: str
    action: str
    created_at: datetime
    stored_hash: str
    expected_hash: str


@dataclass
class TamperReport:
    tampered: list[TamperedRecord] = field(default_factory=list)

    @property
    def security_status(self) -> str:
        return COMPROMISED if self.tampered else SECURE

    @property
    def affected_records(self) -> int:
        return len(self.tampered)


def expected_hash(record: Any, previous_hash: Optional[str]) -> str:
    """Recompute a record's hash from its own fields and the given predecessor hash."""
    return compute_data_hash(
        previous_hash,
        record.entity_type,
        record.entity_id,
        record.action,
        format_timestamp(record.created_at),
        record.user_id,
    )


def is_self_consistent(record: Any) -> bool:
    """True if the record's data_hash matches its own stored previous_hash and fields."""
    return expected_hash(record, record.previous_hash) == record.data_hash


def _first_break(records: list[Any], check_linkage: bool) -> Optional[int]:
    # Own-hash failures take precedence: a rewritten created_at reorders the
    # chain, so the first linkage break may sit on an untouched neighbour.
    for i, record in enumerate(records):
        if not is_self_consistent(record):
            return i
    if check_linkage:
        for i, record in enumerate(records):
            linked_to = records[i - 1].data_hash if i > 0 else ROOT_SENTINEL
            if (record.previous_hash or None) != linked_to:
                return i
    return None


def verify_chain(
    records: Sequence[Any], check_linkage: bool = True,
) -> ChainVerdict:
    """
    Verify one entity's chain, oldest record first.

    Every record is re-hashed independently; the stored ``hash_verified``
    flag is never trusted. With ``check_linkage`` each record's stored
    ``previous_hash`` must also equal its predecessor's stored ``data_hash``
    (root sentinel for the first record), which catches forks and spliced
    records that are individually consistent. The earliest record failing
    its own hash is reported before any linkage break.
    """
    records = list(records)
    i = _first_break(records, check_linkage)
    if i is None:
        return ChainVerdict(chain_valid=True, records=records)

    record = records[i]
    logger.warning(
        "Audit chain broken at record %s (%s/%s, position %d)",
        record.id, record.entity_type, record.entity_id, i,
        extra=chain_context(
            record.tenant_id, record.entity_type, record.entity_id, log_id=record.id,
        ),
    )
    return ChainVerdict(
        chain_valid=False,
        chain_broken_at=as_utc(record.created_at),
        broken_record_id=record.id,
        records=records,
    )


def scan_for_tampering(records: Sequence[Any]) -> TamperReport:
    """Flag records whose hash disagrees with the flat, tenant-wide ordering.

    ``records`` must be all of one tenant's records ordered by creation time.
    """
    report = TamperReport()
    previous: Any = None
    for record in records:
        previous_hash = previous.data_hash if previous is not None else ROOT_SENTINEL
        expected = expected_hash(record, previous_hash)
        if expected != record.data_hash:
            report.tampered.append(TamperedRecord(
                log_id=record.id,
                entity_type=record.entity_type,
                entity_id=record.entity_id,
                action=record.action,
                created_at=as_utc(record.created_at),
                stored_hash=record.data_hash,
                expected_hash=expected,
            ))
        previous = record
    return report
