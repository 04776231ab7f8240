"""
AuditorService -- tamper-evident history of payroll and ledger changes.

Responsibility:
    Appends one AuditEvent per business change (payroll run, void,
    correction, journal post/void, chart seeding).  Events are numbered
    from a single sequence and each hash covers its predecessor's hash, so
    editing or deleting any event breaks every later link.

Architecture position:
    Kernel > Services.  Runs inside the caller's transaction: the event
    commits or rolls back with the change it describes.

Failure modes:
    - AuditChainBrokenError from validate_chain() at the first bad link.
"""

import json
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from paybook_kernel.domain.clock import Clock, SystemClock
from paybook_kernel.exceptions import AuditChainBrokenError
from paybook_kernel.logging_config import get_logger
from paybook_kernel.models.audit_event import AuditAction, AuditEvent
from paybook_kernel.services.sequence_service import SequenceService
from paybook_kernel.utils.hashing import canonicalize_json, hash_audit_event, hash_payload

logger = get_logger("services.auditor")


def _link_hash(entity_type: str, entity_id: UUID, action: AuditAction | str,
               payload: dict, prev_hash: str | None) -> str:
    return hash_audit_event(
        entity_type=entity_type,
        entity_id=str(entity_id),
        action=AuditAction(action).value,
        payload_hash=hash_payload(payload),
        prev_hash=prev_hash,
    )


class AuditorService:
    """Writes and verifies the audit chain.  Flushes; never commits."""

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()
        self._sequences = SequenceService(session)

    def _chain_head(self) -> str | None:
        return self._session.execute(
            select(AuditEvent.hash).order_by(AuditEvent.seq.desc()).limit(1)
        ).scalar_one_or_none()

    def record(
        self,
        *,
        entity_type: str,
        entity_id: UUID,
        action: AuditAction,
        actor_id: UUID,
        company_id: UUID | None = None,
        payload: dict[str, Any] | None = None,
    ) -> AuditEvent:
        action = AuditAction(action)
        # Store exactly what gets hashed: Decimals, UUIDs and dates as strings
        stored_payload = json.loads(canonicalize_json(payload or {}))
        prev_hash = self._chain_head()

        event = AuditEvent(
            seq=self._sequences.next_value(SequenceService.AUDIT_EVENT),
            company_id=company_id,
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            actor_id=actor_id,
            occurred_at=self._clock.now(),
            payload=stored_payload,
            payload_hash=hash_payload(stored_payload),
            prev_hash=prev_hash,
            hash=_link_hash(entity_type, entity_id, action, stored_payload, prev_hash),
        )
        self._session.add(event)
        self._session.flush()

        logger.info(
            "audit_event_created",
            extra={
                "entity_type": entity_type,
                "entity_id": str(entity_id),
                "action": action.value,
                "seq": event.seq,
            },
        )
        return event

    def validate_chain(self) -> bool:
        """
        Walk every event in sequence order and recompute its link.

        Returns True for an intact (or empty) chain.

        Raises:
            AuditChainBrokenError: an event's predecessor link or its own
                hash does not match, e.g. after a payload edit or a deleted
                event.
        """
        expected_prev: str | None = None
        count = 0
        for event in self._session.execute(select(AuditEvent).order_by(AuditEvent.seq)).scalars():
            count += 1
            if event.prev_hash != expected_prev:
                self._broken(event, str(expected_prev), str(event.prev_hash))
            recomputed = _link_hash(
                event.entity_type, event.entity_id, event.action,
                event.payload or {}, event.prev_hash,
            )
            if recomputed != event.hash:
                self._broken(event, recomputed, event.hash)
            expected_prev = event.hash

        logger.info("audit_chain_valid", extra={"event_count": count})
        return True

    @staticmethod
    def _broken(event: AuditEvent, expected: str, actual: str) -> None:
        logger.critical("audit_chain_broken", extra={"audit_event_id": str(event.id), "seq": event.seq})
        raise AuditChainBrokenError(str(event.id), expected, actual)

    def get_trail(self, entity_type: str, entity_id: UUID) -> list[AuditEvent]:
        """Every event recorded against one entity, oldest first."""
        stmt = (
            select(AuditEvent)
            .where(AuditEvent.entity_type == entity_type, AuditEvent.entity_id == entity_id)
            .order_by(AuditEvent.seq)
        )
        return list(self._session.execute(stmt).scalars())
