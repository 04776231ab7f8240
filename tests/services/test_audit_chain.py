"""
Tests for the audit hash chain (paybook_kernel.services.auditor_service).

Events form a chain: each hash covers the previous event's hash, so a
changed payload or a deleted event is detected by validate_chain().
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from paybook_kernel.exceptions import AuditChainBrokenError
from paybook_kernel.models.audit_event import AuditAction, AuditEvent
from paybook_kernel.services.auditor_service import AuditorService


@pytest.fixture
def auditor(session, deterministic_clock):
    return AuditorService(session, deterministic_clock)


def _record(auditor, actor_id, entity_id=None, **payload):
    return auditor.record(
        entity_type="PayrollRecord",
        entity_id=entity_id or uuid4(),
        action=AuditAction.PAYROLL_PROCESSED,
        actor_id=actor_id,
        payload=payload or {"gross_pay": Decimal("1000.00")},
    )


class TestRecord:

    def test_first_event_has_no_predecessor(self, auditor, test_actor_id):
        event = _record(auditor, test_actor_id)
        assert event.seq == 1
        assert event.prev_hash is None
        assert len(event.hash) == 64

    def test_events_link(self, auditor, test_actor_id):
        first = _record(auditor, test_actor_id)
        second = _record(auditor, test_actor_id)
        assert second.seq == 2
        assert second.prev_hash == first.hash

    def test_payload_is_json_safe(self, auditor, test_actor_id):
        entity = uuid4()
        event = _record(auditor, test_actor_id, pay_date=date(2025, 3, 14), employee_id=entity,
                        net_pay=Decimal("794.22"))
        assert event.payload == {
            "pay_date": "2025-03-14",
            "employee_id": str(entity),
            "net_pay": "794.22",
        }

    def test_occurred_at_uses_clock(self, auditor, test_actor_id, deterministic_clock):
        assert _record(auditor, test_actor_id).occurred_at == deterministic_clock.now()


class TestValidateChain:

    def test_empty_chain_is_valid(self, auditor):
        assert auditor.validate_chain() is True

    def test_intact_chain(self, auditor, test_actor_id):
        for _ in range(5):
            _record(auditor, test_actor_id)
        assert auditor.validate_chain() is True

    def test_tampered_payload_detected(self, session, auditor, test_actor_id):
        _record(auditor, test_actor_id)
        victim = _record(auditor, test_actor_id)
        _record(auditor, test_actor_id)

        victim.payload = {"gross_pay": "1.00"}
        session.flush()

        with pytest.raises(AuditChainBrokenError) as exc_info:
            auditor.validate_chain()
        assert exc_info.value.audit_event_id == str(victim.id)

    def test_deleted_event_detected(self, session, auditor, test_actor_id):
        _record(auditor, test_actor_id)
        middle = _record(auditor, test_actor_id)
        _record(auditor, test_actor_id)

        session.delete(middle)
        session.flush()

        with pytest.raises(AuditChainBrokenError):
            auditor.validate_chain()


class TestTrail:

    def test_trail_is_per_entity_and_ordered(self, session, auditor, test_actor_id):
        entity = uuid4()
        _record(auditor, test_actor_id, entity_id=entity, step=1)
        _record(auditor, test_actor_id)
        auditor.record(
            entity_type="PayrollRecord",
            entity_id=entity,
            action=AuditAction.PAYROLL_VOIDED,
            actor_id=test_actor_id,
            payload={"reason": "duplicate"},
        )

        trail = auditor.get_trail("PayrollRecord", entity)
        assert [AuditAction(e.action) for e in trail] == [
            AuditAction.PAYROLL_PROCESSED,
            AuditAction.PAYROLL_VOIDED,
        ]
        assert session.query(AuditEvent).count() == 3
