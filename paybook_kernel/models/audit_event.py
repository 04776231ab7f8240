"""
Module: paybook_kernel.models.audit_event
Responsibility: Rows of the append-only audit log.
Architecture position: Kernel > Models.

Each row links to the one before it: ``hash`` covers the entity, the
action, the payload hash and ``prev_hash``.  AuditorService writes the
rows and re-derives every link in validate_chain().  Only the first row
in the log has no ``prev_hash``.
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import JSON, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from paybook_kernel.db.base import Base, UUIDString


class AuditAction(str, Enum):
    PAYROLL_PROCESSED = "payroll_processed"
    PAYROLL_VOIDED = "payroll_voided"
    PAYROLL_CORRECTED = "payroll_corrected"
    JOURNAL_POSTED = "journal_posted"
    JOURNAL_VOIDED = "journal_voided"
    CHART_OF_ACCOUNTS_SEEDED = "chart_of_accounts_seeded"


class AuditEvent(Base):
    __tablename__ = "audit_events"
    __table_args__ = (
        Index("idx_audit_entity", "entity_type", "entity_id"),
        Index("idx_audit_company", "company_id"),
        Index("idx_audit_action", "action"),
    )

    # Global order of the chain
    seq: Mapped[int] = mapped_column(unique=True)
    company_id: Mapped[UUID | None] = mapped_column(UUIDString())
    # "PayrollRecord", "JournalEntry", "Company"
    entity_type: Mapped[str] = mapped_column(String(50))
    entity_id: Mapped[UUID] = mapped_column(UUIDString())
    action: Mapped[AuditAction] = mapped_column(String(50))
    actor_id: Mapped[UUID] = mapped_column(UUIDString())
    occurred_at: Mapped[datetime]
    payload: Mapped[dict | None] = mapped_column(JSON)

    payload_hash: Mapped[str] = mapped_column(String(64))
    prev_hash: Mapped[str | None] = mapped_column(String(64))
    hash: Mapped[str] = mapped_column(String(64))

    def __repr__(self) -> str:
        return f"<AuditEvent #{self.seq} {self.action} {self.entity_type}:{self.entity_id}>"
