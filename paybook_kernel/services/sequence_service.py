"""
SequenceService -- gap-tolerant, never-reused numbering.

Responsibility:
    Hands out journal entry numbers (one independent sequence per company:
    1, 2, 3...) and audit event sequence numbers (one global sequence).

Architecture position:
    Kernel > Services.  Used by JournalWriter and AuditorService.

Invariants enforced:
    - A counter row locked with ``SELECT ... FOR UPDATE`` is the only source
      of the next value.  Two payroll runs for the same company serialize on
      that row instead of both reading ``max(entry_number)``.
    - A value allocated inside a transaction that rolls back is returned
      to the counter together with everything else.

Failure modes:
    - IntegrityError from a first-use race is absorbed: the losing writer
      rolls back its savepoint and increments the row the winner created.
"""

from uuid import UUID

from sqlalchemy import String, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Mapped, Session, mapped_column

from paybook_kernel.db.base import Base
from paybook_kernel.logging_config import get_logger

logger = get_logger("services.sequence")


class SequenceCounter(Base):
    __tablename__ = "sequence_counters"

    # "audit_event" or "journal_entry:<company uuid>"
    name: Mapped[str] = mapped_column(String(100), unique=True)
    current_value: Mapped[int] = mapped_column(default=0)


class SequenceService:
    """
    Allocates the next value of a named sequence.  Flushes; never commits.

        number = SequenceService(session).next_value(
            SequenceService.journal_entry_sequence(company_id)
        )
    """

    JOURNAL_ENTRY = "journal_entry"
    AUDIT_EVENT = "audit_event"

    def __init__(self, session: Session):
        self._session = session

    @classmethod
    def journal_entry_sequence(cls, company_id: UUID) -> str:
        return f"{cls.JOURNAL_ENTRY}:{company_id}"

    def _counter(self, name: str, *, lock: bool) -> SequenceCounter | None:
        stmt = select(SequenceCounter).where(SequenceCounter.name == name)
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self._session.execute(stmt).scalar_one_or_none()

    def _create_counter(self, name: str) -> SequenceCounter:
        savepoint = self._session.begin_nested()
        try:
            counter = SequenceCounter(name=name, current_value=0)
            self._session.add(counter)
            self._session.flush()
        except IntegrityError:
            savepoint.rollback()
            logger.debug("sequence_counter_race_retry", extra={"sequence_name": name})
            counter = self._counter(name, lock=True)
            if counter is None:
                raise
            return counter
        savepoint.commit()
        return counter

    def next_value(self, sequence_name: str) -> int:
        """Increment and return the sequence; the first value is 1."""
        counter = self._counter(sequence_name, lock=True) or self._create_counter(sequence_name)
        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def current_value(self, sequence_name: str) -> int | None:
        """Last value handed out, or None for a sequence never used."""
        counter = self._counter(sequence_name, lock=False)
        return None if counter is None else counter.current_value
