"""Kernel services: sequence allocation, journal writing and the audit log."""

from paybook_kernel.services.auditor_service import AuditorService
from paybook_kernel.services.journal_writer import JournalWriter
from paybook_kernel.services.sequence_service import SequenceCounter, SequenceService

__all__ = ["AuditorService", "JournalWriter", "SequenceCounter", "SequenceService"]
