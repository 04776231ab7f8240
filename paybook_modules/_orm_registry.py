"""
Module ORM Registry (``paybook_modules._orm_registry``).

Responsibility
--------------
Ensure every SQLAlchemy model is imported so that ``Base.metadata`` holds
all table definitions before tables are created, and provide
``create_all_tables()`` as the one entry point that builds the complete
schema.

Architecture position
---------------------
**Modules layer** -- utility.  Imports from sibling ``paybook_modules``
packages and from ``paybook_kernel.db.engine`` (allowed: modules -> kernel).
MUST NOT be imported by ``paybook_kernel``.

Usage
-----
Entrypoints and ``tests/conftest.py`` call ``create_all_tables()``.
"""


def import_all_orm_models() -> None:
    """Import kernel models and every module ORM so their tables register.

    Idempotent -- repeated calls are harmless.
    """
    import paybook_kernel.models  # noqa: F401
    import paybook_kernel.services.sequence_service  # noqa: F401
    import paybook_modules.payroll.orm  # noqa: F401


def create_all_tables() -> None:
    """Create kernel and module tables.

    Preconditions:
        Engine must be initialized via ``init_engine_from_url()``.
    """
    from paybook_kernel.db.engine import create_tables

    import_all_orm_models()
    create_tables()
