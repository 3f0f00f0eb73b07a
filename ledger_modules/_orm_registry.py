"""
Module ORM Registry (``ledger_modules._orm_registry``).

Responsibility
--------------
Import every module-level SQLAlchemy model so that ``Base.metadata``
holds their tables before they are created, and provide
``create_all_tables()``, the one entry point that builds the complete
schema (kernel + document modules).

Architecture position
---------------------
**Modules layer** -- utility.  MUST NOT be imported by ``ledger_kernel``
at module level.

Usage
-----
``ledger_config.bootstrap()`` and ``tests/conftest.py`` both call
``create_all_tables()``.
"""


def import_all_orm_models() -> None:
    """Import kernel models and every ``ledger_modules.*.orm`` module.

    Kernel tables come first; module tables reference them by foreign key.
    Idempotent.
    """
    import ledger_kernel.models  # noqa: F401
    # fmt: off
    import ledger_modules.inventory.orm  # noqa: F401
    import ledger_modules.sales.orm  # noqa: F401
    import ledger_modules.purchases.orm  # noqa: F401
    import ledger_modules.payments.orm  # noqa: F401
    # fmt: on


def create_all_tables() -> None:
    """Create kernel and module tables.

    Preconditions:
        Engine must be initialized via ``init_engine_from_url()``.
    """
    from ledger_kernel.db.engine import create_tables

    import_all_orm_models()
    create_tables()
