"""
ledger_config -- settings of the ledger engine.

Responsibility:
    Single entry point for runtime settings (``get_settings()``) and for
    wiring them into the kernel (``bootstrap()``: engine, logging, tables).

Architecture position:
    Configuration -- sits above ``ledger_kernel`` and beside
    ``ledger_modules``.  The kernel never imports from ``ledger_config``.

Failure modes:
    - ``FileNotFoundError`` for a missing settings file.
    - ``yaml.YAMLError`` for malformed YAML.
    - ``ValueError`` for unknown keys or invalid values.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ledger_config.loader import LedgerSettings, NumberingSettings, load_settings

__all__ = ["LedgerSettings", "NumberingSettings", "bootstrap", "get_settings"]

_logger = logging.getLogger("ledger_kernel.config")


def get_settings(path: Path | str | None = None) -> LedgerSettings:
    """Load settings from ``path`` layered over the packaged defaults."""
    settings = load_settings(Path(path) if path is not None else None)
    _logger.info(
        "settings_loaded",
        extra={
            "settings_path": str(path) if path is not None else "defaults",
            "base_currency": settings.base_currency,
        },
    )
    return settings


def bootstrap(settings: LedgerSettings, *, log_stream=None) -> None:
    """
    Configure logging, initialize the engine and create every table.

    Postconditions:
        write_scope() / read_scope() are usable and the full schema,
        including document module tables, exists.
    """
    from ledger_kernel.db.engine import init_engine_from_url
    from ledger_kernel.logging_config import configure_logging
    from ledger_modules._orm_registry import create_all_tables

    configure_logging(level=settings.log_level_number, stream=log_stream)
    init_engine_from_url(
        settings.database_url,
        echo=settings.echo,
        busy_timeout_ms=settings.busy_timeout_ms,
    )
    create_all_tables()
