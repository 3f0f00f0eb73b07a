"""
Settings loader (``ledger_config.loader``).

Responsibility
--------------
Reads a YAML settings file and turns it into the frozen ``LedgerSettings``
dataclass, layered over the packaged ``defaults.yaml``.

Invariants enforced
-------------------
* Every section and key must be known; a typo raises ``ValueError``
  instead of being silently ignored.
* The result is immutable.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown section or key, or a non-mapping section  -> ``ValueError``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class NumberingSettings:
    """Prefixes and zero-padding widths of generated document numbers."""

    entry_prefix: str = "JE"
    entry_width: int = 4
    incoming_payment_prefix: str = "IP"
    outgoing_payment_prefix: str = "OP"
    payment_width: int = 4
    sale_prefix: str = "INV-AR"
    purchase_prefix: str = "INV-AP"
    invoice_width: int = 5


@dataclass(frozen=True)
class LedgerSettings:
    database_url: str
    echo: bool = False
    busy_timeout_ms: int = 30000
    log_level: str = "INFO"
    base_currency: str = "USD"
    company_code: str = "1000"
    numbering: NumberingSettings = field(default_factory=NumberingSettings)

    @property
    def log_level_number(self) -> int:
        return getattr(logging, self.log_level)


# section -> {yaml key: LedgerSettings field}
_FIELDS: dict[str, dict[str, str]] = {
    "database": {"url": "database_url", "echo": "echo", "busy_timeout_ms": "busy_timeout_ms"},
    "logging": {"level": "log_level"},
    "ledger": {"base_currency": "base_currency", "company_code": "company_code"},
}
_NUMBERING_KEYS = frozenset(NumberingSettings.__dataclass_fields__)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file; an empty file yields an empty dict."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = {section: dict(values) for section, values in base.items()}
    for section, values in override.items():
        if not isinstance(values, dict):
            raise ValueError(f"Section '{section}' must be a mapping")
        merged.setdefault(section, {}).update(values)
    return merged


def parse_settings(data: dict[str, Any]) -> LedgerSettings:
    """
    Build LedgerSettings from a merged settings dict.

    Raises:
        ValueError: unknown section or key, or an invalid log level.
    """
    kwargs: dict[str, Any] = {}
    numbering: dict[str, Any] = {}
    for section, values in data.items():
        if section == "numbering":
            unknown = set(values) - _NUMBERING_KEYS
            if unknown:
                raise ValueError(f"Unknown numbering setting(s): {sorted(unknown)}")
            numbering.update(values)
            continue
        if section not in _FIELDS:
            raise ValueError(f"Unknown settings section: {section}")
        for key, value in values.items():
            if key not in _FIELDS[section]:
                raise ValueError(f"Unknown setting: {section}.{key}")
            kwargs[_FIELDS[section][key]] = value

    if "database_url" not in kwargs:
        raise ValueError("database.url is required")
    level = str(kwargs.get("log_level", "INFO")).upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"Invalid log level: {level}")
    kwargs["log_level"] = level
    return LedgerSettings(numbering=NumberingSettings(**numbering), **kwargs)


def load_settings(path: Path | None = None) -> LedgerSettings:
    """Packaged defaults, overridden by ``path`` when given."""
    data = load_yaml_file(DEFAULTS_PATH)
    if path is not None:
        data = _merge(data, load_yaml_file(Path(path)))
    return parse_settings(data)
