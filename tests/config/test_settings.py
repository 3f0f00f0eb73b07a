"""
Tests for ledger_config -- YAML settings layered over packaged defaults.
"""

import logging
from pathlib import Path

import pytest
import yaml

from ledger_config import bootstrap, get_settings
from ledger_config.loader import DEFAULTS_PATH, NumberingSettings, load_settings, parse_settings


def _write(tmp_path: Path, data) -> Path:
    path = tmp_path / "ledger.yaml"
    path.write_text(yaml.safe_dump(data))
    return path


class TestDefaults:
    def test_packaged_defaults(self):
        settings = load_settings()
        assert settings.database_url == "sqlite:///ledger.db"
        assert settings.base_currency == "USD"
        assert settings.company_code == "1000"
        assert settings.log_level == "INFO"
        assert settings.log_level_number == logging.INFO
        assert settings.numbering == NumberingSettings()

    def test_defaults_file_is_shipped(self):
        assert DEFAULTS_PATH.exists()


class TestOverrides:
    def test_override_replaces_keys(self, tmp_path):
        path = _write(
            tmp_path,
            {
                "database": {"url": "sqlite:///other.db"},
                "logging": {"level": "debug"},
                "numbering": {"sale_prefix": "SO", "invoice_width": 6},
            },
        )
        settings = get_settings(path)
        assert settings.database_url == "sqlite:///other.db"
        assert settings.busy_timeout_ms == 30000
        assert settings.log_level == "DEBUG"
        assert settings.numbering.sale_prefix == "SO"
        assert settings.numbering.invoice_width == 6
        assert settings.numbering.purchase_prefix == "INV-AP"

    def test_empty_file_keeps_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert get_settings(path) == load_settings()

    def test_settings_are_frozen(self):
        settings = load_settings()
        with pytest.raises(AttributeError):
            settings.base_currency = "EUR"


class TestRejection:
    @pytest.mark.parametrize(
        "data",
        [
            {"databse": {"url": "x"}},
            {"database": {"uri": "x"}},
            {"numbering": {"sale_prefx": "X"}},
            {"logging": {"level": "LOUD"}},
            {"ledger": "USD"},
        ],
    )
    def test_invalid_override(self, tmp_path, data):
        with pytest.raises(ValueError):
            load_settings(_write(tmp_path, data))

    def test_database_url_required(self):
        with pytest.raises(ValueError):
            parse_settings({"logging": {"level": "INFO"}})

    def test_top_level_must_be_mapping(self, tmp_path):
        with pytest.raises(ValueError):
            load_settings(_write(tmp_path, ["a", "b"]))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "nope.yaml")


class TestBootstrap:
    def test_creates_usable_ledger(self, tmp_path):
        from ledger_kernel.db.engine import reset_engine, write_scope
        from ledger_kernel.services.account_service import AccountService
        from ledger_kernel.services.tenant_service import TenantService

        path = _write(tmp_path, {"database": {"url": f"sqlite:///{tmp_path / 'boot.db'}"}})
        bootstrap(get_settings(path))
        try:
            with write_scope() as session:
                ctx = TenantService(session).create_tenant("Boot Co")
                created = AccountService(session).initialize_default_chart(ctx)
            assert len(created) == 17
        finally:
            reset_engine()
