"""
Tests for settings and processing defaults configuration.
"""

import pytest

from docflow.config.processing_defaults import (
    get_processing_defaults_loader,
    reset_processing_defaults_loader,
)
from docflow.config.settings import Settings


@pytest.fixture
def fresh_loader():
    reset_processing_defaults_loader()
    yield
    reset_processing_defaults_loader()


class TestProcessingDefaults:
    """Tests for ProcessingDefaultsLoader."""

    def test_loads_repository_yaml(self, fresh_loader, monkeypatch):
        monkeypatch.delenv("PROCESSING_DEFAULTS_PATH", raising=False)
        loader = get_processing_defaults_loader()

        assert loader.get_duration_seconds("ocr") == 2.0
        assert loader.get_duration_seconds("classification") == 1.0
        assert loader.get_confidence_threshold() == 0.7
        assert "invoice" in loader.get_classification_categories()
        assert loader.get_default_language() == "en"

    def test_custom_path(self, fresh_loader, monkeypatch, tmp_path):
        path = tmp_path / "defaults.yml"
        path.write_text(
            "durations_seconds:\n  ocr: 0\n"
            "data_extraction:\n  fields: [total]\n"
        )
        monkeypatch.setenv("PROCESSING_DEFAULTS_PATH", str(path))

        loader = get_processing_defaults_loader()

        assert loader.get_duration_seconds("ocr") == 0.0
        assert loader.get_duration_seconds("text_extraction") == 1.5
        assert loader.get_extraction_fields() == ["total"]

    def test_missing_file_uses_fallbacks(self, fresh_loader, monkeypatch, tmp_path):
        monkeypatch.setenv("PROCESSING_DEFAULTS_PATH", str(tmp_path / "missing.yml"))

        loader = get_processing_defaults_loader()

        assert loader.get_duration_seconds("data_extraction") == 1.8
        assert loader.get_extraction_fields() == ["invoice_number", "amount", "date", "vendor"]

    def test_singleton(self, fresh_loader):
        assert get_processing_defaults_loader() is get_processing_defaults_loader()


class TestSettings:
    """Tests for Settings.from_env."""

    def test_defaults(self, monkeypatch):
        for name in ("DATABASE_URL", "INGESTION_WEBHOOK_SECRET", "CORS_ORIGINS", "JWT_EXPIRES_MINUTES"):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setenv("ENV", "test")
        monkeypatch.setenv("JWT_SECRET", "s")

        settings = Settings.from_env()

        assert settings.database_url is None
        assert settings.jwt_expires_minutes == 1440
        assert settings.ingestion_webhook_secret is None
        assert settings.cors_origins == []

    def test_postgres_scheme_normalized(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", "s")
        monkeypatch.setenv("DATABASE_URL", "postgres://u:p@db:5432/docflow")

        assert Settings.from_env().database_url == "postgresql://u:p@db:5432/docflow"

    def test_cors_origins_split(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", "s")
        monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example,")

        assert Settings.from_env().cors_origins == ["https://a.example", "https://b.example"]

    def test_production_requires_jwt_secret(self, monkeypatch):
        monkeypatch.setenv("ENV", "production")
        monkeypatch.delenv("JWT_SECRET", raising=False)

        with pytest.raises(ValueError):
            Settings.from_env()

    def test_development_falls_back_to_dev_secret(self, monkeypatch):
        monkeypatch.setenv("ENV", "development")
        monkeypatch.delenv("JWT_SECRET", raising=False)

        assert Settings.from_env().jwt_secret
