"""Unit tests for server configuration settings model.

Tests verify that the Settings model correctly binds environment variables
from the .env.example file and that the grouped configuration models work
as expected.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from requisition_workflow.server.core.config import (
    AuthConfig,
    CORSConfig,
    EmailConfig,
    MaintenanceConfig,
    Settings,
    StripeConfig,
)


@pytest.fixture
def env_example_path() -> Path:
    """Get path to .env.example file."""
    return Path(__file__).resolve().parent.parent.parent.parent.parent / ".env.example"


@pytest.fixture
def env_example_vars(env_example_path: Path) -> dict[str, str]:
    """Parse .env.example file and return environment variables."""
    env_vars = {}
    with open(env_example_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                key, value = line.split("=", 1)
                env_vars[key.strip()] = value.strip()
    return env_vars


@pytest.fixture
def isolated_settings(monkeypatch, tmp_path):
    """Build Settings without reading the developer's .env file."""
    monkeypatch.chdir(tmp_path)

    def _build(**env: str) -> Settings:
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        return Settings()

    return _build


class TestSettingsBinding:
    """Test Settings model environment variable binding."""

    def test_server_binding(self, env_example_vars: dict[str, str], isolated_settings):
        settings = isolated_settings(
            REQUISITION_WORKFLOW_SERVER_HOST=env_example_vars["REQUISITION_WORKFLOW_SERVER_HOST"],
            REQUISITION_WORKFLOW_SERVER_PORT=env_example_vars["REQUISITION_WORKFLOW_SERVER_PORT"],
            REQUISITION_WORKFLOW_LOG_LEVEL="DEBUG",
        )

        assert settings.server_host == env_example_vars["REQUISITION_WORKFLOW_SERVER_HOST"]
        assert settings.server_port == int(env_example_vars["REQUISITION_WORKFLOW_SERVER_PORT"])
        assert settings.log_level == "DEBUG"

    def test_app_base_url_binding(self, isolated_settings):
        settings = isolated_settings(APP_BASE_URL="https://app.example.com")

        assert settings.app_base_url == "https://app.example.com"

    def test_nested_database_binding(self, isolated_settings):
        settings = isolated_settings(
            DATABASE__URL="sqlite+aiosqlite:///./local.db",
            DATABASE__AUTO_CREATE="true",
        )

        assert settings.database.url == "sqlite+aiosqlite:///./local.db"
        assert settings.database.auto_create is True

    def test_nested_stripe_binding(self, isolated_settings):
        settings = isolated_settings(
            STRIPE__SECRET_KEY="sk_test_1",
            STRIPE__WEBHOOK_SECRET="whsec_1",
            STRIPE__PRICE_STARTER_MONTHLY="price_1",
        )

        assert settings.stripe.secret_key == "sk_test_1"
        assert settings.stripe.webhook_secret == "whsec_1"
        assert settings.stripe.price_starter_monthly == "price_1"
        assert settings.stripe.price_professional_yearly is None

    def test_nested_email_and_maintenance_binding(self, isolated_settings):
        settings = isolated_settings(
            EMAIL__RESEND_API_KEY="re_123",
            EMAIL__QUEUE_BATCH_SIZE="25",
            MAINTENANCE__CLEANUP_SECRET_KEY="s3cret",
            MAINTENANCE__ORPHAN_RETENTION_DAYS="14",
        )

        assert settings.email.resend_api_key == "re_123"
        assert settings.email.queue_batch_size == 25
        assert settings.maintenance.cleanup_secret_key == "s3cret"
        assert settings.maintenance.orphan_retention_days == 14

    def test_cors_origins_from_json(self, isolated_settings):
        settings = isolated_settings(CORS__ORIGINS='["https://app.example.com","http://localhost:5173"]')

        assert settings.cors.origins == ["https://app.example.com", "http://localhost:5173"]

    def test_case_insensitive_keys(self, isolated_settings):
        settings = isolated_settings(auth__jwt_secret="lowercase-secret")

        assert settings.auth.jwt_secret == "lowercase-secret"

    def test_env_example_lists_every_group(self, env_example_vars: dict[str, str]):
        prefixes = {key.split("__", 1)[0] for key in env_example_vars if "__" in key}

        assert {"DATABASE", "AUTH", "EMAIL", "STRIPE", "MAINTENANCE", "CORS"} <= prefixes


class TestConfigDefaults:
    def test_settings_defaults(self, isolated_settings):
        settings = isolated_settings()

        assert settings.server_port == 8000
        assert settings.database.url.startswith("postgresql+asyncpg://")
        assert settings.database.auto_create is False

    def test_email_defaults(self):
        config = EmailConfig()

        assert config.resend_api_key is None
        assert config.api_url == "https://api.resend.com/emails"
        assert config.queue_batch_size == 10
        assert config.queue_max_retries == 3

    def test_stripe_defaults_unconfigured(self):
        config = StripeConfig()

        assert config.secret_key is None
        assert config.webhook_secret is None

    def test_maintenance_defaults(self):
        config = MaintenanceConfig()

        assert config.cleanup_secret_key is None
        assert config.orphan_retention_days == 7

    def test_cors_defaults(self):
        config = CORSConfig()

        assert config.origins == ["*"]
        assert config.allow_credentials is True


class TestConfigValidation:
    @pytest.mark.parametrize(
        "model, field",
        [
            (AuthConfig, "access_token_ttl_minutes"),
            (AuthConfig, "link_token_ttl_hours"),
            (EmailConfig, "queue_batch_size"),
            (EmailConfig, "queue_max_retries"),
        ],
    )
    def test_positive_fields_reject_zero(self, model, field):
        with pytest.raises(ValidationError):
            model(**{field: 0})

    def test_retention_cannot_be_negative(self):
        with pytest.raises(ValidationError):
            MaintenanceConfig(orphan_retention_days=-1)
