"""
Tests for Core Module (configuration, credentials, errors, security)
"""

import pytest

from creative_studio.core.config import Config, ProviderSettings
from creative_studio.core.credentials import CredentialResolver, KeyStore
from creative_studio.core.exceptions import (
    AuthError,
    ConfigurationError,
    ProviderError,
    RateLimitError,
    is_quota_error,
)
from creative_studio.core.security import redact_api_key


class TestConfig:
    """Tests for Config loading."""

    def test_defaults(self):
        """Test built-in defaults."""
        config = Config()

        assert config.models.text_model == "gemini-2.5-flash"
        assert config.generation.scene_duration == 4.0
        assert config.get_provider_settings("openai") == ProviderSettings()

    def test_load_yaml_with_env(self, temp_dir, monkeypatch):
        """Test YAML values and ${VAR:-default} interpolation."""
        monkeypatch.setenv("STUDIO_HOME", str(temp_dir))
        path = temp_dir / "studio.yaml"
        path.write_text(
            "models:\n"
            "  image_model: flux-dev\n"
            "storage:\n"
            "  db_path: ${STUDIO_HOME}/projects.db\n"
            "  media_dir: ${MISSING_VAR:-/tmp/media}\n"
            "providers:\n"
            "  Replicate:\n"
            "    poll_interval: 5\n"
        )

        config = Config.load(path)

        assert config.models.image_model == "flux-dev"
        assert config.storage.db_path == f"{temp_dir}/projects.db"
        assert config.storage.media_dir == "/tmp/media"
        assert config.get_provider_settings("replicate").poll_interval == 5

    def test_unknown_key(self):
        """Test unknown settings are a configuration error."""
        with pytest.raises(ConfigurationError):
            Config.from_dict({"models": {"sound_model": "x"}})

    def test_invalid_values(self):
        """Test out-of-range values are rejected."""
        with pytest.raises(ConfigurationError):
            Config.from_dict({"generation": {"temperature": 3.0}})
        with pytest.raises(ConfigurationError):
            ProviderSettings(timeout=0)

    def test_invalid_yaml(self, temp_dir):
        path = temp_dir / "broken.yaml"
        path.write_text("models: [unclosed")

        with pytest.raises(ConfigurationError):
            Config.load(path)

    def test_to_dict(self):
        config = Config.from_dict({"providers": {"google": {"timeout": 30}}})

        data = config.to_dict()

        assert data["providers"]["google"]["timeout"] == 30
        assert set(data) == {"models", "generation", "storage", "providers"}


class TestKeyStore:
    """Tests for KeyStore."""

    def test_set_get_delete(self, temp_dir):
        """Test keys are persisted per provider."""
        store = KeyStore(temp_dir / "keys" / "keys.yaml")

        store.set("OpenAI", "sk-one")
        store.set("google", "AIza-two")

        assert KeyStore(store.path).get("openai") == "sk-one"
        assert store.providers() == ["google", "openai"]

        store.delete("openai")

        assert store.get("openai") is None
        assert store.providers() == ["google"]

    def test_missing_file(self, temp_dir):
        assert KeyStore(temp_dir / "none.yaml").get("openai") is None

    def test_invalid_file(self, temp_dir):
        """Test a key store that is not a mapping is rejected."""
        path = temp_dir / "keys.yaml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(ConfigurationError):
            KeyStore(path).get("openai")


class TestCredentialResolver:
    """Tests for key resolution order."""

    def test_order(self, temp_dir, monkeypatch):
        """Test explicit key, then environment, then key store."""
        store = KeyStore(temp_dir / "keys.yaml")
        store.set("xai", "stored")
        resolver = CredentialResolver("xai", "XAI_API_KEY", key_store=store)

        assert resolver.resolve() == "stored"

        monkeypatch.setenv("XAI_API_KEY", "from-env")
        assert resolver.resolve() == "from-env"

        resolver.explicit_key = "explicit"
        assert resolver.resolve() == "explicit"

    def test_nothing_configured(self):
        assert CredentialResolver("mistral", "MISTRAL_API_KEY").resolve() is None


class TestErrors:
    """Tests for the error taxonomy."""

    def test_hierarchy(self):
        """Test provider error kinds share a base class."""
        assert issubclass(AuthError, ProviderError)
        assert issubclass(RateLimitError, ProviderError)

    def test_to_dict(self):
        error = RateLimitError("slow down", retry_after=30, provider="OpenAI")

        data = error.to_dict()

        assert data["error"] == "RateLimitError"
        assert data["recoverable"] is True
        assert data["details"]["retry_after_seconds"] == 30
        assert data["details"]["status_code"] == 429

    @pytest.mark.parametrize("error,expected", [
        (RateLimitError("slow down"), True),
        (ProviderError("HTTP 429 from upstream"), True),
        (ProviderError("You exceeded your current quota"), True),
        (ProviderError("Internal error"), False),
        (ValueError("429"), True),
    ])
    def test_is_quota_error(self, error, expected):
        assert is_quota_error(error) is expected


class TestRedaction:
    """Tests for API key redaction."""

    @pytest.mark.parametrize("text,secret", [
        ("Authorization: Bearer abc.def-123", "abc.def-123"),
        ("key sk-ant-api03-secretsecret", "secretsecret"),
        ("token r8_AbCdEf123456", "AbCdEf123456"),
        ("GOOGLE_API_KEY=AIzaSomething", "AIzaSomething"),
        ("https://host/v1?key=abcdef&alt=json", "abcdef"),
    ])
    def test_secrets_are_removed(self, text, secret):
        assert secret not in redact_api_key(text)

    def test_plain_text_unchanged(self):
        assert redact_api_key("nothing secret here") == "nothing secret here"
        assert redact_api_key("") == ""
