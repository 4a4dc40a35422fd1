"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from voxrelay.config import ProviderSettings, VoxrelayConfig, get_config, reset_config


class TestVoxrelayConfig:
    """Test VoxrelayConfig."""

    def test_defaults(self):
        """Test defaults without any environment."""
        config = VoxrelayConfig()

        assert config.priority == ["groq", "elevenlabs", "sarvam", "azure", "google"]
        assert config.request_timeout == 300.0
        assert config.notify_on_failure is False
        assert config.groq_api_key is None
        assert config.log_level == "WARNING"
        assert config.log_format == "console"

    def test_priority_parsing(self, monkeypatch):
        """Test the priority list tolerates spacing, case and empty entries."""
        monkeypatch.setenv("VOXRELAY_PROVIDER_PRIORITY", " Azure, ,groq ")

        assert VoxrelayConfig().priority == ["azure", "groq"]

    def test_keys_from_environment(self, monkeypatch):
        """Test vendor credentials are read from their variables."""
        monkeypatch.setenv("ELEVENLABS_API_KEY", "el-key")
        monkeypatch.setenv("AZURE_SPEECH_KEY", "az-key")

        config = VoxrelayConfig()

        assert config.elevenlabs_api_key == "el-key"
        assert config.azure_speech_key == "az-key"

    def test_dotenv_file(self, tmp_path):
        """Test a .env file in the working directory is honoured."""
        (tmp_path / ".env").write_text("GROQ_API_KEY=from-dotenv\nGROQ_MODEL=whisper-large-v3\n")

        config = VoxrelayConfig()

        assert config.groq_api_key == "from-dotenv"
        assert config.groq_model == "whisper-large-v3"

    def test_invalid_timeout(self, monkeypatch):
        """Test a non-positive timeout is rejected."""
        monkeypatch.setenv("VOXRELAY_REQUEST_TIMEOUT", "0")

        with pytest.raises(ValidationError, match="Request timeout must be positive"):
            VoxrelayConfig()

    def test_log_level_normalized(self, monkeypatch):
        """Test log levels are upper-cased."""
        monkeypatch.setenv("VOXRELAY_LOG_LEVEL", "debug")

        assert VoxrelayConfig().log_level == "DEBUG"

    def test_invalid_log_level(self, monkeypatch):
        """Test unknown log levels are rejected."""
        monkeypatch.setenv("VOXRELAY_LOG_LEVEL", "LOUD")

        with pytest.raises(ValidationError):
            VoxrelayConfig()

    def test_invalid_log_format(self, monkeypatch):
        """Test only console and json renderers exist."""
        monkeypatch.setenv("VOXRELAY_LOG_FORMAT", "xml")

        with pytest.raises(ValidationError):
            VoxrelayConfig()


class TestProviderSettings:
    """Test settings injected into providers."""

    def test_groq(self, monkeypatch):
        """Test Groq settings point at the live variable instead of copying the key."""
        monkeypatch.setenv("GROQ_API_KEY", "gq-key")
        monkeypatch.setenv("VOXRELAY_REQUEST_TIMEOUT", "60")

        settings = VoxrelayConfig().provider_settings("groq")

        assert settings == ProviderSettings(
            api_key=None,
            api_key_env="GROQ_API_KEY",
            fallback_api_key=None,
            base_url="https://api.groq.com/openai/v1",
            model="whisper-large-v3-turbo",
            timeout_seconds=60.0,
        )

    def test_dotenv_key_is_fallback(self, tmp_path):
        """Test a key read only from .env is carried as the fallback."""
        (tmp_path / ".env").write_text("SARVAM_API_KEY=sv-from-file\n")

        settings = VoxrelayConfig().provider_settings("sarvam")

        assert settings.api_key is None
        assert settings.fallback_api_key == "sv-from-file"

    def test_google(self, monkeypatch):
        """Test Google settings carry the credentials path, project and location."""
        monkeypatch.setenv("GOOGLE_CLOUD_PROJECT", "acme-speech")
        monkeypatch.setenv("GOOGLE_SPEECH_LOCATION", "us-central1")

        settings = VoxrelayConfig().provider_settings("google")

        assert settings.api_key_env == "GOOGLE_APPLICATION_CREDENTIALS"
        assert settings.project == "acme-speech"
        assert settings.region == "us-central1"
        assert settings.model == "chirp_2"

    @pytest.mark.parametrize(
        "name,env,model",
        [
            ("elevenlabs", "ELEVENLABS_API_KEY", "scribe_v2"),
            ("sarvam", "SARVAM_API_KEY", "saarika:v2"),
            ("azure", "AZURE_SPEECH_KEY", "fast-transcription"),
            ("google", "GOOGLE_APPLICATION_CREDENTIALS", "chirp_2"),
        ],
    )
    def test_env_names_and_models(self, name, env, model):
        """Test each provider is told which variable holds its key."""
        settings = VoxrelayConfig().provider_settings(name)

        assert settings.api_key_env == env
        assert settings.model == model
        assert settings.api_key is None

    def test_azure_endpoint_override(self, monkeypatch):
        """Test an explicit Azure endpoint beats the region default."""
        monkeypatch.setenv("AZURE_SPEECH_ENDPOINT", "https://speech.example.com")

        settings = VoxrelayConfig().provider_settings("azure")

        assert settings.base_url == "https://speech.example.com"
        assert settings.region == "centralindia"

    def test_unknown_provider(self):
        """Test unknown names are rejected."""
        with pytest.raises(ValueError, match="No settings defined for provider"):
            VoxrelayConfig().provider_settings("whisperx")


class TestGlobalConfig:
    """Test the process-wide config instance."""

    def test_cached(self):
        """Test get_config returns one instance until reset."""
        first = get_config()

        assert get_config() is first

        reset_config()
        assert get_config() is not first

    def test_reset_rereads_environment(self, monkeypatch):
        """Test a reset picks up environment changes."""
        assert get_config().sarvam_api_key is None

        monkeypatch.setenv("SARVAM_API_KEY", "sv-key")
        reset_config()

        assert get_config().sarvam_api_key == "sv-key"
