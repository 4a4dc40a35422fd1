"""Tests for the provider registry."""

import pytest

from voxrelay.config import ProviderSettings, VoxrelayConfig
from voxrelay.errors import NoProviderAvailableError, UnknownProviderError
from voxrelay.transcription import (
    AzureProvider,
    ElevenLabsProvider,
    GroqProvider,
    ProviderRegistry,
    SarvamProvider,
    build_registry,
)


def registry_with(**keys):
    """Registry of all four providers; ``keys`` maps provider name to credential."""
    return ProviderRegistry(
        [
            GroqProvider(ProviderSettings(api_key=keys.get("groq"))),
            ElevenLabsProvider(ProviderSettings(api_key=keys.get("elevenlabs"))),
            SarvamProvider(ProviderSettings(api_key=keys.get("sarvam"))),
            AzureProvider(ProviderSettings(api_key=keys.get("azure"))),
        ]
    )


class TestProviderRegistry:
    """Test ProviderRegistry."""

    def test_registration_order_is_priority(self):
        """Test providers keep the order they were registered in."""
        registry = registry_with()

        assert registry.names == ["groq", "elevenlabs", "sarvam", "azure"]
        assert len(registry) == 4
        assert "sarvam" in registry
        assert "SARVAM" in registry
        assert "whisperx" not in registry

    def test_get(self):
        """Test lookup by name is case-insensitive."""
        registry = registry_with()

        assert isinstance(registry.get("groq"), GroqProvider)
        assert isinstance(registry.get("Azure"), AzureProvider)

    def test_get_unknown(self):
        """Test an unknown name lists what is registered."""
        registry = registry_with()

        with pytest.raises(UnknownProviderError) as exc_info:
            registry.get("whisperx")

        assert exc_info.value.known == ["groq", "elevenlabs", "sarvam", "azure"]

    def test_register_rejects_non_provider(self):
        """Test only TranscriptionProvider instances are accepted."""
        registry = ProviderRegistry()

        with pytest.raises(ValueError, match="must inherit from TranscriptionProvider"):
            registry.register(object())

    def test_register_replaces_same_name(self):
        """Test re-registering keeps the original priority slot."""
        registry = registry_with()
        replacement = SarvamProvider(ProviderSettings(api_key="new"))

        registry.register(replacement)

        assert registry.names == ["groq", "elevenlabs", "sarvam", "azure"]
        assert registry.get("sarvam") is replacement

    def test_list_available_skips_missing_credentials(self):
        """Test providers without credentials are excluded."""
        registry = registry_with(elevenlabs="el-key", azure="az-key")

        available = registry.list_available()

        assert [p.name for p in available] == ["elevenlabs", "azure"]

    def test_list_available_recomputed(self, monkeypatch):
        """Test credentials added later are picked up on the next call."""
        registry = registry_with(azure="az-key")
        assert [p.name for p in registry.list_available()] == ["azure"]

        monkeypatch.setenv("GROQ_API_KEY", "gq-key")

        assert [p.name for p in registry.list_available()] == ["groq", "azure"]

    def test_select_default_skips_unavailable(self):
        """Test the first credentialed provider in priority order wins."""
        registry = registry_with(sarvam="sv-key", azure="az-key")

        assert registry.select_default().name == "sarvam"

    def test_select_default_none_available(self):
        """Test no credentials at all is a distinct error."""
        registry = registry_with()

        with pytest.raises(NoProviderAvailableError) as exc_info:
            registry.select_default()

        assert exc_info.value.checked == ["groq", "elevenlabs", "sarvam", "azure"]

    def test_set_priority(self):
        """Test listed providers move first and the rest keep their order."""
        registry = registry_with(groq="gq-key", azure="az-key")

        registry.set_priority(["azure", "sarvam"])

        assert registry.names == ["azure", "sarvam", "groq", "elevenlabs"]
        assert registry.priority == registry.names
        assert registry.select_default().name == "azure"

    def test_set_priority_unknown(self):
        """Test an unknown name in the priority list is rejected."""
        registry = registry_with()

        with pytest.raises(UnknownProviderError):
            registry.set_priority(["whisperx"])

    def test_priority_argument(self):
        """Test priority can be given at construction."""
        registry = ProviderRegistry(
            [GroqProvider(), AzureProvider()],
            priority=["azure"],
        )

        assert registry.names == ["azure", "groq"]


class TestBuildRegistry:
    """Test building the registry from configuration."""

    def test_default_priority(self):
        """Test every built-in provider is registered in the default order."""
        registry = build_registry(VoxrelayConfig())

        assert registry.names == ["groq", "elevenlabs", "sarvam", "azure", "google"]

    def test_rotated_key_picked_up(self, monkeypatch):
        """Test a key rotated in the environment after the build is used."""
        monkeypatch.setenv("GROQ_API_KEY", "old")
        registry = build_registry(VoxrelayConfig())
        assert [p.name for p in registry.list_available()] == ["groq"]
        assert registry.get("groq").api_key == "old"

        monkeypatch.setenv("GROQ_API_KEY", "new")
        registry.list_available()

        assert registry.get("groq").api_key == "new"

    def test_revoked_key_dropped(self, monkeypatch):
        """Test a key removed from the environment after the build is not reused."""
        monkeypatch.setenv("GROQ_API_KEY", "old")
        registry = build_registry(VoxrelayConfig())
        registry.list_available()

        monkeypatch.delenv("GROQ_API_KEY")

        assert registry.list_available() == []
        assert registry.get("groq").is_available is False

    def test_dotenv_key_available(self, tmp_path):
        """Test a key that only lives in the .env file still counts."""
        (tmp_path / ".env").write_text("ELEVENLABS_API_KEY=el-from-file\n")

        registry = build_registry(VoxrelayConfig())

        assert registry.select_default().name == "elevenlabs"
        assert registry.get("elevenlabs").api_key == "el-from-file"

    def test_configured_priority_and_keys(self, monkeypatch):
        """Test priority and credentials come from the environment."""
        monkeypatch.setenv("VOXRELAY_PROVIDER_PRIORITY", "sarvam, groq")
        monkeypatch.setenv("SARVAM_API_KEY", "sv-key")
        monkeypatch.setenv("SARVAM_MODEL", "saarika:v2.5")

        registry = build_registry(VoxrelayConfig())

        assert registry.names == ["sarvam", "groq"]
        sarvam = registry.select_default()
        assert sarvam.name == "sarvam"
        assert sarvam.api_key == "sv-key"
        assert sarvam.model == "saarika:v2.5"

    def test_azure_region(self, monkeypatch):
        """Test the Azure endpoint follows the configured region."""
        monkeypatch.setenv("AZURE_SPEECH_REGION", "westeurope")

        azure = build_registry(VoxrelayConfig()).get("azure")

        assert azure.settings.base_url == "https://westeurope.api.cognitive.microsoft.com"
        assert azure.settings.region == "westeurope"

    def test_timeout_injected(self, monkeypatch):
        """Test the request timeout reaches every provider."""
        monkeypatch.setenv("VOXRELAY_REQUEST_TIMEOUT", "42")

        registry = build_registry(VoxrelayConfig())

        assert all(registry.get(name).settings.timeout_seconds == 42 for name in registry.names)

    def test_unknown_provider_in_priority(self, monkeypatch):
        """Test a misspelt provider name fails fast."""
        monkeypatch.setenv("VOXRELAY_PROVIDER_PRIORITY", "groq,whisperx")

        with pytest.raises(UnknownProviderError) as exc_info:
            build_registry(VoxrelayConfig())

        assert exc_info.value.name == "whisperx"

    def test_uses_global_config(self, monkeypatch):
        """Test the global config is used when none is passed."""
        monkeypatch.setenv("VOXRELAY_PROVIDER_PRIORITY", "azure")

        assert build_registry().names == ["azure"]
