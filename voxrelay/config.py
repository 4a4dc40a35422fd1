#!/usr/bin/env python3
"""
Centralized configuration management for voxrelay.

Settings are read once from the environment (and an optional ``.env`` file)
by the surrounding process, then handed to providers as explicit
``ProviderSettings`` objects. Providers never read configuration globals.
"""

import os
from dataclasses import dataclass
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PROVIDER_PRIORITY = "groq,elevenlabs,sarvam,azure,google"


@dataclass
class ProviderSettings:
    """Explicit configuration injected into a transcription provider.

    Attributes:
        api_key: Credential supplied up front (takes precedence over api_key_env)
        api_key_env: Environment variable read on every availability check
        fallback_api_key: Credential used when neither of the above resolves
            (typically a value loaded from a .env file)
        base_url: Vendor API base URL
        model: Vendor model / engine identifier
        timeout_seconds: Upper bound for one remote call
        max_file_size_bytes: Override for the provider's built-in size limit
        region: Vendor region (Azure region, Google Cloud location)
        project: Cloud project that owns the recognizer (Google only)
    """

    api_key: Optional[str] = None
    api_key_env: Optional[str] = None
    fallback_api_key: Optional[str] = None
    base_url: str = ""
    model: str = ""
    timeout_seconds: float = 300.0
    max_file_size_bytes: Optional[int] = None
    region: Optional[str] = None
    project: Optional[str] = None


class VoxrelayConfig(BaseSettings):
    """Main configuration for voxrelay."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Routing Configuration
    provider_priority: str = Field(
        default=DEFAULT_PROVIDER_PRIORITY, validation_alias="VOXRELAY_PROVIDER_PRIORITY"
    )
    request_timeout: float = Field(default=300.0, validation_alias="VOXRELAY_REQUEST_TIMEOUT")
    notify_on_failure: bool = Field(default=False, validation_alias="VOXRELAY_NOTIFY_ON_FAILURE")

    # Groq Configuration
    groq_api_key: Optional[str] = Field(default=None, validation_alias="GROQ_API_KEY")
    groq_model: str = Field(default="whisper-large-v3-turbo", validation_alias="GROQ_MODEL")
    groq_base_url: str = Field(
        default="https://api.groq.com/openai/v1", validation_alias="GROQ_BASE_URL"
    )

    # ElevenLabs Configuration
    elevenlabs_api_key: Optional[str] = Field(default=None, validation_alias="ELEVENLABS_API_KEY")
    elevenlabs_model: str = Field(default="scribe_v2", validation_alias="ELEVENLABS_MODEL")
    elevenlabs_base_url: str = Field(
        default="https://api.elevenlabs.io/v1", validation_alias="ELEVENLABS_BASE_URL"
    )

    # Sarvam Configuration
    sarvam_api_key: Optional[str] = Field(default=None, validation_alias="SARVAM_API_KEY")
    sarvam_model: str = Field(default="saarika:v2", validation_alias="SARVAM_MODEL")
    sarvam_base_url: str = Field(
        default="https://api.sarvam.ai", validation_alias="SARVAM_BASE_URL"
    )

    # Azure Speech Configuration
    azure_speech_key: Optional[str] = Field(default=None, validation_alias="AZURE_SPEECH_KEY")
    azure_speech_region: str = Field(default="centralindia", validation_alias="AZURE_SPEECH_REGION")
    azure_base_url: Optional[str] = Field(default=None, validation_alias="AZURE_SPEECH_ENDPOINT")

    # Google Cloud Speech Configuration
    google_credentials_path: Optional[str] = Field(
        default=None, validation_alias="GOOGLE_APPLICATION_CREDENTIALS"
    )
    google_cloud_project: Optional[str] = Field(
        default=None, validation_alias="GOOGLE_CLOUD_PROJECT"
    )
    google_speech_location: str = Field(
        default="asia-south1", validation_alias="GOOGLE_SPEECH_LOCATION"
    )
    google_speech_model: str = Field(default="chirp_2", validation_alias="GOOGLE_SPEECH_MODEL")

    # Logging Configuration
    log_level: str = Field(default="WARNING", validation_alias="VOXRELAY_LOG_LEVEL")
    log_format: str = Field(default="console", validation_alias="VOXRELAY_LOG_FORMAT")

    @field_validator("request_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Request timeout must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        valid_formats = {"console", "json"}
        if v.lower() not in valid_formats:
            raise ValueError(f"Log format must be one of: {valid_formats}")
        return v.lower()

    @property
    def priority(self) -> List[str]:
        """Provider names in fallback order."""
        return [p.strip().lower() for p in self.provider_priority.split(",") if p.strip()]

    def provider_settings(self, name: str) -> ProviderSettings:
        """Build the explicit settings object injected into a provider.

        Credentials are never copied into ``api_key``. Providers read
        ``api_key_env`` live on every availability check so rotated or
        revoked keys take effect without a rebuild. A key that only came
        from the ``.env`` file is carried as ``fallback_api_key``.

        Args:
            name: Provider name ("groq", "elevenlabs", "sarvam", "azure", "google")

        Returns:
            ProviderSettings for that provider

        Raises:
            ValueError: If the provider name is not known to the config
        """
        name = name.lower()
        if name == "groq":
            return ProviderSettings(
                api_key_env="GROQ_API_KEY",
                fallback_api_key=_file_only(self.groq_api_key, "GROQ_API_KEY"),
                base_url=self.groq_base_url,
                model=self.groq_model,
                timeout_seconds=self.request_timeout,
            )
        if name == "elevenlabs":
            return ProviderSettings(
                api_key_env="ELEVENLABS_API_KEY",
                fallback_api_key=_file_only(self.elevenlabs_api_key, "ELEVENLABS_API_KEY"),
                base_url=self.elevenlabs_base_url,
                model=self.elevenlabs_model,
                timeout_seconds=self.request_timeout,
            )
        if name == "sarvam":
            return ProviderSettings(
                api_key_env="SARVAM_API_KEY",
                fallback_api_key=_file_only(self.sarvam_api_key, "SARVAM_API_KEY"),
                base_url=self.sarvam_base_url,
                model=self.sarvam_model,
                timeout_seconds=self.request_timeout,
            )
        if name == "azure":
            base_url = (
                self.azure_base_url
                or f"https://{self.azure_speech_region}.api.cognitive.microsoft.com"
            )
            return ProviderSettings(
                api_key_env="AZURE_SPEECH_KEY",
                fallback_api_key=_file_only(self.azure_speech_key, "AZURE_SPEECH_KEY"),
                base_url=base_url,
                model="fast-transcription",
                timeout_seconds=self.request_timeout,
                region=self.azure_speech_region,
            )
        if name == "google":
            return ProviderSettings(
                api_key_env="GOOGLE_APPLICATION_CREDENTIALS",
                fallback_api_key=_file_only(
                    self.google_credentials_path, "GOOGLE_APPLICATION_CREDENTIALS"
                ),
                model=self.google_speech_model,
                timeout_seconds=self.request_timeout,
                region=self.google_speech_location,
                project=self.google_cloud_project,
            )
        raise ValueError(f"No settings defined for provider: {name}")


def _file_only(value: Optional[str], env_name: str) -> Optional[str]:
    """Return ``value`` unless the live environment already supplies ``env_name``."""
    if os.getenv(env_name):
        return None
    return value


# Global config instance
_config: Optional[VoxrelayConfig] = None


def get_config() -> VoxrelayConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = VoxrelayConfig()
    return _config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _config
    _config = None
