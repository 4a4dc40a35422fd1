"""voxrelay: multi-provider speech-to-text routing.

Sends audio files to external transcription vendors (Groq, ElevenLabs,
Sarvam, Azure, Google), normalizes every response into one result shape,
and routes requests by explicit provider or by priority with a single
fallback.

Quick Start:
    >>> import asyncio
    >>> from voxrelay import TranscriptionRouter, build_registry
    >>> router = TranscriptionRouter(build_registry())
    >>> result = asyncio.run(router.transcribe("call.mp3"))
    >>> print(result.provider, result.word_count)
"""

__version__ = "1.0.0"

from voxrelay.config import ProviderSettings, VoxrelayConfig, get_config, reset_config
from voxrelay.errors import (
    AllProvidersFailedError,
    AuthenticationError,
    ConfigurationError,
    ErrorKind,
    FileTooLargeError,
    NoProviderAvailableError,
    NotFoundError,
    PayloadTooLargeError,
    RateLimitedError,
    RemoteRequestError,
    TranscriptionError,
    TransportError,
    UnknownProviderError,
    UnsupportedFormatError,
    VoxrelayError,
)
from voxrelay.notifications import ConsoleChannel, NotificationDispatcher
from voxrelay.transcription import (
    ProviderCapabilities,
    ProviderRegistry,
    Segment,
    TranscriptionOptions,
    TranscriptionProvider,
    TranscriptionResult,
    TranscriptionRouter,
    build_registry,
    build_router,
)

__all__ = [
    "__version__",
    # Configuration
    "ProviderSettings",
    "VoxrelayConfig",
    "get_config",
    "reset_config",
    # Errors
    "AllProvidersFailedError",
    "AuthenticationError",
    "ConfigurationError",
    "ErrorKind",
    "FileTooLargeError",
    "NoProviderAvailableError",
    "NotFoundError",
    "PayloadTooLargeError",
    "RateLimitedError",
    "RemoteRequestError",
    "TranscriptionError",
    "TransportError",
    "UnknownProviderError",
    "UnsupportedFormatError",
    "VoxrelayError",
    # Notifications
    "ConsoleChannel",
    "NotificationDispatcher",
    # Transcription
    "ProviderCapabilities",
    "ProviderRegistry",
    "Segment",
    "TranscriptionOptions",
    "TranscriptionProvider",
    "TranscriptionResult",
    "TranscriptionRouter",
    "build_registry",
    "build_router",
]
