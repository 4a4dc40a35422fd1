"""Transcription providers using Strategy pattern.

Each remote speech-to-text vendor is one ``TranscriptionProvider`` subclass
producing the same canonical ``TranscriptionResult``. A ``ProviderRegistry``
holds the configured providers in priority order and a
``TranscriptionRouter`` picks one (explicitly or automatically, with a single
fallback attempt).

Usage:
    from voxrelay.transcription import TranscriptionRouter, build_registry

    router = TranscriptionRouter(build_registry())
    result = await router.transcribe("call.mp3")
"""

from .azure_provider import AzureProvider
from .base import (
    ProviderCapabilities,
    Segment,
    TranscriptionOptions,
    TranscriptionProvider,
    TranscriptionResult,
    count_words,
)
from .comparison import (
    ComparisonRun,
    ProviderOutcome,
    best_result,
    compare_results,
    estimate_costs,
    transcribe_with_all,
)
from .elevenlabs_provider import ElevenLabsProvider
from .google_provider import GoogleProvider
from .groq_provider import GroqProvider
from .registry import PROVIDER_CLASSES, ProviderRegistry, build_registry
from .router import TranscriptionRouter, build_router
from .sarvam_provider import SarvamProvider

__all__ = [
    # Base classes
    "ProviderCapabilities",
    "Segment",
    "TranscriptionOptions",
    "TranscriptionProvider",
    "TranscriptionResult",
    "count_words",
    # Providers
    "AzureProvider",
    "ElevenLabsProvider",
    "GoogleProvider",
    "GroqProvider",
    "SarvamProvider",
    # Registry / routing
    "PROVIDER_CLASSES",
    "ProviderRegistry",
    "build_registry",
    "TranscriptionRouter",
    "build_router",
    # Comparison
    "ComparisonRun",
    "ProviderOutcome",
    "best_result",
    "compare_results",
    "estimate_costs",
    "transcribe_with_all",
]
