"""Azure AI Speech fast transcription provider."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from .base import (
    MB,
    TranscriptionOptions,
    TranscriptionProvider,
    TranscriptionResult,
    build_segments,
)

AZURE_API_VERSION = "2024-11-15"

AZURE_LOCALES: Dict[str, str] = {
    "ml": "ml-IN",
    "hi": "hi-IN",
    "ta": "ta-IN",
    "te": "te-IN",
    "gu": "gu-IN",
    "kn": "kn-IN",
    "bn": "bn-IN",
    "mr": "mr-IN",
    "pa": "pa-IN",
    "en": "en-US",
    "es": "es-ES",
    "fr": "fr-FR",
    "de": "de-DE",
    "it": "it-IT",
    "pt": "pt-BR",
    "ru": "ru-RU",
    "ja": "ja-JP",
    "ko": "ko-KR",
    "zh": "zh-CN",
    "ar": "ar-SA",
}

DEFAULT_LOCALE = "en-US"
MAX_DIARIZATION_SPEAKERS = 4


class AzureProvider(TranscriptionProvider):
    """Transcription using the Azure AI Speech fast transcription REST API.

    Requires AZURE_SPEECH_KEY; the region comes from AZURE_SPEECH_REGION
    through the injected settings. Results arrive as phrases with
    millisecond offsets, and each phrase becomes one segment.
    """

    DEFAULT_MODEL = "fast-transcription"
    DEFAULT_BASE_URL = "https://centralindia.api.cognitive.microsoft.com"
    API_KEY_ENV = "AZURE_SPEECH_KEY"
    MAX_FILE_SIZE_BYTES = 300 * MB
    SUPPORTED_FORMATS = frozenset({"wav", "mp3", "ogg", "flac"})
    SUPPORTED_LANGUAGES = frozenset(AZURE_LOCALES)
    COST_PER_HOUR_USD = 1.00

    @property
    def name(self) -> str:
        """Get provider name."""
        return "azure"

    def auth_headers(self) -> Dict[str, str]:
        return {"Ocp-Apim-Subscription-Key": self.api_key or ""}

    def map_language_code(self, language: Optional[str]) -> str:
        """Map a short language code to an Azure locale (e.g. 'hi' -> 'hi-IN')."""
        if not language:
            return DEFAULT_LOCALE
        if "-" in language:
            return language
        return AZURE_LOCALES.get(language.lower(), DEFAULT_LOCALE)

    def build_request(self, path: Path, options: TranscriptionOptions) -> Dict[str, Any]:
        definition: Dict[str, Any] = {"locales": [self.map_language_code(options.language)]}
        if options.diarize:
            definition["diarization"] = {"enabled": True, "maxSpeakers": MAX_DIARIZATION_SPEAKERS}

        return {
            "url": "/speechtotext/transcriptions:transcribe",
            "params": {"api-version": AZURE_API_VERSION},
            "file_field": "audio",
            "data": {"definition": json.dumps(definition)},
        }

    def format_response(self, raw: Dict[str, Any], processing_time_ms: int) -> TranscriptionResult:
        phrases = raw.get("phrases") or []
        entries: List[Any] = []
        for phrase in phrases:
            offset_ms = phrase.get("offsetMilliseconds") or 0
            duration_ms = phrase.get("durationMilliseconds") or 0
            entries.append(
                (
                    offset_ms / 1000,
                    (offset_ms + duration_ms) / 1000,
                    phrase.get("text", ""),
                    phrase.get("confidence"),
                    phrase.get("speaker"),
                )
            )

        combined = raw.get("combinedPhrases") or []
        if combined:
            text = " ".join(p.get("text", "") for p in combined)
        else:
            text = " ".join(p.get("text", "") for p in phrases)

        locale = phrases[0].get("locale") if phrases else None
        language = locale.split("-")[0].lower() if isinstance(locale, str) else None

        return self._result(
            raw=raw,
            text=text,
            language=language,
            segments=build_segments(entries),
            confidence=None,
            processing_time_ms=processing_time_ms,
        )
