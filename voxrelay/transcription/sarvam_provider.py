"""Sarvam Saarika transcription provider (Indian languages)."""

from pathlib import Path
from typing import Any, Dict, List, Optional

from .base import (
    MB,
    TranscriptionOptions,
    TranscriptionProvider,
    TranscriptionResult,
    build_segments,
)

# Sarvam expects region-qualified codes
SARVAM_LANGUAGE_CODES: Dict[str, str] = {
    "ml": "ml-IN",
    "hi": "hi-IN",
    "ta": "ta-IN",
    "te": "te-IN",
    "gu": "gu-IN",
    "kn": "kn-IN",
    "bn": "bn-IN",
    "mr": "mr-IN",
    "pa": "pa-IN",
    "or": "or-IN",
    "en": "en-IN",
}

AUTO_DETECT = "unknown"


class SarvamProvider(TranscriptionProvider):
    """Transcription using Sarvam's Saarika speech-to-text API.

    Focused on Indian languages. Requires SARVAM_API_KEY. Without a
    requested language the API is asked to auto-detect.
    """

    DEFAULT_MODEL = "saarika:v2"
    DEFAULT_BASE_URL = "https://api.sarvam.ai"
    API_KEY_ENV = "SARVAM_API_KEY"
    MAX_FILE_SIZE_BYTES = 25 * MB
    SUPPORTED_FORMATS = frozenset({"mp3", "wav", "flac", "m4a", "ogg", "webm"})
    SUPPORTED_LANGUAGES = frozenset(SARVAM_LANGUAGE_CODES)
    COST_PER_HOUR_USD = 0.10

    @property
    def name(self) -> str:
        """Get provider name."""
        return "sarvam"

    def auth_headers(self) -> Dict[str, str]:
        return {"api-subscription-key": self.api_key or ""}

    def map_language_code(self, language: Optional[str]) -> str:
        """Map a short language code to Sarvam's format (e.g. 'ml' -> 'ml-IN')."""
        if not language:
            return AUTO_DETECT
        return (
            SARVAM_LANGUAGE_CODES.get(language)
            or SARVAM_LANGUAGE_CODES.get(language.split("-")[0].lower())
            or AUTO_DETECT
        )

    def build_request(self, path: Path, options: TranscriptionOptions) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "model": self.model,
            "language_code": self.map_language_code(options.language),
            "with_timestamps": "true" if options.timestamps else "false",
        }
        if options.diarize:
            data["with_diarization"] = "true"

        return {"url": "/speech-to-text", "file_field": "file", "data": data}

    def format_response(self, raw: Dict[str, Any], processing_time_ms: int) -> TranscriptionResult:
        """Format a Sarvam body.

        Handles three timing shapes: diarized entries (preferred, they carry
        speakers), parallel ``timestamps`` arrays, and a ``words`` list.
        """
        entries: List[Any] = []

        diarized = (raw.get("diarized_transcript") or {}).get("entries") or []
        timestamps = raw.get("timestamps") or {}

        if diarized:
            for entry in diarized:
                entries.append(
                    (
                        entry.get("start_time_seconds"),
                        entry.get("end_time_seconds"),
                        entry.get("transcript", ""),
                        None,
                        entry.get("speaker_id"),
                    )
                )
        elif timestamps.get("words"):
            starts = timestamps.get("start_time_seconds") or []
            ends = timestamps.get("end_time_seconds") or []
            for index, word in enumerate(timestamps["words"]):
                entries.append(
                    (
                        starts[index] if index < len(starts) else None,
                        ends[index] if index < len(ends) else None,
                        word,
                        None,
                        None,
                    )
                )
        else:
            for word in raw.get("words") or []:
                entries.append(
                    (
                        word.get("start_time", word.get("start")),
                        word.get("end_time", word.get("end")),
                        word.get("word") or word.get("text", ""),
                        word.get("confidence"),
                        None,
                    )
                )

        language = raw.get("language_code")
        if isinstance(language, str) and language != AUTO_DETECT:
            language = language.split("-")[0].lower()
        else:
            language = None

        return self._result(
            raw=raw,
            text=raw.get("transcript"),
            language=language,
            segments=build_segments(entries),
            confidence=raw.get("confidence"),
            processing_time_ms=processing_time_ms,
        )
