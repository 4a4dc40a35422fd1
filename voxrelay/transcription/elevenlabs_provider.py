"""ElevenLabs Scribe transcription provider."""

from pathlib import Path
from typing import Any, Dict, List

from .base import (
    GB,
    TranscriptionOptions,
    TranscriptionProvider,
    TranscriptionResult,
    build_segments,
    logprob_to_confidence,
)


class ElevenLabsProvider(TranscriptionProvider):
    """Transcription using the ElevenLabs Scribe speech-to-text API.

    Features: 90+ languages, speaker diarization, word-level timestamps.
    Requires ELEVENLABS_API_KEY. Each returned word becomes one segment;
    ``spacing`` tokens are dropped.
    """

    DEFAULT_MODEL = "scribe_v2"
    DEFAULT_BASE_URL = "https://api.elevenlabs.io/v1"
    API_KEY_ENV = "ELEVENLABS_API_KEY"
    MAX_FILE_SIZE_BYTES = 3 * GB
    SUPPORTED_FORMATS = frozenset(
        {"mp3", "mp4", "mpeg", "mpga", "m4a", "wav", "webm", "flac", "ogg", "aac"}
    )
    SUPPORTED_LANGUAGES = frozenset(
        {
            # Indian
            "en", "hi", "ml", "ta", "te", "gu", "kn", "or", "bn", "mr", "pa", "sd",
            # European
            "es", "fr", "de", "it", "pt", "ru", "pl", "nl", "uk", "cs",
            # Asian
            "ja", "ko", "zh", "th", "vi", "id", "ms",
            # Middle Eastern
            "ar", "fa", "he", "tr",
        }
    )
    COST_PER_HOUR_USD = 0.20

    @property
    def name(self) -> str:
        """Get provider name."""
        return "elevenlabs"

    def auth_headers(self) -> Dict[str, str]:
        return {"xi-api-key": self.api_key or ""}

    def build_request(self, path: Path, options: TranscriptionOptions) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "model_id": self.model,
            "tag_audio_events": "true",
            "timestamps_granularity": "word" if options.timestamps else "none",
        }
        if options.language:
            data["language_code"] = options.language
        if options.diarize:
            data["diarize"] = "true"

        return {"url": "/speech-to-text", "file_field": "file", "data": data}

    def format_response(self, raw: Dict[str, Any], processing_time_ms: int) -> TranscriptionResult:
        entries: List[Any] = []
        for word in raw.get("words") or []:
            if word.get("type") == "spacing":
                continue
            confidence = word.get("confidence")
            if confidence is None:
                confidence = logprob_to_confidence(word.get("logprob"))
            entries.append(
                (
                    word.get("start"),
                    word.get("end"),
                    word.get("text", ""),
                    confidence,
                    word.get("speaker") or word.get("speaker_id"),
                )
            )

        return self._result(
            raw=raw,
            text=raw.get("text"),
            language=raw.get("language_code"),
            segments=build_segments(entries),
            confidence=raw.get("language_probability"),
            processing_time_ms=processing_time_ms,
        )
