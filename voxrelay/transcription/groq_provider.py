"""Groq Whisper API transcription provider."""

from pathlib import Path
from typing import Any, Dict, List

from ..logging import get_logger
from .base import (
    MB,
    TranscriptionOptions,
    TranscriptionProvider,
    TranscriptionResult,
    build_segments,
    logprob_to_confidence,
)

logger = get_logger(__name__)

# Whisper's verbose_json reports the language by name rather than ISO code
WHISPER_LANGUAGE_CODES: Dict[str, str] = {
    "arabic": "ar",
    "bengali": "bn",
    "chinese": "zh",
    "english": "en",
    "french": "fr",
    "german": "de",
    "gujarati": "gu",
    "hindi": "hi",
    "italian": "it",
    "japanese": "ja",
    "kannada": "kn",
    "korean": "ko",
    "malayalam": "ml",
    "marathi": "mr",
    "punjabi": "pa",
    "portuguese": "pt",
    "russian": "ru",
    "spanish": "es",
    "tamil": "ta",
    "telugu": "te",
}


class GroqProvider(TranscriptionProvider):
    """Transcription using Groq's hosted Whisper models.

    Groq exposes an OpenAI-compatible ``/audio/transcriptions`` endpoint.
    Requires GROQ_API_KEY. Uploads are capped at 25MB and diarization is not
    available, so ``options.diarize`` is ignored.
    """

    DEFAULT_MODEL = "whisper-large-v3-turbo"
    DEFAULT_BASE_URL = "https://api.groq.com/openai/v1"
    API_KEY_ENV = "GROQ_API_KEY"
    MAX_FILE_SIZE_BYTES = 25 * MB
    SUPPORTED_FORMATS = frozenset(
        {"mp3", "mp4", "mpeg", "mpga", "m4a", "wav", "webm", "flac", "ogg"}
    )
    SUPPORTED_LANGUAGES = frozenset(WHISPER_LANGUAGE_CODES.values())
    # Free tier
    COST_PER_HOUR_USD = 0.0

    @property
    def name(self) -> str:
        """Get provider name."""
        return "groq"

    def auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def build_request(self, path: Path, options: TranscriptionOptions) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "model": self.model,
            "response_format": "verbose_json",
            "temperature": "0",
        }
        if options.language:
            data["language"] = options.language.split("-")[0]
        if options.timestamps:
            data["timestamp_granularities[]"] = "segment"
        if options.diarize:
            logger.debug("Groq does not support diarization; ignoring", provider=self.name)

        return {"url": "/audio/transcriptions", "file_field": "file", "data": data}

    def format_response(self, raw: Dict[str, Any], processing_time_ms: int) -> TranscriptionResult:
        """Format a Groq verbose_json body.

        Segment confidence is derived from ``avg_logprob``. Groq reports no
        overall confidence.
        """
        entries: List[Any] = [
            (
                seg.get("start"),
                seg.get("end"),
                seg.get("text", ""),
                logprob_to_confidence(seg.get("avg_logprob")),
                None,
            )
            for seg in raw.get("segments") or []
        ]

        language = raw.get("language")
        if isinstance(language, str):
            language = WHISPER_LANGUAGE_CODES.get(language.lower(), language.lower())

        return self._result(
            raw=raw,
            text=raw.get("text"),
            language=language,
            segments=build_segments(entries),
            confidence=None,
            processing_time_ms=processing_time_ms,
        )
