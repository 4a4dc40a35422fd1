"""Base classes for transcription provider Strategy pattern."""

import asyncio
import math
import os
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple, Union

import httpx

from ..config import ProviderSettings
from ..errors import (
    ConfigurationError,
    FileTooLargeError,
    NotFoundError,
    TranscriptionError,
    TransportError,
    UnsupportedFormatError,
    classify_status,
)
from ..logging import get_logger

logger = get_logger(__name__)

# Cost estimates assume 128 kbps audio
ASSUMED_BITRATE_BPS = 128_000

MB = 1024 * 1024
GB = 1024 * MB

AUDIO_MIME_TYPES: Dict[str, str] = {
    "aac": "audio/aac",
    "flac": "audio/flac",
    "m4a": "audio/m4a",
    "mp3": "audio/mpeg",
    "mp4": "audio/mp4",
    "mpeg": "audio/mpeg",
    "mpga": "audio/mpeg",
    "ogg": "audio/ogg",
    "wav": "audio/wav",
    "webm": "audio/webm",
}

PathLike = Union[str, Path]


@dataclass(frozen=True)
class TranscriptionOptions:
    """Per-call transcription options."""

    language: Optional[str] = None
    diarize: bool = False
    timestamps: bool = True


@dataclass(frozen=True)
class Segment:
    """A timed slice of transcript text."""

    id: int
    start: float
    end: float
    text: str
    confidence: Optional[float] = None
    speaker: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        return {
            "id": self.id,
            "start": self.start,
            "end": self.end,
            "text": self.text,
            "confidence": self.confidence,
            "speaker": self.speaker,
        }


@dataclass(frozen=True)
class TranscriptionResult:
    """Canonical result of a transcription, identical in shape for every provider.

    ``raw`` holds the vendor payload verbatim for audit and debugging. Nothing
    downstream interprets it.
    """

    text: str
    language: Optional[str]
    duration: float
    segments: Tuple[Segment, ...]
    word_count: int
    confidence: Optional[float]
    processing_time_ms: int
    provider: str
    model: str
    raw: Any = field(default=None, repr=False, hash=False)

    def to_dict(self, include_raw: bool = False) -> Dict[str, Any]:
        """Convert to dictionary format."""
        data: Dict[str, Any] = {
            "text": self.text,
            "language": self.language,
            "duration": self.duration,
            "segments": [s.to_dict() for s in self.segments],
            "word_count": self.word_count,
            "confidence": self.confidence,
            "processing_time_ms": self.processing_time_ms,
            "provider": self.provider,
            "model": self.model,
        }
        if include_raw:
            data["raw"] = self.raw
        return data


@dataclass(frozen=True)
class ProviderCapabilities:
    """Static limits and capabilities of one provider instance."""

    name: str
    max_file_size_bytes: int
    supported_formats: FrozenSet[str]
    supported_languages: FrozenSet[str]

    def supports_format(self, extension: str) -> bool:
        """Check an extension (with or without the leading dot)."""
        return extension.lower().lstrip(".") in self.supported_formats

    def supports_language(self, language: str) -> bool:
        """Check a language code, ignoring any region suffix (``ml-IN`` -> ``ml``)."""
        return language.lower().split("-")[0] in self.supported_languages


def count_words(text: Optional[str]) -> int:
    """Count whitespace-delimited tokens."""
    if not text:
        return 0
    return len(text.split())


def clamp_confidence(value: Any) -> Optional[float]:
    """Coerce a vendor confidence score into [0, 1], or None if absent."""
    if value is None or isinstance(value, bool):
        return None
    try:
        score = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(score):
        return None
    return min(max(score, 0.0), 1.0)


def logprob_to_confidence(logprob: Any) -> Optional[float]:
    """Convert an average log-probability into a [0, 1] confidence."""
    if logprob is None:
        return None
    try:
        return clamp_confidence(math.exp(float(logprob)))
    except (TypeError, ValueError, OverflowError):
        return None


def build_segments(
    entries: Iterable[Tuple[Any, Any, Any, Any, Any]],
) -> Tuple[Segment, ...]:
    """Build ordered canonical segments from (start, end, text, confidence, speaker) tuples.

    Segments are sorted by start time (stable, so vendor order breaks ties),
    renumbered so ``id`` equals position, and an ``end`` earlier than its
    ``start`` is raised to ``start``.
    """
    rows: List[Tuple[float, float, str, Optional[float], Optional[str]]] = []
    for start, end, text, confidence, speaker in entries:
        start_s = float(start or 0.0)
        end_s = float(end or 0.0)
        rows.append(
            (
                start_s,
                max(end_s, start_s),
                (text or "").strip(),
                clamp_confidence(confidence),
                None if speaker is None else str(speaker),
            )
        )

    rows.sort(key=lambda row: row[0])
    return tuple(
        Segment(id=index, start=start, end=end, text=text, confidence=conf, speaker=speaker)
        for index, (start, end, text, conf, speaker) in enumerate(rows)
    )


class TranscriptionProvider(ABC):
    """Abstract base class for remote transcription providers.

    This defines the Strategy interface. Each concrete provider wraps one
    vendor's HTTP API: it builds the upload request and maps the vendor JSON
    body into a ``TranscriptionResult``. Everything else (credential
    resolution, input validation, timing, error classification and logging)
    lives here so every vendor behaves the same.

    Validation order inside ``transcribe`` is fixed: credentials, file
    existence, format, size, then the remote call. Each failed check raises
    before any network I/O.
    """

    DEFAULT_MODEL: str = ""
    DEFAULT_BASE_URL: str = ""
    API_KEY_ENV: Optional[str] = None
    MAX_FILE_SIZE_BYTES: int = 25 * MB
    SUPPORTED_FORMATS: FrozenSet[str] = frozenset({"mp3", "wav", "flac", "m4a", "ogg"})
    SUPPORTED_LANGUAGES: FrozenSet[str] = frozenset()
    COST_PER_HOUR_USD: float = 0.0

    def __init__(
        self,
        settings: Optional[ProviderSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize provider with injected configuration.

        Args:
            settings: Provider settings (credential, base URL, model, limits)
            transport: Optional httpx transport, used by tests to stub the vendor API
        """
        settings = settings or ProviderSettings()
        self.settings = replace(
            settings,
            api_key_env=settings.api_key_env or self.API_KEY_ENV,
            base_url=settings.base_url or self.DEFAULT_BASE_URL,
            model=settings.model or self.DEFAULT_MODEL,
        )
        self.api_key: Optional[str] = None
        self._transport = transport
        self._capabilities = ProviderCapabilities(
            name=self.name,
            max_file_size_bytes=self.settings.max_file_size_bytes or self.MAX_FILE_SIZE_BYTES,
            supported_formats=frozenset(self.SUPPORTED_FORMATS),
            supported_languages=frozenset(self.SUPPORTED_LANGUAGES),
        )

    @property
    @abstractmethod
    def name(self) -> str:
        """Get provider name (e.g., 'groq', 'elevenlabs')."""
        pass

    @property
    def model(self) -> str:
        """Vendor model identifier sent with each request."""
        return self.settings.model

    @property
    def is_available(self) -> bool:
        """Whether a credential has been cached."""
        return bool(self.api_key)

    def resolve_credential(self) -> Optional[str]:
        """Look up the credential without caching it.

        Order: explicit ``settings.api_key``, then the live value of the
        environment variable named by ``settings.api_key_env``, then
        ``settings.fallback_api_key``.
        """
        env_name = self.settings.api_key_env
        return (
            self.settings.api_key
            or (os.getenv(env_name) if env_name else None)
            or self.settings.fallback_api_key
        )

    def initialize(self) -> bool:
        """Resolve and cache the provider credential.

        Re-run on every availability check. A refreshed credential replaces
        the cached one and a credential that no longer resolves clears it. A
        missing credential is not an error: the provider is simply unavailable.

        Returns:
            True if a credential is available
        """
        api_key = self.resolve_credential()

        if not api_key or not self.accept_credential(api_key):
            if self.api_key is not None:
                logger.info("Cached credential dropped", provider=self.name)
            self.api_key = None
            if not api_key:
                env_name = self.settings.api_key_env
                logger.warning(
                    f"{env_name or 'API key'} not set - {self.name} provider unavailable",
                    provider=self.name,
                )
            return False

        if api_key != self.api_key:
            refreshed = self.api_key is not None
            self.api_key = api_key
            logger.info(
                "Transcription provider initialized",
                provider=self.name,
                model=self.model,
                refreshed=refreshed,
            )
        return True

    def accept_credential(self, credential: str) -> bool:
        """Extra check on a resolved credential. Providers override as needed."""
        return True

    def get_capabilities(self) -> ProviderCapabilities:
        """Static capability descriptor (no I/O)."""
        return self._capabilities

    def supports(self, audio_path: PathLike) -> bool:
        """Check format and size limits without raising."""
        path = Path(audio_path)
        if not path.is_file() or not self._capabilities.supports_format(path.suffix):
            return False
        return path.stat().st_size <= self._capabilities.max_file_size_bytes

    def estimate_cost(self, audio_path: PathLike) -> float:
        """Estimate transcription cost in USD from the file size.

        Advisory only. Duration is inferred from an assumed bitrate.

        Raises:
            NotFoundError: If the audio file doesn't exist
        """
        path = Path(audio_path)
        if not path.is_file():
            raise NotFoundError(f"Audio file not found: {audio_path}", provider=self.name)
        duration_seconds = path.stat().st_size / (ASSUMED_BITRATE_BPS / 8)
        return (duration_seconds / 3600) * self.COST_PER_HOUR_USD

    async def transcribe(
        self,
        audio_path: PathLike,
        options: Optional[TranscriptionOptions] = None,
    ) -> TranscriptionResult:
        """Transcribe an audio file.

        Args:
            audio_path: Path to audio file
            options: Language / diarization / timestamp options

        Returns:
            TranscriptionResult in canonical form

        Raises:
            ConfigurationError: Credentials missing
            NotFoundError: Audio file doesn't exist
            UnsupportedFormatError: Extension not supported by this provider
            FileTooLargeError: File exceeds the provider's size limit
            AuthenticationError, PayloadTooLargeError, RateLimitedError,
            RemoteRequestError, TransportError: Remote call failed
        """
        options = options or TranscriptionOptions()
        path = Path(audio_path)
        started = time.monotonic()
        file_size: Optional[int] = None

        try:
            self._ensure_credentials()
            file_size = self._validate_file(path)
            self._check_language(options.language)

            self._log(
                "info",
                "Starting transcription",
                provider=self.name,
                model=self.model,
                audio=str(path),
                file_size_mb=round(file_size / MB, 2),
                language=options.language or "auto",
                diarize=options.diarize,
            )

            payload = await self._send(path, options)
            processing_time_ms = self._elapsed_ms(started)

            try:
                result = self.format_response(payload, processing_time_ms)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                raise TransportError(
                    f"{self.name} returned an unexpected response: {e}", provider=self.name
                ) from e

        except TranscriptionError as e:
            self._log(
                "error",
                "Transcription failed",
                provider=self.name,
                audio=str(path),
                file_size_bytes=file_size,
                error=str(e),
                error_kind=e.kind.value,
                status=e.status_code,
                processing_time_ms=self._elapsed_ms(started),
            )
            raise

        self._log(
            "info",
            "Transcription completed",
            provider=self.name,
            audio=str(path),
            language=result.language,
            duration=result.duration,
            word_count=result.word_count,
            segments_count=len(result.segments),
            confidence=result.confidence,
            processing_time_ms=result.processing_time_ms,
        )
        return result

    @abstractmethod
    def format_response(self, raw: Dict[str, Any], processing_time_ms: int) -> TranscriptionResult:
        """Map a vendor payload into the canonical result (pure, no I/O).

        Args:
            raw: Decoded JSON body returned by the vendor
            processing_time_ms: Elapsed wall-clock time of the call

        Returns:
            TranscriptionResult
        """
        pass

    @abstractmethod
    def build_request(self, path: Path, options: TranscriptionOptions) -> Dict[str, Any]:
        """Describe the vendor upload request.

        Returns:
            Dict with ``url`` (relative to base URL), ``file_field``, and
            optionally ``data``, ``params`` and ``headers``
        """
        pass

    @abstractmethod
    def auth_headers(self) -> Dict[str, str]:
        """HTTP headers carrying the cached credential."""
        pass

    def classify_status(self, status_code: int, detail: Optional[str] = None) -> TranscriptionError:
        """Map a vendor error status to a classified error.

        Override in subclasses whose vendor uses non-standard status codes.
        """
        return classify_status(status_code, provider=self.name, detail=detail)

    def extract_error_detail(self, response: httpx.Response) -> Optional[str]:
        """Pull the vendor's error message out of an error response body."""
        try:
            body = response.json()
        except ValueError:
            text = response.text.strip()
            return text[:500] or None
        return _find_message(body)

    def _result(
        self,
        raw: Any,
        text: Optional[str],
        language: Optional[str],
        segments: Tuple[Segment, ...],
        confidence: Optional[float],
        processing_time_ms: int,
    ) -> TranscriptionResult:
        """Assemble a result, deriving duration and word count."""
        text = (text or "").strip()
        return TranscriptionResult(
            text=text,
            language=language or None,
            duration=segments[-1].end if segments else 0.0,
            segments=segments,
            word_count=count_words(text),
            confidence=clamp_confidence(confidence),
            processing_time_ms=max(int(processing_time_ms), 0),
            provider=self.name,
            model=self.model,
            raw=raw,
        )

    def _ensure_credentials(self) -> None:
        if not self.initialize():
            raise ConfigurationError(
                f"{self.name} provider not configured - {self.settings.api_key_env} missing",
                provider=self.name,
            )

    def _validate_file(self, path: Path) -> int:
        if not path.is_file():
            raise NotFoundError(f"Audio file not found: {path}", provider=self.name)

        if not self._capabilities.supports_format(path.suffix):
            raise UnsupportedFormatError(
                f"Unsupported format for {self.name}: {path.suffix or '(none)'}",
                provider=self.name,
            )

        file_size = path.stat().st_size
        limit = self._capabilities.max_file_size_bytes
        if file_size > limit:
            raise FileTooLargeError(
                f"File too large: {file_size / MB:.2f}MB (max {limit / MB:.0f}MB)",
                provider=self.name,
            )
        return file_size

    def _check_language(self, language: Optional[str]) -> None:
        if (
            language
            and self._capabilities.supported_languages
            and not self._capabilities.supports_language(language)
        ):
            self._log(
                "warning",
                "Requested language not advertised by provider",
                provider=self.name,
                language=language,
            )

    async def _send(self, path: Path, options: TranscriptionOptions) -> Dict[str, Any]:
        """Upload the audio and return the decoded JSON body."""
        upload = self.build_request(path, options)
        timeout = httpx.Timeout(self.settings.timeout_seconds, connect=30.0)
        headers = {**self.auth_headers(), **upload.get("headers", {})}
        extension = path.suffix.lower().lstrip(".")
        mime_type = AUDIO_MIME_TYPES.get(extension, "application/octet-stream")

        try:
            async with httpx.AsyncClient(
                base_url=self.settings.base_url,
                timeout=timeout,
                transport=self._transport,
            ) as client:
                # Multipart upload streams from the open handle
                with path.open("rb") as audio:
                    response = await asyncio.wait_for(
                        client.post(
                            upload["url"],
                            params=upload.get("params"),
                            headers=headers,
                            data=upload.get("data"),
                            files={upload["file_field"]: (path.name, audio, mime_type)},
                        ),
                        timeout=self.settings.timeout_seconds,
                    )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise TransportError(
                f"{self.name} request timed out after {self.settings.timeout_seconds:g}s",
                provider=self.name,
            ) from e
        except httpx.RequestError as e:
            raise TransportError(f"{self.name} network error: {e}", provider=self.name) from e
        except OSError as e:
            raise TransportError(f"Failed to read audio file: {e}", provider=self.name) from e

        if response.status_code >= 400:
            raise self.classify_status(response.status_code, self.extract_error_detail(response))

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f"{self.name} returned a non-JSON response (HTTP {response.status_code})",
                provider=self.name,
                status_code=response.status_code,
            ) from e

    @staticmethod
    def _elapsed_ms(started: float) -> int:
        return int(round((time.monotonic() - started) * 1000))

    @staticmethod
    def _log(level: str, event: str, **fields: Any) -> None:
        try:
            getattr(logger, level)(event, **fields)
        except Exception:  # noqa: BLE001
            # Log sink failures never change the outcome
            pass


def _find_message(body: Any) -> Optional[str]:
    """Find a human-readable message in common vendor error shapes."""
    if isinstance(body, str):
        return body or None
    if isinstance(body, list):
        messages = [m for m in (_find_message(item) for item in body) if m]
        return "; ".join(messages) or None
    if isinstance(body, dict):
        for key in ("detail", "message", "error", "msg"):
            if key in body:
                found = _find_message(body[key])
                if found:
                    return found
    return None
