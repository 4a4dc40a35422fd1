"""Transcription router: provider selection and single-step fallback.

Explicit provider requests go straight to that provider and its errors are
surfaced unchanged. In auto mode the registry's priority order picks the
provider, and a remote failure earns exactly one retry on the next available
provider that accepts the file.
"""

import asyncio
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import httpx

from ..config import VoxrelayConfig, get_config
from ..errors import (
    AllProvidersFailedError,
    NoProviderAvailableError,
    TranscriptionError,
    VoxrelayError,
)
from ..logging import get_logger
from ..notifications import ConsoleChannel, NotificationDispatcher, NotificationLevel
from .base import PathLike, TranscriptionOptions, TranscriptionProvider, TranscriptionResult
from .registry import ProviderRegistry, build_registry

logger = get_logger(__name__)

AUTO = "auto"


class TranscriptionRouter:
    """Routes transcription requests to providers from a registry.

    Attributes:
        registry: Provider registry (read-only from the router's side)
        notifier: Optional dispatcher told about terminal failures
        notify_channels: Channels to notify (None = all registered)
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        notifier: Optional[NotificationDispatcher] = None,
        notify_channels: Optional[List[str]] = None,
    ):
        self.registry = registry
        self.notifier = notifier
        self.notify_channels = notify_channels

    async def transcribe(
        self,
        audio_path: PathLike,
        options: Optional[TranscriptionOptions] = None,
        provider: Optional[str] = None,
    ) -> TranscriptionResult:
        """Transcribe an audio file.

        Args:
            audio_path: Path to audio file
            options: Transcription options
            provider: Provider name, or None / "auto" for priority-based selection

        Returns:
            The provider's TranscriptionResult, unmodified

        Raises:
            UnknownProviderError: Explicit provider not registered
            NoProviderAvailableError: Auto mode with no credentialed provider
            TranscriptionError: Explicit provider failed, or auto mode hit a
                local input error or had no fallback candidate
            AllProvidersFailedError: Auto mode primary and fallback both failed
        """
        options = options or TranscriptionOptions()

        if provider and provider.lower() != AUTO:
            return await self._transcribe_explicit(audio_path, options, provider)
        return await self._transcribe_auto(audio_path, options)

    async def transcribe_many(
        self,
        audio_paths: Sequence[PathLike],
        options: Optional[TranscriptionOptions] = None,
        provider: Optional[str] = None,
        max_concurrency: int = 4,
    ) -> List[Union[TranscriptionResult, VoxrelayError]]:
        """Transcribe several files concurrently.

        Each file is routed independently. Failures are returned in place of
        results rather than raised, so one bad file doesn't abort the batch.

        Returns:
            One entry per input path, in input order
        """
        semaphore = asyncio.Semaphore(max(1, max_concurrency))

        async def run_one(path: PathLike) -> Union[TranscriptionResult, VoxrelayError]:
            async with semaphore:
                try:
                    return await self.transcribe(path, options, provider=provider)
                except VoxrelayError as e:
                    return e

        results = await asyncio.gather(*(run_one(path) for path in audio_paths))

        logger.info(
            "Batch transcription completed",
            total=len(results),
            successful=sum(1 for r in results if isinstance(r, TranscriptionResult)),
        )
        return list(results)

    async def _transcribe_explicit(
        self,
        audio_path: PathLike,
        options: TranscriptionOptions,
        provider_name: str,
    ) -> TranscriptionResult:
        chosen = self.registry.get(provider_name)
        logger.info(
            "Routing transcription", mode="explicit", provider=chosen.name, audio=str(audio_path)
        )

        try:
            return await chosen.transcribe(audio_path, options)
        except TranscriptionError as e:
            await self._report_failure(audio_path, [(chosen.name, e)])
            raise

    async def _transcribe_auto(
        self,
        audio_path: PathLike,
        options: TranscriptionOptions,
    ) -> TranscriptionResult:
        try:
            primary = self.registry.select_default()
        except NoProviderAvailableError as e:
            logger.error("No transcription provider available", audio=str(audio_path))
            await self._notify(f"Transcription failed: {e}", {"audio": str(audio_path)})
            raise

        logger.info(
            "Routing transcription", mode="auto", provider=primary.name, audio=str(audio_path)
        )

        attempts: List[Tuple[str, TranscriptionError]] = []
        try:
            return await primary.transcribe(audio_path, options)
        except TranscriptionError as e:
            attempts.append((primary.name, e))
            fallback = self._fallback_for(primary, e, audio_path)
            if fallback is None:
                await self._report_failure(audio_path, attempts)
                raise

        logger.warning(
            "Falling back to next provider",
            failed_provider=primary.name,
            error_kind=attempts[0][1].kind.value,
            fallback_provider=fallback.name,
            audio=str(audio_path),
        )

        try:
            return await fallback.transcribe(audio_path, options)
        except TranscriptionError as e:
            attempts.append((fallback.name, e))
            error = AllProvidersFailedError(attempts)
            logger.error(
                "All transcription attempts failed",
                audio=str(audio_path),
                attempts=[(name, err.kind.value) for name, err in attempts],
            )
            await self._report_failure(audio_path, attempts)
            raise error from e

    def _fallback_for(
        self,
        primary: TranscriptionProvider,
        error: TranscriptionError,
        audio_path: PathLike,
    ) -> Optional[TranscriptionProvider]:
        """Pick the next provider to try, or None if the error is not retryable."""
        if not error.retryable:
            logger.info(
                "Not retrying: request is invalid for every provider",
                provider=primary.name,
                error_kind=error.kind.value,
            )
            return None

        for candidate in self.registry.list_available():
            if candidate.name == primary.name:
                continue
            if candidate.supports(audio_path):
                return candidate
            logger.debug(
                "Skipping fallback candidate that rejects the file",
                provider=candidate.name,
                audio=str(audio_path),
            )

        logger.warning("No fallback provider available", failed_provider=primary.name)
        return None

    async def _report_failure(
        self,
        audio_path: PathLike,
        attempts: List[Tuple[str, TranscriptionError]],
    ) -> None:
        metadata = {
            "audio": Path(audio_path).name,
            "providers": ", ".join(name for name, _ in attempts),
            "errors": "; ".join(f"{name}: {err.kind.value}" for name, err in attempts),
        }
        status_codes = [err.status_code for _, err in attempts if err.status_code is not None]
        if status_codes:
            metadata["status_codes"] = ", ".join(str(code) for code in status_codes)

        await self._notify(f"Transcription failed for {Path(audio_path).name}", metadata)

    async def _notify(self, message: str, metadata: dict) -> None:
        if self.notifier is None:
            return
        try:
            await self.notifier.notify(
                message,
                metadata=metadata,
                level=NotificationLevel.ERROR,
                channels=self.notify_channels,
            )
        except Exception as e:  # noqa: BLE001
            # Notification failures never replace the transcription error
            logger.error("Failure notification could not be sent", error=str(e))


def build_router(
    config: Optional[VoxrelayConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> TranscriptionRouter:
    """Create a router over the configured registry.

    When ``notify_on_failure`` is enabled, terminal failures are also
    reported on the console channel.
    """
    config = config or get_config()
    notifier = None
    if config.notify_on_failure:
        notifier = NotificationDispatcher([ConsoleChannel()])
    return TranscriptionRouter(build_registry(config, transport=transport), notifier=notifier)
