"""Side-by-side provider comparison.

Runs every available provider on the same file concurrently and summarizes
how they differ (speed, confidence, word counts). Useful for evaluating
vendors on a given language before fixing the priority order.
"""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..errors import NoProviderAvailableError, TranscriptionError
from ..logging import get_logger
from .base import PathLike, TranscriptionOptions, TranscriptionProvider, TranscriptionResult
from .registry import ProviderRegistry

logger = get_logger(__name__)

PREVIEW_CHARS = 200
# Word counts deviating more than this fraction from the mean are outliers
OUTLIER_THRESHOLD = 0.5

CRITERIA = ("fastest", "confidence", "word_count")


@dataclass
class ProviderOutcome:
    """Result of one provider in a comparison run."""

    provider: str
    result: Optional[TranscriptionResult] = None
    error: Optional[TranscriptionError] = None

    @property
    def success(self) -> bool:
        return self.result is not None


@dataclass
class ComparisonRun:
    """Outcomes of running several providers on one file."""

    audio_path: str
    options: TranscriptionOptions
    total_processing_time_ms: int
    outcomes: Dict[str, ProviderOutcome] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now().astimezone().isoformat())

    @property
    def successful(self) -> List[TranscriptionResult]:
        return [o.result for o in self.outcomes.values() if o.result is not None]

    @property
    def failed(self) -> List[ProviderOutcome]:
        return [o for o in self.outcomes.values() if not o.success]


async def transcribe_with_all(
    registry: ProviderRegistry,
    audio_path: PathLike,
    options: Optional[TranscriptionOptions] = None,
) -> ComparisonRun:
    """Transcribe one file with every available provider in parallel.

    Individual provider failures are recorded, not raised.

    Raises:
        NoProviderAvailableError: If no provider has credentials
    """
    options = options or TranscriptionOptions()
    providers = registry.list_available()
    if not providers:
        raise NoProviderAvailableError(registry.names)

    logger.info(
        "Starting parallel transcription",
        audio=str(audio_path),
        providers=[p.name for p in providers],
    )
    started = time.monotonic()

    async def run_one(provider: TranscriptionProvider) -> ProviderOutcome:
        try:
            result = await provider.transcribe(audio_path, options)
        except TranscriptionError as e:
            return ProviderOutcome(provider=provider.name, error=e)
        return ProviderOutcome(provider=provider.name, result=result)

    outcomes = await asyncio.gather(*(run_one(p) for p in providers))
    run = ComparisonRun(
        audio_path=str(audio_path),
        options=options,
        total_processing_time_ms=int(round((time.monotonic() - started) * 1000)),
        outcomes={o.provider: o for o in outcomes},
    )

    logger.info(
        "Parallel transcription completed",
        audio=str(audio_path),
        total_time_ms=run.total_processing_time_ms,
        success_count=len(run.successful),
        fail_count=len(run.failed),
    )
    return run


def compare_results(run: ComparisonRun) -> Dict[str, Any]:
    """Summarize a comparison run.

    Returns:
        Dict with summary counts, fastest / slowest / highest-confidence
        providers, word count analysis and per-provider previews. When no
        provider succeeded, only ``error`` and ``failed`` are present.
    """
    successful = run.successful
    failed = [
        {"provider": o.provider, "error": str(o.error), "kind": o.error.kind.value}
        for o in run.failed
        if o.error is not None
    ]

    if not successful:
        return {"error": "No successful transcriptions to compare", "failed": failed}

    fastest = min(successful, key=lambda r: r.processing_time_ms)
    slowest = max(successful, key=lambda r: r.processing_time_ms)

    with_confidence = [r for r in successful if r.confidence is not None]
    highest_confidence = (
        max(with_confidence, key=lambda r: r.confidence or 0.0) if with_confidence else None
    )

    word_counts = sorted(
        (
            {"provider": r.provider, "length": len(r.text), "word_count": r.word_count}
            for r in successful
        ),
        key=lambda entry: entry["word_count"],
        reverse=True,
    )
    average = sum(r.word_count for r in successful) / len(successful)
    outliers = [
        entry
        for entry in word_counts
        if abs(entry["word_count"] - average) > average * OUTLIER_THRESHOLD
    ]

    return {
        "summary": {
            "total_providers": len(run.outcomes),
            "successful_providers": len(successful),
            "failed_providers": len(run.outcomes) - len(successful),
            "total_processing_time_ms": run.total_processing_time_ms,
        },
        "fastest": {"provider": fastest.provider, "time_ms": fastest.processing_time_ms},
        "slowest": {"provider": slowest.provider, "time_ms": slowest.processing_time_ms},
        "highest_confidence": (
            {"provider": highest_confidence.provider, "confidence": highest_confidence.confidence}
            if highest_confidence
            else None
        ),
        "text_analysis": {
            "average_word_count": round(average),
            "word_counts": word_counts,
            "outliers": outliers or None,
        },
        "transcriptions": [_preview(r) for r in successful],
        "failed": failed,
    }


def best_result(run: ComparisonRun, criteria: str = "confidence") -> Optional[TranscriptionResult]:
    """Pick the best successful result.

    Args:
        run: Comparison run
        criteria: "fastest", "confidence" (falls back to fastest when no
            provider reports confidence) or "word_count"

    Returns:
        The chosen result, or None if every provider failed

    Raises:
        ValueError: For an unknown criteria name
    """
    if criteria not in CRITERIA:
        raise ValueError(f"Unknown criteria: {criteria}. Choose from: {', '.join(CRITERIA)}")

    successful = run.successful
    if not successful:
        return None

    if criteria == "confidence":
        with_confidence = [r for r in successful if r.confidence is not None]
        if with_confidence:
            return max(with_confidence, key=lambda r: r.confidence or 0.0)
        criteria = "fastest"

    if criteria == "fastest":
        return min(successful, key=lambda r: r.processing_time_ms)
    return max(successful, key=lambda r: r.word_count)


def estimate_costs(registry: ProviderRegistry, audio_path: PathLike) -> Dict[str, Any]:
    """Advisory cost of transcribing one file with each available provider.

    Returns:
        Dict with ``by_provider`` (USD, or None when estimation failed) and ``total``
    """
    estimates: Dict[str, Optional[float]] = {}
    for provider in registry.list_available():
        try:
            estimates[provider.name] = provider.estimate_cost(audio_path)
        except (TranscriptionError, OSError) as e:
            logger.warning("Cost estimate failed", provider=provider.name, error=str(e))
            estimates[provider.name] = None

    total = sum(cost for cost in estimates.values() if cost is not None)
    return {"by_provider": estimates, "total": total}


def _preview(result: TranscriptionResult) -> Dict[str, Any]:
    preview = result.text[:PREVIEW_CHARS]
    if len(result.text) > PREVIEW_CHARS:
        preview += "..."
    return {
        "provider": result.provider,
        "model": result.model,
        "text_preview": preview,
        "word_count": result.word_count,
        "language": result.language,
        "duration": result.duration,
        "processing_time_ms": result.processing_time_ms,
        "confidence": result.confidence,
        "segment_count": len(result.segments),
    }
