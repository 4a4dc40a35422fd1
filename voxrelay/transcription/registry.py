"""Registry of configured transcription providers.

The registry is built once by the process entry point (``build_registry``)
and passed to consumers by reference. Credentials are re-checked on every
availability query, so refreshed secrets take effect without a rebuild.
"""

from typing import Dict, Iterable, List, Optional, Type

import httpx

from ..config import VoxrelayConfig, get_config
from ..errors import NoProviderAvailableError, UnknownProviderError
from ..logging import get_logger
from .azure_provider import AzureProvider
from .base import TranscriptionProvider
from .elevenlabs_provider import ElevenLabsProvider
from .google_provider import GoogleProvider
from .groq_provider import GroqProvider
from .sarvam_provider import SarvamProvider

logger = get_logger(__name__)

# Closed set of built-in provider variants
PROVIDER_CLASSES: Dict[str, Type[TranscriptionProvider]] = {
    "groq": GroqProvider,
    "elevenlabs": ElevenLabsProvider,
    "sarvam": SarvamProvider,
    "azure": AzureProvider,
    "google": GoogleProvider,
}


class ProviderRegistry:
    """Holds provider instances keyed by name, in a fixed priority order.

    Priority is the order providers were registered unless an explicit
    ``priority`` list is given.
    """

    def __init__(
        self,
        providers: Iterable[TranscriptionProvider] = (),
        priority: Optional[Iterable[str]] = None,
    ):
        self._providers: Dict[str, TranscriptionProvider] = {}
        self._priority: List[str] = []
        for provider in providers:
            self.register(provider)
        if priority is not None:
            self.set_priority(priority)

    def register(self, provider: TranscriptionProvider) -> None:
        """Add a provider at the lowest priority (replaces a same-named one in place)."""
        if not isinstance(provider, TranscriptionProvider):
            raise ValueError(f"Provider {provider!r} must inherit from TranscriptionProvider")

        if provider.name not in self._providers:
            self._priority.append(provider.name)
        self._providers[provider.name] = provider
        logger.debug("Registered transcription provider", provider=provider.name)

    def set_priority(self, priority: Iterable[str]) -> None:
        """Declare the fallback order.

        Registered providers missing from ``priority`` keep their relative
        order after the listed ones.

        Raises:
            UnknownProviderError: If a listed name is not registered
        """
        ordered: List[str] = []
        for name in priority:
            name = name.lower()
            if name not in self._providers:
                raise UnknownProviderError(name, self.names)
            if name not in ordered:
                ordered.append(name)
        ordered.extend(name for name in self._priority if name not in ordered)
        self._priority = ordered

    @property
    def names(self) -> List[str]:
        """Registered provider names in priority order."""
        return list(self._priority)

    @property
    def priority(self) -> List[str]:
        """Fallback order (same as ``names``)."""
        return self.names

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._providers

    def __len__(self) -> int:
        return len(self._providers)

    def get(self, name: str) -> TranscriptionProvider:
        """Look up a provider by name.

        Raises:
            UnknownProviderError: If no provider has that name
        """
        provider = self._providers.get(name.lower())
        if provider is None:
            raise UnknownProviderError(name, self.names)
        return provider

    def list_available(self) -> List[TranscriptionProvider]:
        """Providers whose credentials resolve, in priority order.

        Recomputed on every call.
        """
        available = [
            self._providers[name] for name in self._priority if self._providers[name].initialize()
        ]
        logger.debug(
            "Available transcription providers",
            available=[p.name for p in available],
            registered=self.names,
        )
        return available

    def select_default(self) -> TranscriptionProvider:
        """First available provider in priority order.

        Raises:
            NoProviderAvailableError: If no provider has credentials
        """
        for name in self._priority:
            provider = self._providers[name]
            if provider.initialize():
                return provider
        raise NoProviderAvailableError(self.names)


def build_registry(
    config: Optional[VoxrelayConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ProviderRegistry:
    """Construct the registry from configuration.

    Args:
        config: Configuration (defaults to the global config)
        transport: Optional httpx transport shared by every provider (tests)

    Returns:
        ProviderRegistry with every provider named in ``config.priority``

    Raises:
        UnknownProviderError: If the priority names an unknown provider
    """
    config = config or get_config()
    registry = ProviderRegistry()

    for name in config.priority:
        provider_class = PROVIDER_CLASSES.get(name)
        if provider_class is None:
            raise UnknownProviderError(name, list(PROVIDER_CLASSES))
        registry.register(provider_class(config.provider_settings(name), transport=transport))

    logger.info("Transcription registry ready", providers=registry.names)
    return registry
