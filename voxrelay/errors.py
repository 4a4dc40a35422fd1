#!/usr/bin/env python3
"""
Error taxonomy for voxrelay.

Every failure a caller can see is one of these classes. Provider code maps
vendor HTTP statuses and httpx exceptions onto them at the provider boundary,
so nothing vendor-specific leaks past a provider.
"""

from enum import Enum
from typing import List, Optional, Sequence, Tuple


class ErrorKind(str, Enum):
    """Stable identifiers for classified transcription failures."""

    CONFIGURATION = "configuration"
    NOT_FOUND = "not_found"
    UNSUPPORTED_FORMAT = "unsupported_format"
    FILE_TOO_LARGE = "file_too_large"
    AUTHENTICATION = "authentication"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    RATE_LIMITED = "rate_limited"
    REMOTE_REQUEST = "remote_request"
    TRANSPORT = "transport"
    UNKNOWN_PROVIDER = "unknown_provider"
    NO_PROVIDER_AVAILABLE = "no_provider_available"
    ALL_PROVIDERS_FAILED = "all_providers_failed"


class VoxrelayError(Exception):
    """Base exception for voxrelay-specific errors."""

    kind: ErrorKind = ErrorKind.TRANSPORT


class TranscriptionError(VoxrelayError):
    """Raised when a provider cannot produce a transcription.

    Attributes:
        message: Human-readable error message
        provider: Name of the provider that failed (if known)
        status_code: HTTP status returned by the vendor (if any)
        retryable: Whether another provider might succeed with the same input
    """

    retryable: bool = False

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.status_code = status_code


# Local / input validation errors. The request itself is invalid.


class ConfigurationError(TranscriptionError):
    """Provider credentials are missing and could not be resolved."""

    kind = ErrorKind.CONFIGURATION


class NotFoundError(TranscriptionError):
    """Audio path does not reference an existing file."""

    kind = ErrorKind.NOT_FOUND


class UnsupportedFormatError(TranscriptionError):
    """File extension is not in the provider's supported formats."""

    kind = ErrorKind.UNSUPPORTED_FORMAT


class FileTooLargeError(TranscriptionError):
    """File exceeds the provider's local size limit."""

    kind = ErrorKind.FILE_TOO_LARGE


# Remote errors. The provider is unhealthy or rejected the request.


class AuthenticationError(TranscriptionError):
    """Vendor rejected the credential (HTTP 401/403)."""

    kind = ErrorKind.AUTHENTICATION
    retryable = True


class PayloadTooLargeError(TranscriptionError):
    """Vendor rejected the upload as oversized (HTTP 413)."""

    kind = ErrorKind.PAYLOAD_TOO_LARGE
    retryable = True


class RateLimitedError(TranscriptionError):
    """Vendor is throttling requests (HTTP 429)."""

    kind = ErrorKind.RATE_LIMITED
    retryable = True


class RemoteRequestError(TranscriptionError):
    """Vendor rejected the request (HTTP 400 and other 4xx).

    Attributes:
        detail: Vendor-supplied detail message, when the body carried one
    """

    kind = ErrorKind.REMOTE_REQUEST
    retryable = True

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        detail: Optional[str] = None,
    ):
        super().__init__(message, provider=provider, status_code=status_code)
        self.detail = detail


class TransportError(TranscriptionError):
    """Network failure, timeout, server error or otherwise unclassified failure."""

    kind = ErrorKind.TRANSPORT
    retryable = True


# Registry / routing errors


class RegistryError(VoxrelayError):
    """Base class for provider lookup failures."""

    pass


class UnknownProviderError(RegistryError):
    """Requested provider name is not registered."""

    kind = ErrorKind.UNKNOWN_PROVIDER

    def __init__(self, name: str, known: Sequence[str] = ()):
        available = ", ".join(known) if known else "none"
        super().__init__(f"Unknown transcription provider: {name}. Available: {available}")
        self.name = name
        self.known = list(known)


class NoProviderAvailableError(RegistryError):
    """No registered provider has credentials configured."""

    kind = ErrorKind.NO_PROVIDER_AVAILABLE

    def __init__(self, checked: Sequence[str] = ()):
        checked_str = ", ".join(checked) if checked else "none registered"
        super().__init__(
            f"No transcription provider available (checked: {checked_str}). "
            "Set at least one provider API key."
        )
        self.checked = list(checked)


class AllProvidersFailedError(VoxrelayError):
    """Every provider attempted in auto mode failed.

    Attributes:
        attempts: (provider name, error) pairs in the order they were tried
    """

    kind = ErrorKind.ALL_PROVIDERS_FAILED

    def __init__(self, attempts: List[Tuple[str, TranscriptionError]]):
        self.attempts = list(attempts)
        summary = "; ".join(f"{name}: {err.kind.value} ({err})" for name, err in self.attempts)
        super().__init__(f"All transcription providers failed: {summary}")

    @property
    def providers(self) -> List[str]:
        """Names of every provider tried."""
        return [name for name, _ in self.attempts]


class NotificationError(VoxrelayError):
    """Raised by a notification channel when delivery fails."""

    pass


def classify_status(
    status_code: int,
    provider: Optional[str] = None,
    detail: Optional[str] = None,
) -> TranscriptionError:
    """Map an HTTP error status to a classified transcription error.

    Args:
        status_code: HTTP status returned by the vendor
        provider: Provider name for the error message
        detail: Vendor detail message extracted from the response body

    Returns:
        A TranscriptionError subclass instance (not raised)
    """
    label = provider or "provider"
    suffix = f": {detail}" if detail else ""

    if status_code in (401, 403):
        return AuthenticationError(
            f"{label} rejected the API key (HTTP {status_code}){suffix}",
            provider=provider,
            status_code=status_code,
        )
    if status_code == 413:
        return PayloadTooLargeError(
            f"Audio file too large for {label} API{suffix}",
            provider=provider,
            status_code=status_code,
        )
    if status_code == 429:
        return RateLimitedError(
            f"{label} API rate limit exceeded{suffix}",
            provider=provider,
            status_code=status_code,
        )
    if 400 <= status_code < 500:
        return RemoteRequestError(
            f"{label} API error (HTTP {status_code}){suffix}",
            provider=provider,
            status_code=status_code,
            detail=detail,
        )
    return TransportError(
        f"{label} API failed (HTTP {status_code}){suffix}",
        provider=provider,
        status_code=status_code,
    )
