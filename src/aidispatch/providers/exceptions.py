"""
Provider exceptions and failure classification for aidispatch.

Request-time failures are never raised; they are returned as failed
responses carrying a FailureType. The exception classes here cover
startup misconfiguration only.
"""

import json
from enum import Enum


class FailureType(Enum):
    """Classification of provider failures. Advisory metadata only."""

    AUTHENTICATION = "authentication"
    RATE_LIMIT = "rate_limit"
    SERVER_ERROR = "server_error"
    BAD_REQUEST = "bad_request"
    MALFORMED_RESPONSE = "malformed_response"
    TRANSPORT = "transport"
    NO_ELIGIBLE_PROVIDER = "no_eligible_provider"
    ALL_PROVIDERS_FAILED = "all_providers_failed"


class ProviderError(Exception):
    """Base exception for provider errors."""

    def __init__(self, message: str, provider: str | None = None):
        super().__init__(message)
        self.provider = provider


class ProviderConfigurationError(ProviderError):
    """Provider definitions cannot be turned into adapters."""

    pass


def classify_status(status_code: int) -> FailureType:
    """
    Classify a non-2xx HTTP status code.

    Args:
        status_code: The HTTP status returned by the provider.

    Returns:
        The failure type classification.
    """
    if status_code in (401, 403):
        return FailureType.AUTHENTICATION
    if status_code == 429:
        return FailureType.RATE_LIMIT
    if status_code >= 500:
        return FailureType.SERVER_ERROR
    return FailureType.BAD_REQUEST


def classify_exception(error: BaseException) -> FailureType:
    """
    Classify an exception raised while calling a provider.

    Body decoding problems count as malformed responses; anything else
    (timeouts, DNS, refused connections, TLS) is a transport failure.
    """
    if isinstance(error, (json.JSONDecodeError, UnicodeDecodeError)):
        return FailureType.MALFORMED_RESPONSE
    return FailureType.TRANSPORT


def format_http_error(provider: str, status_code: int, reason: str, body: str) -> str:
    """Build the error message for a non-2xx provider response. The body is kept whole."""
    return f"{provider} API error: {status_code} {reason} - {body}"


def invalid_format_message(provider: str) -> str:
    """Error message for a 2xx body that does not match the provider's shape."""
    return f"Invalid response format from {provider} API"


def exception_message(error: BaseException) -> str:
    """
    Exact message of an exception, unwrapped.

    Falls back to the class name when the exception carries no text,
    since a failed response always needs a non-empty error.
    """
    message = str(error)
    return message if message else type(error).__name__
