"""Exception classes for the AI provider layer.

Every error raised by this package derives from ``AISDKError``. Vendor SDK
exceptions (``openai.APIError``, ``anthropic.APIError``) and transport errors
(``httpx.TimeoutException``, ``httpx.ConnectError``) are never converted and
reach the caller unchanged; ``APIError`` and its subclasses are only raised by
the REST model clients when a vendor answers with a non-2xx status.
"""

from __future__ import annotations

from typing import Any


class AISDKError(Exception):
    """Base exception for the AI provider layer.

    Attributes:
        message: Human-readable error message.
        code: Stable machine-readable error code.
        provider: Provider id the error relates to, if any.
        cause: Underlying exception, if any.
        data: Additional context about the error.

    Example:
        raise AISDKError(
            "Model request failed",
            code="REQUEST_FAILED",
            provider="openai",
            data={"model": "gpt-4o"},
        )
    """

    def __init__(
        self,
        message: str,
        code: str = "AI_SDK_ERROR",
        provider: str | None = None,
        cause: BaseException | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            message: Human-readable error message.
            code: Machine-readable error code.
            provider: Provider id the error relates to.
            cause: Underlying exception.
            data: Additional context about the error.
        """
        self.message = message
        self.code = code
        self.provider = provider
        self.cause = cause
        self.data = data or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error for logging or API responses."""
        return {
            "name": type(self).__name__,
            "message": self.message,
            "code": self.code,
            "provider": self.provider,
            "data": self.data,
            "cause": str(self.cause) if self.cause else None,
        }


class ProviderCapabilityError(AISDKError):
    """Raised when a provider is asked for a capability it does not offer."""

    def __init__(self, provider: str, capability: str) -> None:
        self.capability = capability
        super().__init__(
            f"Provider '{provider}' does not support '{capability}' capability",
            code="PROVIDER_CAPABILITY_NOT_SUPPORTED",
            provider=provider,
            data={"capability": capability},
        )


class ProviderNotFoundError(AISDKError):
    """Raised when a provider id is required to be registered and is not."""

    def __init__(self, provider: str) -> None:
        super().__init__(
            f"Provider '{provider}' not found",
            code="PROVIDER_NOT_FOUND",
            provider=provider,
        )


class ModelNotFoundError(AISDKError):
    """Raised when a provider does not know a model id."""

    def __init__(self, provider: str, model_id: str) -> None:
        self.model_id = model_id
        super().__init__(
            f"Model '{model_id}' not found for provider '{provider}'",
            code="MODEL_NOT_FOUND",
            provider=provider,
            data={"model_id": model_id},
        )


class APIError(AISDKError):
    """Raised when a vendor REST endpoint answers with a non-2xx status.

    Attributes:
        status_code: HTTP status code returned by the vendor.
        response_body: Raw response body, kept for diagnostics.
    """

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        status_code: int | None = None,
        response_body: str | None = None,
        cause: BaseException | None = None,
        code: str = "API_ERROR",
    ) -> None:
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(
            message,
            code=code,
            provider=provider,
            cause=cause,
            data={"status_code": status_code, "response_body": response_body},
        )


class AuthenticationError(APIError):
    """Raised on 401/403 responses."""

    def __init__(
        self,
        provider: str | None = None,
        status_code: int = 401,
        response_body: str | None = None,
    ) -> None:
        super().__init__(
            f"Authentication failed for provider '{provider}'",
            provider=provider,
            status_code=status_code,
            response_body=response_body,
            code="AUTHENTICATION_ERROR",
        )


class RateLimitError(APIError):
    """Raised on 429 responses.

    Attributes:
        retry_after: Seconds the vendor asked to wait, when it said so.
    """

    def __init__(
        self,
        provider: str | None = None,
        retry_after: float | None = None,
        response_body: str | None = None,
    ) -> None:
        self.retry_after = retry_after
        message = f"Rate limit exceeded for provider '{provider}'"
        if retry_after is not None:
            message += f", retry after {retry_after}s"
        super().__init__(
            message,
            provider=provider,
            status_code=429,
            response_body=response_body,
            code="RATE_LIMIT_ERROR",
        )
        self.data["retry_after"] = retry_after


class ConfigurationError(AISDKError):
    """Raised when provider settings cannot produce a working client."""

    def __init__(self, message: str, provider: str | None = None) -> None:
        super().__init__(message, code="CONFIGURATION_ERROR", provider=provider)


def is_ai_sdk_error(error: object) -> bool:
    """Return True if ``error`` belongs to this package's error taxonomy."""
    return isinstance(error, AISDKError)


def is_provider_capability_error(error: object) -> bool:
    return isinstance(error, ProviderCapabilityError)


def is_api_error(error: object) -> bool:
    return isinstance(error, APIError)


def is_authentication_error(error: object) -> bool:
    return isinstance(error, AuthenticationError)


def is_rate_limit_error(error: object) -> bool:
    return isinstance(error, RateLimitError)


def is_configuration_error(error: object) -> bool:
    return isinstance(error, ConfigurationError)
