"""
Custom Exceptions
=================

Unified exception hierarchy for consistent error handling across the studio.

Provider failures are split into four kinds (auth, rate limit, model
unavailable, generic) so callers can tell configuration problems apart from
transient ones.
"""

from typing import Optional, Dict, Any


class StudioError(Exception):
    """Base exception for all Creative Studio errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        self.recoverable = recoverable

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


class ConfigurationError(StudioError):
    """Configuration-related errors."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        expected_type: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key
        if expected_type:
            details["expected_type"] = expected_type
        super().__init__(message, details=details, **kwargs)


class ValidationError(StudioError):
    """Input/output validation errors."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        constraint: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)[:100]
        if constraint:
            details["constraint"] = constraint
        super().__init__(message, details=details, **kwargs)


class ProviderError(StudioError):
    """Provider/API-related errors. Wraps the vendor's own message."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if provider:
            details["provider"] = provider
        if status_code:
            details["status_code"] = status_code
        if response_body:
            # Truncate large responses
            details["response_body"] = response_body[:500] if len(response_body) > 500 else response_body

        self.provider = provider
        self.status_code = status_code

        recoverable = kwargs.pop("recoverable", status_code in (500, 502, 503, 504) if status_code else False)
        super().__init__(message, recoverable=recoverable, details=details, **kwargs)


class AuthError(ProviderError):
    """Missing or invalid credential. The user must fix configuration."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("status_code", 401)
        super().__init__(message, recoverable=False, **kwargs)


class RateLimitError(ProviderError):
    """Rate limit or quota exceeded."""

    def __init__(
        self,
        message: str,
        retry_after: Optional[int] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if retry_after:
            details["retry_after_seconds"] = retry_after
        self.retry_after = retry_after
        kwargs.setdefault("status_code", 429)
        super().__init__(message, recoverable=True, details=details, **kwargs)


class ModelUnavailableError(ProviderError):
    """The vendor does not expose the requested model to this account."""

    def __init__(self, message: str, model: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if model:
            details["model"] = model
        self.model = model
        kwargs.setdefault("status_code", 404)
        super().__init__(message, recoverable=False, details=details, **kwargs)


class UnsupportedCapabilityError(StudioError):
    """No provider can serve the requested capability for a model."""

    def __init__(
        self,
        message: str,
        model: Optional[str] = None,
        capability: Optional[str] = None,
        provider: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if model:
            details["model"] = model
        if capability:
            details["capability"] = capability
        if provider:
            details["provider"] = provider
        super().__init__(message, recoverable=False, details=details, **kwargs)


class GenerationError(StudioError):
    """A generation stage returned output that cannot be used."""

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        prompt: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if stage:
            details["stage"] = stage
        if prompt:
            # Truncate long prompts
            details["prompt"] = prompt[:200] if len(prompt) > 200 else prompt
        super().__init__(message, details=details, **kwargs)


class InsufficientKeyframesError(GenerationError):
    """Fewer than two usable keyframe prompts were returned."""

    def __init__(self, message: str, received: int = 0, **kwargs):
        details = kwargs.pop("details", {})
        details["received"] = received
        self.received = received
        super().__init__(message, stage="keyframes", details=details, **kwargs)


class InvalidProjectFileError(StudioError):
    """A serialized project failed import validation."""

    def __init__(self, message: str = "Invalid project file", reason: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if reason:
            details["reason"] = reason
        super().__init__(message, recoverable=False, details=details, **kwargs)


class TimeoutError(StudioError):
    """Operation timeout errors."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if operation:
            details["operation"] = operation
        if timeout_seconds:
            details["timeout_seconds"] = timeout_seconds
        super().__init__(message, recoverable=True, details=details, **kwargs)


def is_quota_error(error: BaseException) -> bool:
    """Whether an error means the provider throttled the request."""
    if isinstance(error, RateLimitError):
        return True
    text = str(error).lower()
    return "429" in text or "quota" in text
