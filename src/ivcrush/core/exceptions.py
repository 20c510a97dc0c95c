"""Custom exceptions for ivcrush."""


class IVCrushError(Exception):
    """Base exception for all ivcrush errors."""

    def __init__(self, message: str, *args: object) -> None:
        self.message = message
        super().__init__(message, *args)


# Provider errors
class ProviderError(IVCrushError):
    """Base error for a failed call to a third-party data provider."""

    def __init__(self, provider: str, message: str, status_code: int | None = None) -> None:
        self.provider = provider
        self.status_code = status_code
        super().__init__(f"{provider}: {message}")

    @property
    def error_type(self) -> str:
        return type(self).__name__


class ProviderAuthError(ProviderError):
    """Credentials rejected (401/403). Not retryable."""


class ProviderRateLimited(ProviderError):
    """Provider quota exhausted (429 or quota notice in body)."""


class ProviderUnavailable(ProviderError):
    """Provider unreachable, timed out, or returned a server error."""


class ProviderMalformed(ProviderError):
    """Response body could not be parsed or lacked expected fields."""
