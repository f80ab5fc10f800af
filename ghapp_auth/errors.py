"""Exception types for the app credential exchange. None of these are retried."""


class AppAuthError(Exception):
    """Base class for all errors raised by ghapp_auth."""


class ConfigurationError(AppAuthError):
    """App id or private key missing, empty or unreadable. Raised before any network call."""


class SigningError(AppAuthError):
    """Private key could not be used to sign an RS256 assertion."""


class AssertionExpiredError(AppAuthError):
    """Assertion presented after its expires_at; build a fresh one."""

    def __init__(self, message: str, expires_at: int):
        super().__init__(message)
        self.expires_at = expires_at


class ApiError(AppAuthError):
    """Non-2xx answer (or transport failure) from the GitHub API."""

    def __init__(self, message: str, status_code: int | None = None, path: str | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.path = path

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"HTTP {self.status_code}: {self.message}"


class ResolutionError(ApiError):
    """Installation target could not be resolved (not found, or assertion rejected)."""


class TokenIssuanceError(ApiError):
    """GitHub refused to issue an installation access token."""
