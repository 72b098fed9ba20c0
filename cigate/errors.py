"""Error types shared by adapters, gate logic and startup.

Upstream errors carry a reason code so callers can branch on what went
wrong (e.g. "label not found") without parsing messages.
"""

from enum import StrEnum


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""

    pass


class ErrorReason(StrEnum):
    """Why an upstream API call failed."""

    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNPROCESSABLE = "unprocessable"
    UNAUTHORIZED = "unauthorized"
    NETWORK = "network"
    OTHER = "other"


def reason_from_status(status_code: int | None) -> ErrorReason:
    """Map an HTTP status code to an ErrorReason."""
    if status_code is None:
        return ErrorReason.NETWORK
    if status_code == 404:
        return ErrorReason.NOT_FOUND
    if status_code in (405, 409):
        return ErrorReason.CONFLICT
    if status_code == 422:
        return ErrorReason.UNPROCESSABLE
    if status_code in (401, 403):
        return ErrorReason.UNAUTHORIZED
    return ErrorReason.OTHER


class UpstreamError(Exception):
    """Raised when a source-host or CI backend API call fails."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        reason: ErrorReason | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason if reason is not None else reason_from_status(status_code)

    @property
    def is_not_found(self) -> bool:
        return self.reason == ErrorReason.NOT_FOUND


class GitPlatformError(UpstreamError):
    """Raised when a Git platform (GitHub) API call fails."""

    pass


class BuildkiteError(UpstreamError):
    """Raised when a Buildkite API call fails."""

    pass
