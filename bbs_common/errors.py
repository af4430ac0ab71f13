"""Exceptions raised while resolving and delivering build statuses."""

from __future__ import annotations


class BuildStatusError(Exception):
    """Base exception for build status notification failures."""


class UnsupportedSourceControl(BuildStatusError):
    """Raised when a build has no source control or an unsupported one."""


class CredentialsMissing(BuildStatusError):
    """Raised when no credentials could be resolved for a request."""


class RepositoryIdentityError(BuildStatusError):
    """Raised when owner or repository slug cannot be read from a URL."""


class ConfigurationError(BuildStatusError):
    """Raised when required configuration is missing or malformed."""


class StatusDeliveryError(BuildStatusError):
    """Raised when the remote server could not be reached or rejected a status."""

    def __init__(
        self, message: str, status_code: int | None = None, body: str | None = None
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
