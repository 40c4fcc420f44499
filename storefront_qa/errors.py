"""Exception hierarchy for the fixture toolkit."""

from __future__ import annotations


class StorefrontQAError(Exception):
    """Base class for all toolkit errors."""


class ConfigurationError(StorefrontQAError):
    """Missing environment configuration or an invalid manifest."""


class NotFoundError(ConfigurationError):
    """A well-known fixture is absent from its manifest."""


class AuthenticationError(StorefrontQAError):
    """The admin token request was rejected or could not be made."""


class ApiError(StorefrontQAError):
    """Non-2xx response from the admin REST API."""

    def __init__(self, status_code: int, message: str, path: str = "") -> None:
        self.status_code = status_code
        self.message = message
        self.path = path
        super().__init__(f"{status_code} {path}: {message}" if path else f"{status_code}: {message}")
