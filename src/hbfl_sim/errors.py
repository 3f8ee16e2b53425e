from __future__ import annotations


class HBFLError(Exception):
    """Base class for simulator errors."""


class ConfigurationError(HBFLError):
    """Required runtime configuration is missing or invalid."""


class ValidationError(HBFLError):
    """League or season data cannot be simulated as stored."""


class PersistenceError(HBFLError):
    """The store rejected a read, insert or patch, or could not be reached."""

    def __init__(
        self,
        message: str,
        *,
        method: str | None = None,
        path: str | None = None,
        status_code: int | None = None,
        body: str = "",
    ) -> None:
        super().__init__(message)
        self.method = method
        self.path = path
        self.status_code = status_code
        self.body = body
