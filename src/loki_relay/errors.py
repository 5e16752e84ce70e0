from __future__ import annotations


class RelayError(Exception):
    """Base error; ``status_code`` is the HTTP status returned to the caller."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(RelayError):
    status_code = 400


class ConfigurationError(RelayError):
    status_code = 500


class UpstreamError(RelayError):
    status_code = 500


class MethodNotAllowed(RelayError):
    status_code = 405
