from __future__ import annotations


class PresignError(Exception):
    """
    Base for every error the signing core raises.

    status_code is what the HTTP layer answers with; the message is safe to
    return to the caller (it never contains credential values).
    """
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(PresignError, RuntimeError):
    """Required provider configuration is missing or malformed. Not retryable."""
    status_code = 500


class ValidationError(PresignError, ValueError):
    """Caller-supplied request failed structural checks."""
    status_code = 400


class UpstreamSigningError(PresignError, RuntimeError):
    """A cryptographic primitive failed (key import, signing)."""
    status_code = 500
