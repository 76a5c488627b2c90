from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol, runtime_checkable

DEFAULT_EXPIRES_IN = 900  # 15 minutes
MAX_EXPIRES_IN = 604800  # 7 days, SigV4 / GOOG4 upper bound

OPERATIONS = ("GET", "PUT", "DELETE")

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SigningRequest:
    """
    Normalized, already-validated input for a Signer.

    path is relative to the bucket/container (no leading slash, no `..`
    segments); presign.service enforces that before a Signer is built.
    """
    operation: str
    path: str
    content_type: Optional[str] = None
    bucket: Optional[str] = None
    expires_in: int = DEFAULT_EXPIRES_IN


@runtime_checkable
class Signer(Protocol):
    """
    URL signing capability.

    One implementation per storage provider; each closes over exactly one
    provider config and is discarded after the request.
    """

    @property
    def provider_name(self) -> str: ...

    def sign(self, req: SigningRequest) -> str: ...


def clean_path(path: str) -> str:
    path = path or ""
    return path[1:] if path.startswith("/") else path


def http_method(operation: str) -> str:
    # Anything that is not PUT/DELETE signs as a read.
    op = (operation or "").upper()
    if op in ("PUT", "DELETE"):
        return op
    return "GET"
