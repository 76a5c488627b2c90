from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from core.settings import PresignSettings
from providers.errors import ValidationError
from providers.factory import get_signer
from providers.signer import MAX_EXPIRES_IN, OPERATIONS, Clock, Signer, SigningRequest

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------
# Request validation (runs before any provider is touched)
# ---------------------------------------------------------------------

def is_safe_path(path: Any) -> bool:
    """
    Object paths are relative to the bucket: a non-empty string, no leading
    slash and no `..` segment.
    """
    if not isinstance(path, str) or not path:
        return False
    if path.startswith("/"):
        return False
    segments = path.replace("\\", "/").split("/")
    return ".." not in segments


def validate_operation(operation: Optional[str]) -> str:
    op = (operation or "").strip().upper()
    if op not in OPERATIONS:
        raise ValidationError("Invalid operation. Must be GET, PUT, or DELETE")
    return op


def resolve_expiry(requested: Optional[int], settings: PresignSettings) -> int:
    if requested is None:
        return settings.default_expiry
    return max(1, min(int(requested), MAX_EXPIRES_IN))


def resolve_provider(requested: Optional[str], settings: PresignSettings) -> Optional[str]:
    # request > deployment default > auto-detect (None)
    return (requested or "").strip() or settings.provider or None


# ---------------------------------------------------------------------
# Signing
# ---------------------------------------------------------------------

def presign_one(
    *,
    operation: Optional[str],
    path: Any,
    env: Mapping[str, str],
    settings: PresignSettings,
    content_type: Optional[str] = None,
    provider: Optional[str] = None,
    bucket: Optional[str] = None,
    expires_in: Optional[int] = None,
    clock: Optional[Clock] = None,
) -> Dict[str, Any]:
    if not operation or not path:
        raise ValidationError("Missing required fields: operation, path")

    op = validate_operation(operation)
    if not is_safe_path(path):
        raise ValidationError("Invalid path")

    expiry = resolve_expiry(expires_in, settings)
    signer = get_signer(resolve_provider(provider, settings), env, clock=clock)

    url = signer.sign(
        SigningRequest(
            operation=op,
            path=path,
            content_type=content_type or None,
            bucket=bucket or None,
            expires_in=expiry,
        )
    )
    log.info("Presigned provider=%s operation=%s path=%s", signer.provider_name, op, path)
    return {"url": url, "expiresIn": expiry, "path": path, "operation": op}


def sign_batch(
    signer: Signer,
    paths: List[str],
    *,
    operation: str,
    bucket: Optional[str],
    expires_in: int,
) -> Dict[str, str]:
    """
    Sign paths one after another through a single Signer.

    Sequential on purpose: providers rate-limit per credential. The first
    failure propagates and the partial map is discarded.
    """
    urls: Dict[str, str] = {}
    for path in paths:
        urls[path] = signer.sign(
            SigningRequest(
                operation=operation,
                path=path,
                bucket=bucket,
                expires_in=expires_in,
            )
        )
    return urls


def presign_many(
    *,
    paths: Any,
    env: Mapping[str, str],
    settings: PresignSettings,
    operation: Optional[str] = "GET",
    provider: Optional[str] = None,
    bucket: Optional[str] = None,
    expires_in: Optional[int] = None,
    clock: Optional[Clock] = None,
) -> Dict[str, Any]:
    if not isinstance(paths, list) or not paths:
        raise ValidationError("paths must be a non-empty array")

    if len(paths) > settings.max_batch:
        raise ValidationError(f"Batch size exceeds maximum of {settings.max_batch}")

    for p in paths:
        if not is_safe_path(p):
            raise ValidationError(f"Invalid path: {p}")

    op = validate_operation(operation or "GET")
    expiry = resolve_expiry(expires_in, settings)
    signer = get_signer(resolve_provider(provider, settings), env, clock=clock)

    urls = sign_batch(signer, paths, operation=op, bucket=bucket or None, expires_in=expiry)
    log.info("Presigned batch provider=%s operation=%s count=%s", signer.provider_name, op, len(paths))
    return {"urls": urls, "expiresIn": expiry, "count": len(paths)}
