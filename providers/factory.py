from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from providers.impl.signer_azure import AzureSigner
from providers.impl.signer_gcs import GCSSigner
from providers.impl.signer_r2 import R2Signer
from providers.impl.signer_s3 import S3Signer
from providers.settings import StorageEnv
from providers.signer import Clock, Signer

log = logging.getLogger(__name__)

SUPPORTED_PROVIDERS: Tuple[str, ...] = ("s3", "r2", "gcs", "azure", "minio")

# Static required-key table; validate_provider_config never looks further.
REQUIRED_KEYS: Dict[str, List[str]] = {
    "s3": ["S3_ACCESS_KEY_ID", "S3_SECRET_ACCESS_KEY", "S3_BUCKET"],
    "minio": ["S3_ACCESS_KEY_ID", "S3_SECRET_ACCESS_KEY", "S3_BUCKET", "S3_ENDPOINT"],
    "r2": ["R2_ACCESS_KEY_ID", "R2_SECRET_ACCESS_KEY", "R2_ACCOUNT_ID", "R2_BUCKET"],
    "gcs": ["GCS_PROJECT_ID", "GCS_BUCKET", "GCS_SERVICE_ACCOUNT_KEY"],
    "azure": ["AZURE_STORAGE_ACCOUNT", "AZURE_STORAGE_KEY", "AZURE_CONTAINER"],
}

_BUILDERS: Dict[str, Callable[..., Signer]] = {
    "s3": S3Signer.from_env,
    "minio": S3Signer.from_env,  # same algorithm, path-style endpoint in config
    "r2": R2Signer.from_env,
    "gcs": GCSSigner.from_env,
    "azure": AzureSigner.from_env,
}


@dataclass(frozen=True)
class ConfigValidation:
    provider: str
    valid: bool
    missing: List[str] = field(default_factory=list)


def _has(env: StorageEnv, name: str) -> bool:
    return bool((env.get(name) or "").strip())


def normalize_provider(raw: Optional[str]) -> str:
    return (raw or "").strip().lower()


def detect_provider(env: StorageEnv) -> str:
    """
    Auto-detect the storage provider from which keys are present.

    Order matters when several providers are configured; first match wins:
      1) R2 markers
      2) GCS markers
      3) Azure markers
      4) a non-AWS S3_ENDPOINT (self-hosted, MinIO-style)
      5) default s3
    """
    if _has(env, "R2_ACCOUNT_ID") or _has(env, "R2_ACCESS_KEY_ID"):
        return "r2"

    if _has(env, "GCS_PROJECT_ID") or _has(env, "GOOGLE_APPLICATION_CREDENTIALS"):
        return "gcs"

    if _has(env, "AZURE_STORAGE_ACCOUNT") or _has(env, "AZURE_STORAGE_CONNECTION_STRING"):
        return "azure"

    endpoint = (env.get("S3_ENDPOINT") or "").strip()
    if endpoint and "amazonaws.com" not in endpoint:
        return "minio"

    return "s3"


def get_signer(provider: Optional[str], env: StorageEnv, clock: Optional[Clock] = None) -> Signer:
    """
    Resolve a ready-to-use Signer.

    An explicit provider is dispatched directly; anything unrecognized falls
    back to the S3-compatible signer. Raises ConfigurationError when the
    chosen provider's keys are missing.
    """
    explicit = normalize_provider(provider)
    resolved = explicit or detect_provider(env)
    builder = _BUILDERS.get(resolved, S3Signer.from_env)

    log.debug("Resolved storage provider=%s (explicit=%s)", resolved, bool(explicit))
    return builder(env, clock=clock)


def validate_provider_config(provider: Optional[str], env: StorageEnv) -> ConfigValidation:
    """
    Report which required keys are missing for a provider. Pure; no I/O.
    """
    name = normalize_provider(provider)
    required = REQUIRED_KEYS.get(name, REQUIRED_KEYS["s3"])
    missing = [k for k in required if not _has(env, k)]
    return ConfigValidation(provider=name or "s3", valid=not missing, missing=missing)
