from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from types import MappingProxyType
from typing import List, Mapping, Optional

from providers.signer import DEFAULT_EXPIRES_IN, MAX_EXPIRES_IN


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else str(v)


def _env_int(name: str, default: int) -> int:
    raw = _env(name, "")
    if not raw.strip():
        return default
    try:
        return int(raw)
    except Exception:
        return default


def _split_csv(value: str) -> List[str]:
    return [x.strip() for x in (value or "").split(",") if x.strip()]


# Every env var a storage provider may read. Only these are copied into the
# per-request snapshot handed to the provider registry.
STORAGE_ENV_PREFIXES = ("S3_", "R2_", "GCS_", "AZURE_")
STORAGE_ENV_EXTRA = ("GOOGLE_APPLICATION_CREDENTIALS",)


# ---------------------------------------------------------------------
# Settings models
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class SessionSettings:
    jwt_secret: str = field(repr=False)
    duration_seconds: int = 60 * 60 * 4


@dataclass(frozen=True)
class PresignSettings:
    """
    provider:
      - "" -> auto-detect per request from the storage env
      - s3 | minio | r2 | gcs | azure -> deployment default (request may override)
    """
    provider: str = ""
    default_expiry: int = DEFAULT_EXPIRES_IN
    max_batch: int = 100


@dataclass(frozen=True)
class CorsSettings:
    allowed_origins: List[str]


@dataclass(frozen=True)
class Settings:
    version: str
    log_level: str
    gitlab_hostname: str
    session: SessionSettings
    presign: PresignSettings
    cors: CorsSettings


# ---------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------

def _load_session_settings() -> SessionSettings:
    duration = _env_int("SESSION_DURATION_SECONDS", 60 * 60 * 4)
    if duration <= 0:
        duration = 60 * 60 * 4
    return SessionSettings(jwt_secret=_env("JWT_SECRET", ""), duration_seconds=duration)


def _load_presign_settings() -> PresignSettings:
    provider = (_env("STORAGE_PROVIDER", "") or "").strip().lower()

    default_expiry = _env_int("PRESIGN_DEFAULT_EXPIRY", DEFAULT_EXPIRES_IN)
    default_expiry = max(1, min(int(default_expiry), MAX_EXPIRES_IN))

    max_batch = _env_int("PRESIGN_MAX_BATCH", 100)
    max_batch = max(1, int(max_batch))

    return PresignSettings(provider=provider, default_expiry=default_expiry, max_batch=max_batch)


def _load_cors_settings() -> CorsSettings:
    raw = (_env("ALLOWED_ORIGINS", "") or "*").strip()
    if raw == "*":
        return CorsSettings(allowed_origins=["*"])
    return CorsSettings(allowed_origins=_split_csv(raw) or ["*"])


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        version=(_env("APP_VERSION", "") or "0.2.0").strip(),
        log_level=(_env("LOG_LEVEL", "") or "INFO").strip().upper(),
        gitlab_hostname=(_env("GITLAB_HOSTNAME", "") or "gitlab.com").strip(),
        session=_load_session_settings(),
        presign=_load_presign_settings(),
        cors=_load_cors_settings(),
    )


def storage_env(environ: Optional[Mapping[str, str]] = None) -> Mapping[str, str]:
    """
    Immutable snapshot of the storage-related environment.

    Taken fresh on every request (no caching of credential material); this is
    the configuration bundle the provider registry receives.
    """
    source = os.environ if environ is None else environ
    snapshot = {
        k: v
        for k, v in source.items()
        if k.startswith(STORAGE_ENV_PREFIXES) or k in STORAGE_ENV_EXTRA
    }
    return MappingProxyType(snapshot)
