from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Mapping

from providers.errors import ConfigurationError

StorageEnv = Mapping[str, str]

DEFAULT_S3_ENDPOINT = "https://s3.amazonaws.com"
DEFAULT_S3_REGION = "us-east-1"


def _get(env: StorageEnv, name: str, default: str = "") -> str:
    v = env.get(name)
    return default if v is None else str(v)


def _require(env: StorageEnv, *names: str) -> None:
    missing = [n for n in names if not _get(env, n).strip()]
    if not missing:
        return
    if len(missing) == 1:
        raise ConfigurationError(f"{missing[0]} is required")
    raise ConfigurationError(f"{' and '.join(missing)} are required")


# ---------------------------------------------------------------------
# Per-provider configs
#
# Secrets are excluded from repr so a config never ends up in a log line
# or traceback by accident.
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class S3Config:
    """
    S3 and S3-compatible stores (AWS, MinIO, Spaces, Wasabi, B2 ...).

    Env:
      - S3_ACCESS_KEY_ID / S3_SECRET_ACCESS_KEY (required)
      - S3_BUCKET (required)
      - S3_REGION (default us-east-1)
      - S3_ENDPOINT (default https://s3.amazonaws.com)
      - S3_FORCE_PATH_STYLE ("true" for MinIO and friends)
    """
    access_key_id: str = field(repr=False)
    secret_access_key: str = field(repr=False)
    bucket: str
    region: str = DEFAULT_S3_REGION
    endpoint: str = DEFAULT_S3_ENDPOINT
    force_path_style: bool = False

    @classmethod
    def from_env(cls, env: StorageEnv) -> "S3Config":
        _require(env, "S3_ACCESS_KEY_ID", "S3_SECRET_ACCESS_KEY")
        _require(env, "S3_BUCKET")
        endpoint = _get(env, "S3_ENDPOINT").strip() or DEFAULT_S3_ENDPOINT
        return cls(
            access_key_id=_get(env, "S3_ACCESS_KEY_ID").strip(),
            secret_access_key=_get(env, "S3_SECRET_ACCESS_KEY").strip(),
            bucket=_get(env, "S3_BUCKET").strip(),
            region=_get(env, "S3_REGION").strip() or DEFAULT_S3_REGION,
            endpoint=endpoint[:-1] if endpoint.endswith("/") else endpoint,
            force_path_style=_get(env, "S3_FORCE_PATH_STYLE", "false").strip().lower() == "true",
        )


@dataclass(frozen=True)
class R2Config:
    """
    Cloudflare R2.

    Env:
      - R2_ACCESS_KEY_ID / R2_SECRET_ACCESS_KEY (required)
      - R2_ACCOUNT_ID (required)
      - R2_BUCKET (required)
      - R2_PATH_PREFIX (optional, e.g. "site/media/")
    """
    access_key_id: str = field(repr=False)
    secret_access_key: str = field(repr=False)
    account_id: str
    bucket: str
    path_prefix: str = ""

    @classmethod
    def from_env(cls, env: StorageEnv) -> "R2Config":
        _require(env, "R2_ACCESS_KEY_ID", "R2_SECRET_ACCESS_KEY")
        _require(env, "R2_ACCOUNT_ID")
        _require(env, "R2_BUCKET")
        return cls(
            access_key_id=_get(env, "R2_ACCESS_KEY_ID").strip(),
            secret_access_key=_get(env, "R2_SECRET_ACCESS_KEY").strip(),
            account_id=_get(env, "R2_ACCOUNT_ID").strip(),
            bucket=_get(env, "R2_BUCKET").strip(),
            path_prefix=_normalize_prefix(_get(env, "R2_PATH_PREFIX")),
        )


@dataclass(frozen=True)
class AzureConfig:
    """
    Azure Blob Storage (Service SAS).

    Env:
      - AZURE_STORAGE_ACCOUNT (required)
      - AZURE_STORAGE_KEY (required, base64 account key)
      - AZURE_CONTAINER (required)
    """
    account_name: str
    account_key: str = field(repr=False)
    container: str

    @classmethod
    def from_env(cls, env: StorageEnv) -> "AzureConfig":
        _require(env, "AZURE_STORAGE_ACCOUNT")
        _require(env, "AZURE_STORAGE_KEY")
        _require(env, "AZURE_CONTAINER")
        return cls(
            account_name=_get(env, "AZURE_STORAGE_ACCOUNT").strip(),
            account_key=_get(env, "AZURE_STORAGE_KEY").strip(),
            container=_get(env, "AZURE_CONTAINER").strip(),
        )


@dataclass(frozen=True)
class GCSConfig:
    """
    Google Cloud Storage with service-account credentials.

    Env:
      - GCS_PROJECT_ID (required)
      - GCS_BUCKET (required)
      - GCS_SERVICE_ACCOUNT_KEY (required, the service-account JSON key file contents)
    """
    project_id: str
    bucket: str
    client_email: str
    private_key: str = field(repr=False)

    @classmethod
    def from_env(cls, env: StorageEnv) -> "GCSConfig":
        _require(env, "GCS_PROJECT_ID")
        _require(env, "GCS_BUCKET")
        _require(env, "GCS_SERVICE_ACCOUNT_KEY")

        try:
            service_account = json.loads(_get(env, "GCS_SERVICE_ACCOUNT_KEY"))
        except ValueError as exc:
            raise ConfigurationError("GCS_SERVICE_ACCOUNT_KEY must be valid JSON") from exc

        if not isinstance(service_account, dict):
            raise ConfigurationError("GCS_SERVICE_ACCOUNT_KEY must be valid JSON")

        client_email = service_account.get("client_email")
        private_key = service_account.get("private_key")
        if not client_email or not private_key:
            raise ConfigurationError("Service account must have client_email and private_key")

        return cls(
            project_id=_get(env, "GCS_PROJECT_ID").strip(),
            bucket=_get(env, "GCS_BUCKET").strip(),
            client_email=str(client_email),
            private_key=str(private_key),
        )


def _normalize_prefix(raw: str) -> str:
    prefix = raw or ""
    if prefix.startswith("/"):
        prefix = prefix[1:]
    if prefix.endswith("/"):
        prefix = prefix[:-1]
    return prefix
