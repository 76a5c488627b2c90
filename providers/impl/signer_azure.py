from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import logging
from datetime import datetime, timedelta
from typing import Dict, Optional
from urllib.parse import quote, urlencode

from providers.errors import UpstreamSigningError
from providers.settings import AzureConfig, StorageEnv
from providers.signer import Clock, SigningRequest, Signer, clean_path, utcnow

log = logging.getLogger(__name__)

SAS_VERSION = "2022-11-02"
SAS_PROTOCOL = "https"
SAS_RESOURCE_BLOB = "b"
CLOCK_SKEW = timedelta(minutes=5)

# Azure SAS permission letters, in the order Azure expects them.
PERMISSIONS = {
    "GET": "r",
    "PUT": "cw",
    "DELETE": "d",
}


def sas_time(value: datetime) -> str:
    """ISO-8601 UTC without fractional seconds, e.g. 2024-01-01T00:00:00Z."""
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


def service_sas_string_to_sign(
    *,
    permissions: str,
    start: str,
    expiry: str,
    canonicalized_resource: str,
    content_type: Optional[str] = None,
) -> str:
    """
    Service SAS string-to-sign (version 2020-12-06 and later).

    Field order and the empty placeholders are part of the signature.
    https://learn.microsoft.com/rest/api/storageservices/create-service-sas
    """
    return "\n".join(
        [
            permissions,
            start,
            expiry,
            canonicalized_resource,
            "",  # signedIdentifier
            "",  # signedIP
            SAS_PROTOCOL,
            SAS_VERSION,
            SAS_RESOURCE_BLOB,
            "",  # signedSnapshotTime
            "",  # signedEncryptionScope
            "",  # rscc
            "",  # rscd
            "",  # rsce
            "",  # rscl
            content_type or "",  # rsct
        ]
    )


class AzureSigner(Signer):
    """
    Azure Blob Storage presigner using a blob-scoped Service SAS.

    URL: https://{account}.blob.core.windows.net/{container}/{key}?sv=...&sig=...
    """

    def __init__(self, config: AzureConfig, clock: Optional[Clock] = None):
        self.config = config
        self._clock = clock or utcnow

    @classmethod
    def from_env(cls, env: StorageEnv, clock: Optional[Clock] = None) -> "AzureSigner":
        return cls(AzureConfig.from_env(env), clock=clock)

    @property
    def provider_name(self) -> str:
        return "azure"

    def _hmac(self, string_to_sign: str) -> str:
        try:
            key = base64.b64decode(self.config.account_key, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise UpstreamSigningError("AZURE_STORAGE_KEY is not valid base64") from exc

        digest = hmac.new(key, string_to_sign.encode("utf-8"), hashlib.sha256).digest()
        return base64.b64encode(digest).decode("ascii")

    def sign(self, req: SigningRequest) -> str:
        container = req.bucket or self.config.container
        key = clean_path(req.path)
        permissions = PERMISSIONS.get((req.operation or "").upper(), "r")

        now = self._clock()
        start = sas_time(now - CLOCK_SKEW)
        expiry = sas_time(now + timedelta(seconds=int(req.expires_in)))

        string_to_sign = service_sas_string_to_sign(
            permissions=permissions,
            start=start,
            expiry=expiry,
            canonicalized_resource=f"/blob/{self.config.account_name}/{container}/{key}",
            content_type=req.content_type,
        )
        signature = self._hmac(string_to_sign)

        params: Dict[str, str] = {
            "sv": SAS_VERSION,
            "ss": "b",  # blob service
            "srt": "o",  # object level
            "sp": permissions,
            "st": start,
            "se": expiry,
            "spr": SAS_PROTOCOL,
            "sig": signature,
        }
        if req.content_type:
            params["rsct"] = req.content_type

        log.debug("Azure SAS presign sp=%s container=%s path=%s", permissions, container, req.path)
        base_url = f"https://{self.config.account_name}.blob.core.windows.net/{container}/{quote(key, safe='/~')}"
        return f"{base_url}?{urlencode(params)}"
