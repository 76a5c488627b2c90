from __future__ import annotations

import hashlib
import logging
from typing import Optional
from urllib.parse import quote, urlencode

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from providers.errors import UpstreamSigningError
from providers.settings import GCSConfig, StorageEnv
from providers.signer import Clock, SigningRequest, Signer, clean_path, http_method, utcnow

log = logging.getLogger(__name__)

GCS_HOST = "storage.googleapis.com"
GOOG4_ALGORITHM = "GOOG4-RSA-SHA256"
GOOG4_TIMESTAMP = "%Y%m%dT%H%M%SZ"
SIGNED_HEADERS = "host"
UNSIGNED_PAYLOAD = "UNSIGNED-PAYLOAD"


def canonical_query(params) -> str:
    # RFC 3986 encoding, spaces as %20 (never "+")
    return urlencode(params, quote_via=quote, safe="")


class GCSSigner(Signer):
    """
    Google Cloud Storage presigner (V4 signing, service-account RSA key).

    https://cloud.google.com/storage/docs/access-control/signed-urls
    """

    def __init__(self, config: GCSConfig, clock: Optional[Clock] = None):
        self.config = config
        self._clock = clock or utcnow

    @classmethod
    def from_env(cls, env: StorageEnv, clock: Optional[Clock] = None) -> "GCSSigner":
        return cls(GCSConfig.from_env(env), clock=clock)

    @property
    def provider_name(self) -> str:
        return "gcs"

    def _load_private_key(self) -> rsa.RSAPrivateKey:
        try:
            key = serialization.load_pem_private_key(
                self.config.private_key.encode("utf-8"),
                password=None,
            )
        except (ValueError, TypeError) as exc:
            raise UpstreamSigningError("Failed to import service account private key") from exc

        if not isinstance(key, rsa.RSAPrivateKey):
            raise UpstreamSigningError("Service account private key must be an RSA key")
        return key

    def _rsa_sign(self, string_to_sign: str) -> str:
        key = self._load_private_key()
        signature = key.sign(
            string_to_sign.encode("utf-8"),
            padding.PKCS1v15(),
            hashes.SHA256(),
        )
        return signature.hex()

    def sign(self, req: SigningRequest) -> str:
        method = http_method(req.operation)
        bucket = req.bucket or self.config.bucket
        canonical_uri = quote(f"/{bucket}/{clean_path(req.path)}", safe="/~")

        timestamp = self._clock().strftime(GOOG4_TIMESTAMP)
        datestamp = timestamp[:8]
        credential_scope = f"{datestamp}/auto/storage/goog4_request"

        query = canonical_query(
            [
                ("X-Goog-Algorithm", GOOG4_ALGORITHM),
                ("X-Goog-Credential", f"{self.config.client_email}/{credential_scope}"),
                ("X-Goog-Date", timestamp),
                ("X-Goog-Expires", str(int(req.expires_in))),
                ("X-Goog-SignedHeaders", SIGNED_HEADERS),
            ]
        )

        canonical_request = "\n".join(
            [
                method,
                canonical_uri,
                query,
                f"host:{GCS_HOST}\n",
                SIGNED_HEADERS,
                UNSIGNED_PAYLOAD,
            ]
        )
        canonical_request_hash = hashlib.sha256(canonical_request.encode("utf-8")).hexdigest()

        string_to_sign = "\n".join(
            [
                GOOG4_ALGORITHM,
                timestamp,
                credential_scope,
                canonical_request_hash,
            ]
        )

        log.debug("GCS presign method=%s bucket=%s path=%s", method, bucket, req.path)
        signature = self._rsa_sign(string_to_sign)
        return f"https://{GCS_HOST}{canonical_uri}?{query}&X-Goog-Signature={signature}"
