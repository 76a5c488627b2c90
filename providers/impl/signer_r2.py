from __future__ import annotations

import logging
from typing import Optional

from providers.impl.sigv4 import encode_key, presign_sigv4
from providers.settings import R2Config, StorageEnv
from providers.signer import Clock, SigningRequest, Signer, clean_path, http_method, utcnow

log = logging.getLogger(__name__)

R2_DOMAIN = "r2.cloudflarestorage.com"
R2_REGION = "auto"


class R2Signer(Signer):
    """
    Cloudflare R2 presigner.

    R2 speaks the S3 API (SigV4, region "auto") but is always path-style:
      https://{account_id}.r2.cloudflarestorage.com/{bucket}/{prefix}/{key}
    """

    def __init__(self, config: R2Config, clock: Optional[Clock] = None):
        self.config = config
        self._clock = clock or utcnow

    @classmethod
    def from_env(cls, env: StorageEnv, clock: Optional[Clock] = None) -> "R2Signer":
        return cls(R2Config.from_env(env), clock=clock)

    @property
    def provider_name(self) -> str:
        return "r2"

    def _object_key(self, path: str) -> str:
        cleaned = clean_path(path)
        if self.config.path_prefix:
            return f"{self.config.path_prefix}/{cleaned}"
        return cleaned

    def _object_url(self, path: str, bucket: Optional[str] = None) -> str:
        bucket_name = bucket or self.config.bucket
        key = encode_key(self._object_key(path))
        return f"https://{self.config.account_id}.{R2_DOMAIN}/{bucket_name}/{key}"

    def sign(self, req: SigningRequest) -> str:
        method = http_method(req.operation)
        content_type = req.content_type if method == "PUT" else None

        log.debug("R2 presign method=%s path=%s prefix=%s", method, req.path, self.config.path_prefix or "-")
        return presign_sigv4(
            method=method,
            url=self._object_url(req.path, req.bucket),
            access_key_id=self.config.access_key_id,
            secret_access_key=self.config.secret_access_key,
            region=R2_REGION,
            expires_in=req.expires_in,
            signed_at=self._clock(),
            content_type=content_type,
        )
