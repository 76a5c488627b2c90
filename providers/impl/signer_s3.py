from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlsplit

from providers.errors import ConfigurationError
from providers.impl.sigv4 import encode_key, presign_sigv4
from providers.settings import S3Config, StorageEnv
from providers.signer import Clock, SigningRequest, Signer, clean_path, http_method, utcnow

log = logging.getLogger(__name__)


class S3Signer(Signer):
    """
    S3-compatible presigner (AWS S3, MinIO, DigitalOcean Spaces, Wasabi, B2 ...).

    URL styles:
      - virtual-hosted (default): https://{bucket}.{endpoint host}/{key}
      - path-style (S3_FORCE_PATH_STYLE=true): {endpoint}/{bucket}/{key}
    """

    def __init__(self, config: S3Config, clock: Optional[Clock] = None):
        self.config = config
        self._clock = clock or utcnow

    @classmethod
    def from_env(cls, env: StorageEnv, clock: Optional[Clock] = None) -> "S3Signer":
        return cls(S3Config.from_env(env), clock=clock)

    @property
    def provider_name(self) -> str:
        return "s3"

    def _object_url(self, path: str, bucket: Optional[str] = None) -> str:
        bucket_name = bucket or self.config.bucket
        key = encode_key(clean_path(path))

        if self.config.force_path_style:
            return f"{self.config.endpoint}/{bucket_name}/{key}"

        endpoint = urlsplit(self.config.endpoint)
        if not endpoint.scheme or not endpoint.netloc:
            raise ConfigurationError(f"S3_ENDPOINT is not an absolute URL: {self.config.endpoint}")
        return f"{endpoint.scheme}://{bucket_name}.{endpoint.netloc}/{key}"

    def sign(self, req: SigningRequest) -> str:
        method = http_method(req.operation)
        url = self._object_url(req.path, req.bucket)

        # Only uploads pin the content type into the signature.
        content_type = req.content_type if method == "PUT" else None

        log.debug("S3 presign method=%s path=%s path_style=%s", method, req.path, self.config.force_path_style)
        return presign_sigv4(
            method=method,
            url=url,
            access_key_id=self.config.access_key_id,
            secret_access_key=self.config.secret_access_key,
            region=self.config.region,
            expires_in=req.expires_in,
            signed_at=self._clock(),
            content_type=content_type,
        )
