from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, Optional
from urllib.parse import quote

from botocore.auth import SIGV4_TIMESTAMP, S3SigV4QueryAuth
from botocore.awsrequest import AWSRequest
from botocore.credentials import Credentials

from providers.errors import UpstreamSigningError

log = logging.getLogger(__name__)


def encode_key(key: str) -> str:
    """
    Percent-encode an object key for use in a URL path.

    S3 does not normalize or double-encode the canonical URI, so the path we
    put in the URL is exactly the path that gets signed.
    """
    return quote(key, safe="/~")


class _ClockedS3QueryAuth(S3SigV4QueryAuth):
    """
    botocore's S3 query signer with the signing time supplied by the caller.

    Same steps as SigV4Auth.add_auth; the only difference is where the
    timestamp comes from.
    """

    def __init__(self, credentials: Credentials, region_name: str, expires: int, signed_at: datetime):
        super().__init__(credentials, "s3", region_name, expires=expires)
        self._signed_at = signed_at

    def add_auth(self, request: AWSRequest) -> None:
        request.context["timestamp"] = self._signed_at.strftime(SIGV4_TIMESTAMP)
        self._modify_request_before_signing(request)
        canonical_request = self.canonical_request(request)
        string_to_sign = self.string_to_sign(request, canonical_request)
        signature = self.signature(string_to_sign, request)
        self._inject_signature_to_request(request, signature)


def presign_sigv4(
    *,
    method: str,
    url: str,
    access_key_id: str,
    secret_access_key: str,
    region: str,
    expires_in: int,
    signed_at: datetime,
    content_type: Optional[str] = None,
) -> str:
    """
    SigV4 query-string presign (X-Amz-* parameters, UNSIGNED-PAYLOAD).

    content_type, when given, is sent as a signed Content-Type header; the
    uploader must send the same value.
    """
    headers: Dict[str, str] = {}
    if content_type:
        headers["Content-Type"] = content_type

    request = AWSRequest(method=method, url=url, headers=headers)
    auth = _ClockedS3QueryAuth(
        Credentials(access_key_id, secret_access_key),
        region_name=region,
        expires=int(expires_in),
        signed_at=signed_at,
    )

    try:
        auth.add_auth(request)
    except Exception as exc:
        log.exception("SigV4 signing failed method=%s region=%s", method, region)
        raise UpstreamSigningError(f"SigV4 signing failed: {exc}") from exc

    return request.url
