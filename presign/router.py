from __future__ import annotations

from fastapi import APIRouter

from core.deps import SessionDep, SettingsDep, StorageEnvDep
from presign.models import (
    PresignBatchRequestModel,
    PresignBatchResponseModel,
    PresignRequestModel,
    PresignResponseModel,
)
from presign.service import presign_many, presign_one

# Signing is CPU-bound, so these are plain `def` handlers (threadpool).
router = APIRouter(tags=["presign"])


# ---------------------------------------------------------------------
# POST /presign
# ---------------------------------------------------------------------
@router.post("/presign", response_model=PresignResponseModel)
def presign(
    body: PresignRequestModel,
    session: SessionDep,
    settings: SettingsDep,
    env: StorageEnvDep,
):
    """Presigned URL for a single object path."""
    return presign_one(
        operation=body.operation,
        path=body.path,
        env=env,
        settings=settings.presign,
        content_type=body.content_type,
        provider=body.provider,
        bucket=body.bucket,
        expires_in=body.expires_in,
    )


# ---------------------------------------------------------------------
# POST /presign-batch
# ---------------------------------------------------------------------
@router.post("/presign-batch", response_model=PresignBatchResponseModel)
def presign_batch(
    body: PresignBatchRequestModel,
    session: SessionDep,
    settings: SettingsDep,
    env: StorageEnvDep,
):
    """Presigned URLs for up to PRESIGN_MAX_BATCH paths, all or nothing."""
    return presign_many(
        paths=body.paths,
        env=env,
        settings=settings.presign,
        operation=body.operation,
        provider=body.provider,
        bucket=body.bucket,
        expires_in=body.expires_in,
    )
