from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PresignRequestModel(BaseModel):
    """
    POST /presign body. Everything is optional at the schema level so that
    missing fields surface as our own 400 message, not a 422.
    """
    model_config = ConfigDict(populate_by_name=True)

    operation: Optional[str] = None
    path: Optional[Any] = None
    content_type: Optional[str] = Field(default=None, alias="contentType")
    provider: Optional[str] = None
    bucket: Optional[str] = None
    expires_in: Optional[int] = Field(default=None, alias="expiresIn")


class PresignBatchRequestModel(BaseModel):
    """
    POST /presign-batch body. paths stays List[Any] so non-string entries
    are reported as invalid paths.
    """
    model_config = ConfigDict(populate_by_name=True)

    paths: Optional[List[Any]] = None
    operation: Optional[str] = "GET"
    provider: Optional[str] = None
    bucket: Optional[str] = None
    expires_in: Optional[int] = Field(default=None, alias="expiresIn")


class PresignResponseModel(BaseModel):
    url: str
    expiresIn: int
    path: str
    operation: str


class PresignBatchResponseModel(BaseModel):
    urls: Dict[str, str]
    expiresIn: int
    count: int
