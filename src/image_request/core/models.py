"""Shared data models for the image request pipeline."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from .edits import Edits
from .formats import ImageFormat


class RequestType(str, Enum):
    """Encoding of the inbound request, decided from the path shape only."""

    DEFAULT = "Default"
    THUMBOR = "Thumbor"
    CUSTOM = "Custom"


class QueryParameters(BaseModel):
    """Query string of the inbound request."""

    model_config = ConfigDict(frozen=True, extra="allow")

    signature: Optional[str] = None
    expires: Optional[str] = None

    def unsigned_items(self) -> Dict[str, str]:
        """All parameters except the signature itself."""
        items = {"expires": self.expires, **(self.model_extra or {})}
        return {k: str(v) for k, v in items.items() if v is not None}


class ImageHandlerEvent(BaseModel):
    """Inbound event in API Gateway proxy shape."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    path: Optional[str] = None
    query_parameters: Optional[QueryParameters] = Field(
        default=None, alias="queryStringParameters"
    )
    headers: Optional[Dict[str, str]] = None

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup."""
        for header_name, value in (self.headers or {}).items():
            if header_name.lower() == name.lower():
                return value
        return None

    @property
    def signature(self) -> Optional[str]:
        return self.query_parameters.signature if self.query_parameters else None

    @property
    def expires(self) -> Optional[str]:
        return self.query_parameters.expires if self.query_parameters else None


class RawRequest(BaseModel):
    """Decoded request before any edit is interpreted."""

    model_config = ConfigDict(frozen=True)

    bucket: str
    key: str
    request_type: RequestType
    raw_edits: Union[Dict[str, Any], Tuple[str, ...]] = Field(default_factory=dict)
    explicit_output_format: Optional[str] = None


class SecurityContext(BaseModel):
    """Outcome of signature and expiry validation."""

    model_config = ConfigDict(frozen=True)

    signature_required: bool = False
    signature_valid: bool = False
    expires_at: Optional[datetime] = None


class ImageRequestInfo(BaseModel):
    """
    Fully validated request handed to the transform stage.

    ``output_format`` of ``None`` means the source object's format is kept;
    it is resolved once the original bytes have been fetched.
    """

    model_config = ConfigDict(frozen=True)

    bucket: str
    key: str
    edits: Edits = ()
    output_format: Optional[ImageFormat] = None
    content_type: Optional[str] = None
    cache_control: str
    request_type: Optional[RequestType] = None
    status_code: int = 200
    error_kind: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.error_kind is not None


class OriginalImage(BaseModel):
    """Source object bytes as fetched from S3."""

    model_config = ConfigDict(frozen=True)

    body: bytes
    format: Optional[ImageFormat] = None
    content_type: str = "application/octet-stream"
    cache_control: Optional[str] = None
    last_modified: Optional[datetime] = None
