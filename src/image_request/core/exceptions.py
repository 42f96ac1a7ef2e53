"""Custom exceptions for the image request pipeline."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Failure kinds surfaced by the request pipeline."""

    CANNOT_READ_PATH = "CannotReadPath"
    CANNOT_DECODE_REQUEST = "CannotDecodeRequest"
    CANNOT_ACCESS_BUCKET = "CannotAccessBucket"
    SIGNATURE_MISSING = "SignatureMissing"
    SIGNATURE_MISMATCH = "SignatureMismatch"
    EXPIRY_FORMAT = "ImageRequestExpiryFormat"
    EXPIRED = "ImageRequestExpired"
    INVALID_EDIT_PARAMETER = "InvalidEditParameter"
    INVALID_EDIT_OPERATION = "InvalidEditOperation"
    SECRET_UNAVAILABLE = "SecretUnavailable"


STATUS_CODES: Dict[ErrorKind, int] = {
    ErrorKind.CANNOT_READ_PATH: 400,
    ErrorKind.CANNOT_DECODE_REQUEST: 400,
    ErrorKind.CANNOT_ACCESS_BUCKET: 403,
    ErrorKind.SIGNATURE_MISSING: 400,
    ErrorKind.SIGNATURE_MISMATCH: 403,
    ErrorKind.EXPIRY_FORMAT: 400,
    ErrorKind.EXPIRED: 400,
    ErrorKind.INVALID_EDIT_PARAMETER: 400,
    ErrorKind.INVALID_EDIT_OPERATION: 400,
    ErrorKind.SECRET_UNAVAILABLE: 500,
}


class ImageRequestError(Exception):
    """Base exception for every failure the request pipeline raises."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]

    def to_response(self) -> Dict[str, Any]:
        """Body a transport adapter returns when the error is not absorbed."""
        return {
            "status_code": self.status_code,
            "kind": self.kind.value,
            "message": self.message,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r})"


class DecodeError(ImageRequestError):
    """The request path could not be decoded into a bucket and key."""


class SecurityError(ImageRequestError):
    """Signature or expiry validation failed."""


class EditsError(ImageRequestError):
    """An edit operation or one of its parameters is invalid."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        operation: Optional[str] = None,
        parameter: Optional[str] = None,
    ):
        super().__init__(kind, message)
        self.operation = operation
        self.parameter = parameter


class ConfigurationError(Exception):
    """Error raised for invalid configuration options."""


class SecretError(Exception):
    """Error raised when the secret store cannot return a value."""


class S3Error(Exception):
    """Error raised for S3 related failures."""
