"""Core models, configuration and shared components for the image request pipeline."""

from .logging_config import get_logger, setup_logger
from .exceptions import (
    ConfigurationError,
    DecodeError,
    EditsError,
    ErrorKind,
    ImageRequestError,
    S3Error,
    SecretError,
    SecurityError,
)
from .formats import ImageFormat
from .models import (
    ImageHandlerEvent,
    ImageRequestInfo,
    OriginalImage,
    RawRequest,
    RequestType,
    SecurityContext,
)
from .settings import HandlerSettings, load_settings

__all__ = [
    "HandlerSettings",
    "load_settings",
    "ImageFormat",
    "ImageHandlerEvent",
    "ImageRequestInfo",
    "OriginalImage",
    "RawRequest",
    "RequestType",
    "SecurityContext",
    "setup_logger",
    "get_logger",
    "ErrorKind",
    "ImageRequestError",
    "DecodeError",
    "SecurityError",
    "EditsError",
    "ConfigurationError",
    "SecretError",
    "S3Error",
]
