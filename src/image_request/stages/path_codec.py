"""Decoding of the request path into a RawRequest."""

import base64
import json
import re
from typing import Any, Dict, Optional

from ..core.exceptions import DecodeError, ErrorKind
from ..core.models import ImageHandlerEvent, RawRequest, RequestType
from ..core.observability import LogContext
from ..core.protocols import LoggerProtocol
from ..core.settings import HandlerSettings
from .tokens import is_bare_call, is_option_token, split_segments

BASE64_PATTERN = re.compile(r"[A-Za-z0-9+/\-_]+={0,2}")


class PathCodec:
    """
    Turns the inbound path into one of the three request shapes.

    Decoding is attempted as base64 JSON first (Default) and falls back to
    segmented parsing (Thumbor or Custom). Edit tokens are not interpreted here.
    """

    def __init__(self, settings: HandlerSettings, logger: LoggerProtocol):
        self._settings = settings
        self._logger = logger

    def decode(
        self, event: ImageHandlerEvent, context: Optional[LogContext] = None
    ) -> RawRequest:
        """
        Decode the event path.

        Raises:
            DecodeError: CANNOT_READ_PATH, CANNOT_DECODE_REQUEST or
                CANNOT_ACCESS_BUCKET.
        """
        path = event.path or ""
        stripped = path[1:] if path.startswith("/") else path
        if not stripped:
            raise DecodeError(
                ErrorKind.CANNOT_READ_PATH,
                "The URL path you provided could not be read. Please ensure that it is "
                "properly formed according to the solution documentation.",
            )

        raw_request = self._decode_default(stripped) or self._decode_segmented(stripped)
        if raw_request is None:
            raise DecodeError(
                ErrorKind.CANNOT_DECODE_REQUEST,
                "The image request you provided could not be decoded. Please check that "
                "your request is base64 encoded properly and refer to the documentation "
                "for additional guidance.",
            )

        if not self._settings.is_bucket_allowed(raw_request.bucket):
            raise DecodeError(
                ErrorKind.CANNOT_ACCESS_BUCKET,
                f"The bucket '{raw_request.bucket}' is not in the list of allowed source buckets.",
            )

        self._logger.debug(
            f"Decoded {raw_request.request_type.value} request for s3://{raw_request.bucket}/{raw_request.key}",
            context,
        )
        return raw_request

    def _decode_default(self, encoded: str) -> Optional[RawRequest]:
        payload = _decode_base64_json(encoded)
        if payload is None:
            return None

        bucket, key = payload.get("bucket"), payload.get("key")
        if not (isinstance(bucket, str) and bucket and isinstance(key, str) and key):
            return None

        edits = payload.get("edits")
        if edits is None:
            edits = {}
        output_format = payload.get("outputFormat")
        if not isinstance(edits, dict) or not (
            output_format is None or isinstance(output_format, str)
        ):
            raise DecodeError(
                ErrorKind.CANNOT_DECODE_REQUEST,
                "The image request you provided could not be decoded: 'edits' must be an "
                "object and 'outputFormat' a string.",
            )

        return RawRequest(
            bucket=bucket,
            key=key,
            request_type=RequestType.DEFAULT,
            raw_edits=edits,
            explicit_output_format=output_format,
        )

    def _decode_segmented(self, path: str) -> Optional[RawRequest]:
        segments = split_segments(path)

        index = 0
        while index < len(segments) and is_option_token(segments[index]):
            index += 1
        tokens, rest = tuple(segments[:index]), segments[index:]

        if len(rest) < 2:
            return None
        bucket, key = rest[0], "/".join(rest[1:])
        if not bucket or not key:
            return None

        # filters:-prefixed calls are Thumbor syntax; only a bare call such as
        # grayscale() marks the path as the Custom DSL.
        request_type = (
            RequestType.CUSTOM if any(is_bare_call(token) for token in tokens) else RequestType.THUMBOR
        )
        return RawRequest(bucket=bucket, key=key, request_type=request_type, raw_edits=tokens)


def _decode_base64_json(encoded: str) -> Optional[Dict[str, Any]]:
    """Decode standard or URL-safe base64 holding a JSON object, else None."""
    if not BASE64_PATTERN.fullmatch(encoded):
        return None

    normalized = encoded.rstrip("=").replace("-", "+").replace("_", "/")
    if len(normalized) % 4 == 1:
        return None
    normalized += "=" * (-len(normalized) % 4)

    try:
        payload = json.loads(base64.b64decode(normalized, validate=True).decode("utf-8"))
    except (ValueError, RecursionError):
        return None
    return payload if isinstance(payload, dict) else None
