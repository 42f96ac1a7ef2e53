"""Request signature and expiry validation."""

import base64
import hashlib
import hmac
import json
import re
from datetime import datetime, timezone
from typing import Callable, Optional
from urllib.parse import urlencode

from ..core.exceptions import ErrorKind, SecretError, SecurityError
from ..core.models import ImageHandlerEvent, QueryParameters, RawRequest, SecurityContext
from ..core.observability import LogContext
from ..core.protocols import LoggerProtocol, SecretProviderProtocol
from ..core.settings import HandlerSettings

EXPIRES_PATTERN = re.compile(r"\d{8}T\d{6}Z")
EXPIRES_FORMAT = "%Y%m%dT%H%M%SZ"

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def string_to_sign(path: str, query: Optional[QueryParameters] = None) -> str:
    """The undecoded path, plus the sorted unsigned query parameters if any."""
    items = query.unsigned_items() if query else {}
    if not items:
        return path
    return f"{path}?{urlencode(sorted(items.items()))}"


def compute_signature(secret: str, message: str) -> bytes:
    return hmac.new(secret.encode(), message.encode(), hashlib.sha256).digest()


def signature_matches(provided: str, digest: bytes) -> bool:
    """
    Constant-time check of `provided` against `digest`.

    The signature may be sent as hex, standard base64 or URL-safe base64;
    base64 padding is optional.
    """
    provided = provided.strip()
    candidates = (
        (provided.lower(), digest.hex()),
        (provided.rstrip("="), base64.b64encode(digest).decode().rstrip("=")),
        (provided.rstrip("="), base64.urlsafe_b64encode(digest).decode().rstrip("=")),
    )
    matched = False
    for given, expected in candidates:
        matched |= hmac.compare_digest(given.encode(), expected.encode())
    return matched


def parse_expires(value: str) -> datetime:
    """
    Parse an `expires` value of the form YYYYMMDDTHHMMSSZ (UTC).

    Raises:
        SecurityError: EXPIRY_FORMAT when the value is malformed.
    """
    if EXPIRES_PATTERN.fullmatch(value):
        try:
            return datetime.strptime(value, EXPIRES_FORMAT).replace(tzinfo=timezone.utc)
        except ValueError:
            pass
    raise SecurityError(
        ErrorKind.EXPIRY_FORMAT,
        "The expires parameter is not in the expected format YYYYMMDDTHHMMSSZ.",
    )


class SecurityValidator:
    """Validates signing and expiry of a decoded request."""

    def __init__(
        self,
        settings: HandlerSettings,
        secret_provider: Optional[SecretProviderProtocol],
        logger: LoggerProtocol,
        clock: Clock = utc_now,
    ):
        self._settings = settings
        self._secret_provider = secret_provider
        self._logger = logger
        self._clock = clock

    def validate(
        self,
        raw_request: RawRequest,
        event: ImageHandlerEvent,
        context: Optional[LogContext] = None,
    ) -> SecurityContext:
        """
        Check the signature (when enabled) and the `expires` parameter.

        Raises:
            SecurityError: SIGNATURE_MISSING, SIGNATURE_MISMATCH,
                SECRET_UNAVAILABLE, EXPIRY_FORMAT or EXPIRED.
        """
        if self._settings.enable_signature:
            self._verify_signature(event, context)

        expires_at = None
        if event.expires is not None:
            expires_at = parse_expires(event.expires)
            if expires_at <= self._clock():
                raise SecurityError(ErrorKind.EXPIRED, "Request has expired.")

        self._logger.debug(
            f"Security checks passed for s3://{raw_request.bucket}/{raw_request.key}", context
        )
        return SecurityContext(
            signature_required=self._settings.enable_signature,
            signature_valid=self._settings.enable_signature,
            expires_at=expires_at,
        )

    def _verify_signature(self, event: ImageHandlerEvent, context: Optional[LogContext]) -> None:
        if not event.signature:
            raise SecurityError(
                ErrorKind.SIGNATURE_MISSING,
                "Query-string requires the signature parameter.",
            )

        secret = self._load_secret()
        digest = compute_signature(secret, string_to_sign(event.path or "", event.query_parameters))
        if not signature_matches(event.signature, digest):
            self._logger.warning("Signature does not match", context)
            raise SecurityError(
                ErrorKind.SIGNATURE_MISMATCH,
                "Signature does not match.",
            )

    def _load_secret(self) -> str:
        secret_name = self._settings.secrets_manager
        if self._secret_provider is None or not secret_name:
            raise SecurityError(ErrorKind.SECRET_UNAVAILABLE, "No secret provider is configured.")

        try:
            secret = self._secret_provider.get_secret(secret_name)
        except SecretError as e:
            raise SecurityError(
                ErrorKind.SECRET_UNAVAILABLE,
                f"Could not retrieve the signing secret: {e}",
            ) from e

        if not self._settings.secret_key:
            return secret
        try:
            value = json.loads(secret)[self._settings.secret_key]
        except (ValueError, KeyError, TypeError) as e:
            raise SecurityError(
                ErrorKind.SECRET_UNAVAILABLE,
                f"Secret does not contain the key '{self._settings.secret_key}'.",
            ) from e
        if not isinstance(value, str):
            raise SecurityError(ErrorKind.SECRET_UNAVAILABLE, "Signing secret must be a string.")
        return value
