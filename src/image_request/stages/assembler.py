"""Aggregation of validated stage outputs into an ImageRequestInfo."""

from ..core.edits import Edits
from ..core.exceptions import ErrorKind, SecurityError
from ..core.models import ImageRequestInfo, RawRequest, SecurityContext
from ..core.settings import HandlerSettings
from .content_negotiator import FormatDecision


class RequestAssembler:
    """Builds the immutable request info; never invents data of its own."""

    def __init__(self, settings: HandlerSettings):
        self._settings = settings

    def assemble(
        self,
        raw_request: RawRequest,
        security: SecurityContext,
        edits: Edits,
        format_decision: FormatDecision,
    ) -> ImageRequestInfo:
        """
        Raises:
            SecurityError: SIGNATURE_MISMATCH if signing is enabled but the
                security context does not carry a validated signature.
        """
        if self._settings.enable_signature and not (
            security.signature_required and security.signature_valid
        ):
            raise SecurityError(
                ErrorKind.SIGNATURE_MISMATCH,
                "Refusing to assemble a request whose signature was not validated.",
            )

        output_format, content_type = format_decision
        return ImageRequestInfo(
            bucket=raw_request.bucket,
            key=raw_request.key,
            edits=edits,
            output_format=output_format,
            content_type=content_type,
            cache_control=self._settings.cache_control,
            request_type=raw_request.request_type,
        )
