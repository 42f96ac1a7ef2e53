"""Fallback image substitution: the single recovery point of the pipeline."""

from typing import Callable, Optional

from ..core.exceptions import DecodeError, EditsError, ImageRequestError, SecurityError
from ..core.models import ImageRequestInfo
from ..core.observability import LogContext
from ..core.protocols import LoggerProtocol
from ..core.settings import HandlerSettings

RECOVERABLE_ERRORS = (DecodeError, SecurityError, EditsError)


class FallbackResolver:
    """Runs the pipeline and absorbs request errors into the fallback image."""

    def __init__(self, settings: HandlerSettings, logger: LoggerProtocol):
        self._settings = settings
        self._logger = logger

    def resolve(
        self,
        run: Callable[[], ImageRequestInfo],
        context: Optional[LogContext] = None,
    ) -> ImageRequestInfo:
        """
        Invoke `run` once.

        Request errors become the fallback request when the fallback image is
        enabled and are re-raised unchanged otherwise. Any other exception
        propagates.
        """
        try:
            return run()
        except RECOVERABLE_ERRORS as error:
            error_context = context.with_metadata(kind=error.kind.value) if context else None
            if not self._settings.enable_default_fallback_image:
                self._logger.error(f"Image request failed: {error.message}", error_context)
                raise
            self._logger.warning(
                f"Image request failed, serving fallback image: {error.message}", error_context
            )
            return self.substitute(error)

    def substitute(self, error: ImageRequestError) -> ImageRequestInfo:
        """Fallback request info standing in for a failed request."""
        return ImageRequestInfo(
            bucket=self._settings.fallback_image_bucket,
            key=self._settings.fallback_image_key,
            cache_control=self._settings.fallback_cache_control,
            status_code=self._settings.fallback_image_status_code or error.status_code,
            error_kind=error.kind.value,
        )
