"""Orchestration of the request stages behind a single fallback boundary."""

import time
from typing import Any, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from .core.exceptions import DecodeError, ErrorKind
from .core.models import ImageHandlerEvent, ImageRequestInfo, OriginalImage
from .core.observability import LogContext, MetricsCollector, PerformanceMetrics
from .core.protocols import LoggerProtocol, SecretProviderProtocol, SourceImageFetcherProtocol
from .core.settings import HandlerSettings
from .stages import (
    EditsNormalizer,
    FallbackResolver,
    PathCodec,
    RequestAssembler,
    SecurityValidator,
    finalize_output_format,
    resolve_output_format,
)
from .stages.security import Clock, utc_now

EventLike = Union[ImageHandlerEvent, Mapping[str, Any]]


class ImageRequestPipeline:
    """
    Decodes, validates and normalizes one inbound event per call.

    Stages run strictly in order with early exit; request errors are caught
    once, by the FallbackResolver. The pipeline holds no per-request state,
    so one instance can serve concurrent requests.
    """

    def __init__(
        self,
        settings: HandlerSettings,
        logger: LoggerProtocol,
        secret_provider: Optional[SecretProviderProtocol] = None,
        fetcher: Optional[SourceImageFetcherProtocol] = None,
        metrics_collector: Optional[MetricsCollector] = None,
        clock: Clock = utc_now,
    ):
        self._settings = settings
        self._logger = logger
        self._fetcher = fetcher
        self._metrics_collector = metrics_collector

        self._codec = PathCodec(settings, logger)
        self._security = SecurityValidator(settings, secret_provider, logger, clock)
        self._normalizer = EditsNormalizer(settings, logger)
        self._assembler = RequestAssembler(settings)
        self._fallback = FallbackResolver(settings, logger)

    def process(self, event: EventLike) -> ImageRequestInfo:
        """Turn an event into the request info for the transform stage."""
        context = LogContext(operation="image_request", component="pipeline")
        start_time = time.time()
        info: Optional[ImageRequestInfo] = None
        error_message: Optional[str] = None

        try:
            info = self._fallback.resolve(lambda: self._run(event, context), context)
            return info
        except Exception as e:
            error_message = str(e)
            raise
        finally:
            if self._metrics_collector:
                self._metrics_collector.record_metric(
                    PerformanceMetrics(
                        operation="image_request",
                        start_time=start_time,
                        end_time=time.time(),
                        success=info is not None,
                        error_message=error_message,
                        metadata={"fallback": bool(info and info.is_fallback)},
                    )
                )

    def setup(self, event: EventLike) -> Tuple[ImageRequestInfo, OriginalImage]:
        """
        Process the event and fetch the original object it points at.

        A deferred output format is resolved from the fetched bytes.
        """
        if self._fetcher is None:
            raise RuntimeError("ImageRequestPipeline.setup requires a source image fetcher")

        info = self.process(event)
        original = self._fetcher.fetch(info)
        return finalize_output_format(info, original), original

    def _run(self, event: EventLike, context: LogContext) -> ImageRequestInfo:
        parsed_event = self._parse_event(event)

        raw_request = self._codec.decode(parsed_event, context)
        request_context = context.with_metadata(
            request_type=raw_request.request_type.value,
            bucket=raw_request.bucket,
            key=raw_request.key,
        )

        security = self._security.validate(raw_request, parsed_event, request_context)
        edits = self._normalizer.normalize(raw_request, request_context)
        format_decision = resolve_output_format(
            edits, parsed_event.header("Accept"), self._settings.auto_webp
        )
        info = self._assembler.assemble(raw_request, security, edits, format_decision)

        self._logger.info(f"Assembled request with {len(info.edits)} edit(s)", request_context)
        return info

    @staticmethod
    def _parse_event(event: EventLike) -> ImageHandlerEvent:
        if isinstance(event, ImageHandlerEvent):
            return event
        try:
            return ImageHandlerEvent.model_validate(event)
        except ValidationError as e:
            raise DecodeError(
                ErrorKind.CANNOT_READ_PATH,
                f"The request event could not be read: {e.error_count()} invalid field(s).",
            ) from e
