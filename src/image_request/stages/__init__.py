"""Pipeline stages, in the order a request passes through them."""

from .path_codec import PathCodec
from .security import SecurityValidator
from .edits_normalizer import EditsNormalizer
from .content_negotiator import resolve as resolve_output_format, finalize as finalize_output_format
from .assembler import RequestAssembler
from .fallback import FallbackResolver

__all__ = [
    "PathCodec",
    "SecurityValidator",
    "EditsNormalizer",
    "resolve_output_format",
    "finalize_output_format",
    "RequestAssembler",
    "FallbackResolver",
]
