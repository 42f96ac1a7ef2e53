"""Output format negotiation."""

from typing import Optional, Tuple

from ..core.edits import Edits, FormatEdit
from ..core.formats import ImageFormat
from ..core.models import ImageRequestInfo, OriginalImage

FormatDecision = Tuple[Optional[ImageFormat], Optional[str]]

# Deferred: keep the source object's format, known only after the fetch
PRESERVE_ORIGINAL: FormatDecision = (None, None)


def resolve(edits: Edits, accept_header: Optional[str], auto_webp: bool) -> FormatDecision:
    """
    Pick the output format and content type.

    An explicit format edit wins (the last one if several were given), then
    WebP when auto-WebP is enabled and the client accepts it; otherwise the
    decision is deferred to the original object's format.
    """
    explicit = [edit for edit in edits if isinstance(edit, FormatEdit)]
    if explicit:
        image_format = explicit[-1].format
        return image_format, image_format.content_type

    if auto_webp and accept_header and ImageFormat.WEBP.content_type in accept_header:
        return ImageFormat.WEBP, ImageFormat.WEBP.content_type

    return PRESERVE_ORIGINAL


def finalize(info: ImageRequestInfo, original: OriginalImage) -> ImageRequestInfo:
    """Resolve a deferred format decision from the fetched original."""
    if info.output_format is not None:
        return info
    return info.model_copy(
        update={"output_format": original.format, "content_type": original.content_type}
    )
