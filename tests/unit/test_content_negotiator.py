"""Unit tests for output format negotiation."""

import pytest

from image_request.core.edits import FormatEdit, GrayscaleEdit
from image_request.core.formats import ImageFormat
from image_request.core.models import ImageRequestInfo, OriginalImage
from image_request.stages.content_negotiator import PRESERVE_ORIGINAL, finalize, resolve

WEBP_ACCEPT = "image/avif,image/webp,image/apng,*/*;q=0.8"


class TestResolve:
    """Tests for the precedence of format sources."""

    def test_explicit_format_wins(self):
        edits = (FormatEdit(format="png"),)
        assert resolve(edits, WEBP_ACCEPT, auto_webp=True) == (ImageFormat.PNG, "image/png")

    def test_last_explicit_format_wins(self):
        edits = (FormatEdit(format="png"), GrayscaleEdit(), FormatEdit(format="jpg"))
        assert resolve(edits, None, auto_webp=False) == (ImageFormat.JPEG, "image/jpeg")

    def test_auto_webp_from_accept_header(self):
        assert resolve((GrayscaleEdit(),), WEBP_ACCEPT, auto_webp=True) == (
            ImageFormat.WEBP,
            "image/webp",
        )

    @pytest.mark.parametrize(
        "accept,auto_webp",
        [
            (WEBP_ACCEPT, False),
            ("image/png,*/*", True),
            (None, True),
            ("", True),
        ],
    )
    def test_deferred_to_original(self, accept, auto_webp):
        assert resolve((), accept, auto_webp) == PRESERVE_ORIGINAL


class TestFinalize:
    """Tests for resolving the deferred decision after the fetch."""

    def _info(self, **kwargs):
        return ImageRequestInfo(bucket="validBucket", key="validKey", cache_control="max-age=1", **kwargs)

    def test_deferred_format_taken_from_original(self):
        original = OriginalImage(body=b"...", format=ImageFormat.PNG, content_type="image/png")

        info = finalize(self._info(), original)

        assert info.output_format is ImageFormat.PNG
        assert info.content_type == "image/png"

    def test_resolved_format_kept(self):
        info = self._info(output_format=ImageFormat.WEBP, content_type="image/webp")
        original = OriginalImage(body=b"...", format=ImageFormat.JPEG, content_type="image/jpeg")

        assert finalize(info, original) is info

    def test_unknown_original_format(self):
        original = OriginalImage(body=b"plain text", content_type="text/plain")

        info = finalize(self._info(), original)

        assert info.output_format is None
        assert info.content_type == "text/plain"
