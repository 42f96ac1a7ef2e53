"""Output image formats and their content types."""

from enum import Enum
from typing import Optional


class ImageFormat(str, Enum):
    """Formats the transform stage can encode."""

    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"
    TIFF = "tiff"
    GIF = "gif"
    HEIF = "heif"
    AVIF = "avif"

    @property
    def content_type(self) -> str:
        return f"image/{self.value}"

    @classmethod
    def parse(cls, value: str) -> "ImageFormat":
        """Parse a format name, accepting `jpg` and `tif` aliases.

        Raises:
            ValueError: If the name is not a supported format.
        """
        normalized = value.strip().lower()
        normalized = _ALIASES.get(normalized, normalized)
        return cls(normalized)

    @classmethod
    def from_pillow(cls, pillow_format: Optional[str]) -> Optional["ImageFormat"]:
        """Map a Pillow `Image.format` name to an ImageFormat, if supported."""
        if not pillow_format:
            return None
        try:
            return cls.parse(pillow_format)
        except ValueError:
            return None


_ALIASES = {"jpg": "jpeg", "tif": "tiff", "heic": "heif"}
