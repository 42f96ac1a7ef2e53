"""Typed edit operations.

Every request encoding is normalized into a tuple of the variants defined
here. Each variant is a frozen pydantic model discriminated on ``op``; the
transform stage only ever sees these, never the raw request mapping.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import EditsError, ErrorKind
from .formats import ImageFormat


class BaseEdit(BaseModel):
    """Common behaviour of all edit variants."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    op: str

    def params(self) -> Dict[str, Any]:
        """Typed parameters of this operation, without the name."""
        return self.model_dump(mode="json", exclude={"op"})

    def as_pair(self) -> Tuple[str, Dict[str, Any]]:
        return self.op, self.params()


class ResizeEdit(BaseEdit):
    op: Literal["resize"] = "resize"
    width: Optional[int] = Field(default=None, ge=0)
    height: Optional[int] = Field(default=None, ge=0)
    fit: Literal["cover", "contain", "fill", "inside", "outside"] = "cover"

    @field_validator("width", "height")
    @classmethod
    def _zero_is_proportional(cls, value: Optional[int]) -> Optional[int]:
        return value or None


class CropEdit(BaseEdit):
    op: Literal["crop"] = "crop"
    left: int = Field(ge=0)
    top: int = Field(ge=0)
    width: int = Field(gt=0)
    height: int = Field(gt=0)


class RotateEdit(BaseEdit):
    """Rotate by ``angle`` degrees; ``None`` means auto-orient from EXIF."""

    op: Literal["rotate"] = "rotate"
    angle: Optional[int] = None

    @field_validator("angle")
    @classmethod
    def _normalize_angle(cls, value: Optional[int]) -> Optional[int]:
        return None if value is None else value % 360


class FlipEdit(BaseEdit):
    op: Literal["flip"] = "flip"


class FlopEdit(BaseEdit):
    op: Literal["flop"] = "flop"


class GrayscaleEdit(BaseEdit):
    op: Literal["grayscale"] = "grayscale"


class BlurEdit(BaseEdit):
    op: Literal["blur"] = "blur"
    sigma: float = Field(ge=0.3, le=1000)


class SharpenEdit(BaseEdit):
    op: Literal["sharpen"] = "sharpen"
    sigma: Optional[float] = Field(default=None, gt=0, le=10)


class NormalizeEdit(BaseEdit):
    op: Literal["normalize"] = "normalize"


class NegateEdit(BaseEdit):
    op: Literal["negate"] = "negate"


class TintEdit(BaseEdit):
    op: Literal["tint"] = "tint"
    red: int = Field(ge=0, le=255)
    green: int = Field(ge=0, le=255)
    blue: int = Field(ge=0, le=255)


class QualityEdit(BaseEdit):
    op: Literal["quality"] = "quality"
    value: int = Field(ge=1, le=100)


class FormatEdit(BaseEdit):
    op: Literal["format"] = "format"
    format: ImageFormat

    @field_validator("format", mode="before")
    @classmethod
    def _parse_format(cls, value: Any) -> Any:
        if isinstance(value, str):
            return ImageFormat.parse(value)
        return value


class OverlayEdit(BaseEdit):
    """Composite another object from an allowed bucket on top of the image."""

    op: Literal["overlay"] = "overlay"
    bucket: str = Field(min_length=1)
    key: str = Field(min_length=1)
    x: Optional[int] = None
    y: Optional[int] = None
    alpha: int = Field(default=0, ge=0, le=100)
    width_ratio: int = Field(default=0, ge=0, le=100)
    height_ratio: int = Field(default=0, ge=0, le=100)


class SmartCropEdit(BaseEdit):
    op: Literal["smart_crop"] = "smart_crop"
    face_index: int = Field(default=0, ge=0)
    padding: int = Field(default=0, ge=0)


class StripExifEdit(BaseEdit):
    op: Literal["strip_exif"] = "strip_exif"


class UpscaleEdit(BaseEdit):
    op: Literal["upscale"] = "upscale"


Edit = Annotated[
    Union[
        ResizeEdit,
        CropEdit,
        RotateEdit,
        FlipEdit,
        FlopEdit,
        GrayscaleEdit,
        BlurEdit,
        SharpenEdit,
        NormalizeEdit,
        NegateEdit,
        TintEdit,
        QualityEdit,
        FormatEdit,
        OverlayEdit,
        SmartCropEdit,
        StripExifEdit,
        UpscaleEdit,
    ],
    Field(discriminator="op"),
]

Edits = Tuple[Edit, ...]

EDIT_TYPES: Dict[str, Type[BaseEdit]] = {
    edit_type.model_fields["op"].default: edit_type
    for edit_type in (
        ResizeEdit,
        CropEdit,
        RotateEdit,
        FlipEdit,
        FlopEdit,
        GrayscaleEdit,
        BlurEdit,
        SharpenEdit,
        NormalizeEdit,
        NegateEdit,
        TintEdit,
        QualityEdit,
        FormatEdit,
        OverlayEdit,
        SmartCropEdit,
        StripExifEdit,
        UpscaleEdit,
    )
}


def parameter_names(operation: str) -> List[str]:
    """Parameter names of an operation in positional order."""
    return [name for name in EDIT_TYPES[operation].model_fields if name != "op"]


def create_edit(operation: str, params: Optional[Dict[str, Any]] = None) -> BaseEdit:
    """
    Build a typed edit from an operation name and raw parameters.

    Raises:
        EditsError: INVALID_EDIT_OPERATION for unknown names,
            INVALID_EDIT_PARAMETER when a parameter fails validation.
    """
    edit_type = EDIT_TYPES.get(operation)
    if edit_type is None:
        raise EditsError(
            ErrorKind.INVALID_EDIT_OPERATION,
            f"Unknown edit operation '{operation}'.",
            operation=operation,
        )

    try:
        return edit_type(**(params or {}))
    except ValidationError as e:
        first = e.errors()[0]
        parameter = ".".join(str(part) for part in first["loc"]) or None
        raise EditsError(
            ErrorKind.INVALID_EDIT_PARAMETER,
            f"Invalid parameter '{parameter}' for edit '{operation}': {first['msg']}",
            operation=operation,
            parameter=parameter,
        ) from e
