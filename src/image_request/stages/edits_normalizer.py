"""Normalization of raw request edits into typed, ordered edit variants."""

from typing import Any, Callable, Dict, List, Optional, Sequence

from ..core.edits import (
    EDIT_TYPES,
    BaseEdit,
    Edits,
    FlipEdit,
    FlopEdit,
    FormatEdit,
    OverlayEdit,
    ResizeEdit,
    create_edit,
    parameter_names,
)
from ..core.exceptions import EditsError, ErrorKind
from ..core.models import RawRequest, RequestType
from ..core.observability import LogContext
from ..core.protocols import LoggerProtocol
from ..core.settings import HandlerSettings
from .tokens import (
    CROP_PATTERN,
    FILTERS_PREFIX,
    FIT_IN_TOKENS,
    SIZE_PATTERN,
    parse_call,
    split_calls,
)

# Sharp-style names accepted in Default requests and Custom calls
OPERATION_ALIASES = {
    "greyscale": "grayscale",
    "toFormat": "format",
    "overlayWith": "overlay",
    "smartCrop": "smart_crop",
    "extract": "crop",
    "stripExif": "strip_exif",
}

# Single argument accepted by operations that have no parameters
TRUE_ARGUMENTS = frozenset({"true", "1", "yes", "on"})
FALSE_ARGUMENTS = frozenset({"false", "0", "no", "off"})

PARAMETER_ALIASES = {
    "faceIndex": "face_index",
    "wRatio": "width_ratio",
    "hRatio": "height_ratio",
    "widthRatio": "width_ratio",
    "heightRatio": "height_ratio",
    "r": "red",
    "g": "green",
    "b": "blue",
}


class EditsNormalizer:
    """
    Maps Default, Thumbor and Custom edits onto the typed edit variants.

    Thumbor tokens that are not understood are dropped with a warning so
    partially supported Thumbor URLs keep working; Default and Custom edits
    fail on anything unknown.
    """

    def __init__(self, settings: HandlerSettings, logger: LoggerProtocol):
        self._settings = settings
        self._logger = logger
        self._normalizers: Dict[RequestType, Callable[[RawRequest, Optional[LogContext]], List[BaseEdit]]] = {
            RequestType.DEFAULT: self._normalize_default,
            RequestType.THUMBOR: self._normalize_thumbor,
            RequestType.CUSTOM: self._normalize_custom,
        }

    def normalize(self, raw_request: RawRequest, context: Optional[LogContext] = None) -> Edits:
        """
        Build the ordered edits tuple for a decoded request.

        Raises:
            EditsError: INVALID_EDIT_OPERATION, INVALID_EDIT_PARAMETER or
                CANNOT_ACCESS_BUCKET for an overlay from a foreign bucket.
        """
        edits = self._normalizers[raw_request.request_type](raw_request, context)

        for edit in edits:
            if isinstance(edit, OverlayEdit) and not self._settings.is_bucket_allowed(edit.bucket):
                raise EditsError(
                    ErrorKind.CANNOT_ACCESS_BUCKET,
                    f"The overlay bucket '{edit.bucket}' is not in the list of allowed source buckets.",
                    operation="overlay",
                    parameter="bucket",
                )
        return tuple(edits)

    # Default

    def _normalize_default(self, raw_request: RawRequest, context: Optional[LogContext]) -> List[BaseEdit]:
        edits: List[BaseEdit] = []
        for name, value in dict(raw_request.raw_edits).items():
            operation = OPERATION_ALIASES.get(name, name)
            if operation not in EDIT_TYPES:
                raise EditsError(
                    ErrorKind.INVALID_EDIT_OPERATION,
                    f"Unknown edit operation '{name}'.",
                    operation=name,
                )
            if value is False or (value is None and operation != "rotate"):
                self._logger.debug(f"Skipping disabled edit '{name}'", context)
                continue
            edits.append(create_edit(operation, self._default_params(operation, value)))

        if raw_request.explicit_output_format and not any(isinstance(e, FormatEdit) for e in edits):
            edits.append(create_edit("format", {"format": raw_request.explicit_output_format}))
        return edits

    def _default_params(self, operation: str, value: Any) -> Dict[str, Any]:
        if value is True:
            return {}
        if isinstance(value, dict):
            params = {PARAMETER_ALIASES.get(k, k): v for k, v in value.items()}
            if operation == "overlay" and isinstance(params.get("options"), dict):
                options = params.pop("options")
                params.setdefault("x", options.get("left"))
                params.setdefault("y", options.get("top"))
            return params
        if isinstance(value, (list, tuple)):
            return _positional_params(operation, list(value))
        return _positional_params(operation, [value])

    # Thumbor

    def _normalize_thumbor(self, raw_request: RawRequest, context: Optional[LogContext]) -> List[BaseEdit]:
        edits: List[BaseEdit] = []
        pending_fit: Optional[str] = None

        for token in raw_request.raw_edits:
            if token in FIT_IN_TOKENS:
                pending_fit = FIT_IN_TOKENS[token]
                continue

            size = SIZE_PATTERN.fullmatch(token)
            if size and (size.group(2) or size.group(4)):
                edits.extend(_thumbor_resize(size.groups(), pending_fit or "cover"))
                pending_fit = None
            elif CROP_PATTERN.fullmatch(token):
                edits.append(_thumbor_crop(token))
            elif token == "smart":
                edits.append(create_edit("smart_crop"))
            elif token.startswith(FILTERS_PREFIX):
                for call in split_calls(token[len(FILTERS_PREFIX):]):
                    self._apply_thumbor_filter(call, edits, context)
            else:
                self._drop(f"Dropping unsupported Thumbor option '{token}'", context)

        if pending_fit:
            self._drop("Dropping fit-in option without a size", context)
        return edits

    def _apply_thumbor_filter(self, call: str, edits: List[BaseEdit], context: Optional[LogContext]) -> None:
        parsed = parse_call(call)
        if parsed is None:
            self._drop(f"Dropping malformed Thumbor filter '{call}'", context)
            return
        name, args = parsed

        if name == "stretch":
            for index in range(len(edits) - 1, -1, -1):
                if isinstance(edits[index], ResizeEdit):
                    edits[index] = edits[index].model_copy(update={"fit": "fill"})
                    return
            self._drop("Dropping stretch filter without a size", context)
            return

        mapper = THUMBOR_FILTERS.get(name)
        if mapper is None:
            self._drop(f"Dropping unsupported Thumbor filter '{name}'", context)
            return
        edits.append(mapper(args))

    def _drop(self, message: str, context: Optional[LogContext]) -> None:
        self._logger.warning(message, context)

    # Custom

    def _normalize_custom(self, raw_request: RawRequest, context: Optional[LogContext]) -> List[BaseEdit]:
        edits: List[BaseEdit] = []
        for token in raw_request.raw_edits:
            body = token[len(FILTERS_PREFIX):] if token.startswith(FILTERS_PREFIX) else token
            for call in split_calls(body):
                parsed = parse_call(call)
                if parsed is None:
                    raise EditsError(
                        ErrorKind.INVALID_EDIT_OPERATION,
                        f"'{call}' is not an edit call of the form name(arguments).",
                        operation=call,
                    )
                name, args = parsed
                operation = OPERATION_ALIASES.get(name, name)
                toggle = _toggle_argument(operation, args)
                if toggle is False:
                    continue
                params = {} if toggle else _positional_params(operation, args)
                edits.append(create_edit(operation, params))
        return edits


def _positional_params(operation: str, args: Sequence[Any]) -> Dict[str, Any]:
    """
    Map positional arguments onto the operation's parameters.

    Empty string arguments count as not given.
    """
    if operation not in EDIT_TYPES:
        raise EditsError(
            ErrorKind.INVALID_EDIT_OPERATION,
            f"Unknown edit operation '{operation}'.",
            operation=operation,
        )
    names = parameter_names(operation)
    if len(args) > len(names):
        raise EditsError(
            ErrorKind.INVALID_EDIT_PARAMETER,
            f"Edit '{operation}' takes at most {len(names)} argument(s), got {len(args)}.",
            operation=operation,
        )
    return {name: arg for name, arg in zip(names, args) if arg != ""}


def _toggle_argument(operation: str, args: Sequence[str]) -> Optional[bool]:
    """
    Read a single boolean argument given to an operation without parameters.

    `strip_exif(true)` applies the edit and `grayscale(false)` skips it. Returns
    None when the call is not of that shape.
    """
    if operation not in EDIT_TYPES or parameter_names(operation) or len(args) != 1:
        return None
    value = args[0].strip().lower()
    if value in TRUE_ARGUMENTS:
        return True
    if value in FALSE_ARGUMENTS:
        return False
    raise EditsError(
        ErrorKind.INVALID_EDIT_PARAMETER,
        f"Edit '{operation}' takes no parameters or a single boolean, got '{args[0]}'.",
        operation=operation,
    )


def _number(operation: str, parameter: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as e:
        raise EditsError(
            ErrorKind.INVALID_EDIT_PARAMETER,
            f"Invalid parameter '{parameter}' for edit '{operation}': '{value}' is not a number",
            operation=operation,
            parameter=parameter,
        ) from e


def _thumbor_resize(groups: Sequence[str], fit: str) -> List[BaseEdit]:
    flop_sign, width, flip_sign, height = groups
    edits: List[BaseEdit] = [
        create_edit("resize", {"width": int(width or 0), "height": int(height or 0), "fit": fit})
    ]
    if flop_sign:
        edits.append(FlopEdit())
    if flip_sign:
        edits.append(FlipEdit())
    return edits


def _thumbor_crop(token: str) -> BaseEdit:
    left, top, right, bottom = (int(v) for v in CROP_PATTERN.fullmatch(token).groups())
    return create_edit(
        "crop", {"left": left, "top": top, "width": right - left, "height": bottom - top}
    )


def _thumbor_blur(args: List[str]) -> BaseEdit:
    if not args or not args[0]:
        return create_edit("blur", {})
    radius = _number("blur", "radius", args[0])
    sigma = _number("blur", "sigma", args[1]) if len(args) > 1 and args[1] else radius / 2
    return create_edit("blur", {"sigma": max(sigma, 0.3)})


def _thumbor_sharpen(args: List[str]) -> BaseEdit:
    # sharpen(amount, radius, luminance_only): only the radius maps onto sigma
    if len(args) > 1 and args[1]:
        return create_edit("sharpen", {"sigma": _number("sharpen", "radius", args[1])})
    return create_edit("sharpen")


THUMBOR_FILTERS: Dict[str, Callable[[List[str]], BaseEdit]] = {
    "grayscale": lambda args: create_edit("grayscale"),
    "equalize": lambda args: create_edit("normalize"),
    "strip_exif": lambda args: create_edit("strip_exif"),
    "upscale": lambda args: create_edit("upscale"),
    "blur": _thumbor_blur,
    "sharpen": _thumbor_sharpen,
    "quality": lambda args: create_edit("quality", _positional_params("quality", args)),
    "format": lambda args: create_edit("format", _positional_params("format", args)),
    "rotate": lambda args: create_edit("rotate", _positional_params("rotate", args)),
    "watermark": lambda args: create_edit("overlay", _positional_params("overlay", args)),
}
