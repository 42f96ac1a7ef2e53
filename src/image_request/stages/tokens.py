"""Tokenizing helpers for segmented request paths and the filter call syntax."""

import re
from typing import List, Optional, Tuple

CALL_PATTERN = re.compile(r"([A-Za-z_][A-Za-z0-9_]*)\((.*)\)", re.DOTALL)

FILTERS_PREFIX = "filters:"

FIT_IN_TOKENS = {
    "fit-in": "inside",
    "adaptive-fit-in": "inside",
    "full-fit-in": "outside",
    "adaptive-full-fit-in": "outside",
}
KEYWORD_TOKENS = {"smart", "meta", "debug", "left", "right", "center", "top", "middle", "bottom"}
SIZE_PATTERN = re.compile(r"(-?)(\d*)x(-?)(\d*)")
CROP_PATTERN = re.compile(r"(\d+)x(\d+):(\d+)x(\d+)")
TRIM_PATTERN = re.compile(r"trim(:.*)?")


def _split_top_level(text: str, separator: str) -> List[str]:
    """Split on `separator` outside parentheses and quotes."""
    parts: List[str] = []
    depth = 0
    quote: Optional[str] = None
    current: List[str] = []
    for char in text:
        if quote:
            if char == quote:
                quote = None
        elif char in "'\"":
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth = max(depth - 1, 0)
        elif char == separator and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    parts.append("".join(current))
    return parts


def split_segments(path: str) -> List[str]:
    """Split a path on `/`, keeping call arguments that contain `/` intact."""
    return _split_top_level(path, "/")


def split_calls(chain: str) -> List[str]:
    """Split `a():b(1)` style chains into individual calls."""
    return [call for call in _split_top_level(chain, ":") if call]


def parse_call(token: str) -> Optional[Tuple[str, List[str]]]:
    """
    Parse `name(arg, 'arg', ...)` into its name and raw string arguments.

    Surrounding quotes are removed from arguments; an empty argument list
    yields no arguments. Returns None when the token is not a call.
    """
    match = CALL_PATTERN.fullmatch(token.strip())
    if not match:
        return None
    name, body = match.groups()
    if not _balanced(body):
        return None
    if not body.strip():
        return name, []
    return name, [_unquote(arg.strip()) for arg in _split_top_level(body, ",")]


def _balanced(body: str) -> bool:
    depth = 0
    for char in body:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
        return value[1:-1]
    return value


def is_size_token(token: str) -> bool:
    match = SIZE_PATTERN.fullmatch(token)
    return bool(match) and bool(match.group(2) or match.group(4))


def is_bare_call(token: str) -> bool:
    """A Custom DSL call: `name(...)` with no `filters:` prefix."""
    return not token.startswith(FILTERS_PREFIX) and parse_call(token) is not None


def is_option_token(token: str) -> bool:
    """True for any segment that encodes an edit rather than the bucket or key."""
    return (
        token in FIT_IN_TOKENS
        or token in KEYWORD_TOKENS
        or token.startswith(FILTERS_PREFIX)
        or is_size_token(token)
        or CROP_PATTERN.fullmatch(token) is not None
        or TRIM_PATTERN.fullmatch(token) is not None
        or is_bare_call(token)
    )
