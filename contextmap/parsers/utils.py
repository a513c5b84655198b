"""Shared helper utilities for the regex parsers and relationship scans."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from ..models import ClassInfo, Parameter

_OPENERS = {"(": ")", "[": "]", "{": "}", "<": ">"}

STATUS_DESCRIPTIONS: Dict[int, str] = {
    200: "OK",
    201: "Created",
    202: "Accepted",
    204: "No Content",
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
}

HTTP_METHODS: Tuple[str, ...] = ("GET", "POST", "PUT", "DELETE", "PATCH")


def status_description(status_code: int) -> str:
    return STATUS_DESCRIPTIONS.get(status_code, "Unknown Status")


# Source masking


def mask_comments(text: str, *, raw_quote: str | None = None) -> str:
    """Blank out comments while keeping offsets, newlines and string literals intact.

    ``raw_quote`` names a delimiter for raw strings that have no escapes
    (backticks in Go).
    """
    out: List[str] = []
    index = 0
    length = len(text)
    while index < length:
        char = text[index]
        nxt = text[index + 1] if index + 1 < length else ""
        if char == "/" and nxt == "/":
            end = text.find("\n", index)
            end = length if end == -1 else end
            out.append(" " * (end - index))
            index = end
        elif char == "/" and nxt == "*":
            end = text.find("*/", index + 2)
            end = length if end == -1 else end + 2
            out.append(_blank(text[index:end]))
            index = end
        elif char in {'"', "'"} or (raw_quote is not None and char == raw_quote):
            end = _string_end(text, index, escapes=char != raw_quote)
            out.append(text[index:end])
            index = end
        else:
            out.append(char)
            index += 1
    return "".join(out)


def _blank(segment: str) -> str:
    return "".join("\n" if ch == "\n" else " " for ch in segment)


def _string_end(text: str, start: int, *, escapes: bool) -> int:
    quote = text[start]
    index = start + 1
    while index < len(text):
        char = text[index]
        if escapes and char == "\\":
            index += 2
            continue
        if char == quote:
            return index + 1
        if char == "\n" and quote != "`":
            return index
        index += 1
    return len(text)


# Positions and balanced delimiters


def line_of(text: str, index: int) -> int:
    """Return 1-based line number for a character index."""
    return text.count("\n", 0, index) + 1


def balanced_end(text: str, open_index: int) -> int:
    """Return the index just past the delimiter closing the one at ``open_index``.

    Returns ``len(text)`` when the delimiter is never closed.
    """
    opener = text[open_index]
    closer = _OPENERS[opener]
    depth = 0
    index = open_index
    while index < len(text):
        char = text[index]
        if char in {'"', "'", "`"}:
            index = _string_end(text, index, escapes=char != "`")
            continue
        if char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return index + 1
        index += 1
    return len(text)


def balanced_inner(text: str, open_index: int) -> Tuple[str, int]:
    """Return the text inside a delimited group and the index past its closer."""
    end = balanced_end(text, open_index)
    return text[open_index + 1 : max(open_index + 1, end - 1)], end


def brace_depth(masked: str, start: int, index: int) -> int:
    return masked.count("{", start, index) - masked.count("}", start, index)


@dataclass
class TypeSpan:
    """A declared type together with the character range of its body."""

    info: ClassInfo
    body_start: int
    body_end: int

    def encloses(self, masked: str, index: int) -> bool:
        """True when ``index`` sits directly in this body, not in a nested block."""
        return self.body_start <= index < self.body_end and brace_depth(masked, self.body_start, index) == 0


def owner_of(types: List[TypeSpan], masked: str, index: int) -> Optional[TypeSpan]:
    for declared in reversed(types):
        if declared.encloses(masked, index):
            return declared
    return None


def annotation_name(annotation: str) -> str:
    """``@org.x.GetMapping("/a")`` -> ``GetMapping``; ``[HttpGet("a")]`` -> ``HttpGet``."""
    match = re.match(r"[@\[]\s*([\w.]+)", annotation)
    return match.group(1).split(".")[-1] if match else ""


def annotation_args(annotation: str) -> str:
    open_index = annotation.find("(")
    if open_index == -1:
        return ""
    inner, _ = balanced_inner(annotation, open_index)
    return inner


def first_string(text: str) -> Optional[str]:
    match = re.search(r"\"([^\"]*)\"", text)
    return match.group(1) if match else None


def split_top_level(text: str, separator: str = ",") -> List[str]:
    """Split on ``separator`` outside of (), [], {}, <> and string literals."""
    parts: List[str] = []
    depth = 0
    current: List[str] = []
    index = 0
    while index < len(text):
        char = text[index]
        if char in {'"', "'"}:
            end = _string_end(text, index, escapes=True)
            current.append(text[index:end])
            index = end
            continue
        if char in "([{<":
            depth += 1
        elif char in ")]}>":
            depth = max(0, depth - 1)
        elif char == separator and depth == 0:
            part = "".join(current).strip()
            if part:
                parts.append(part)
            current = []
            index += 1
            continue
        current.append(char)
        index += 1
    tail = "".join(current).strip()
    if tail:
        parts.append(tail)
    return parts


def preamble_start(masked: str, decl_index: int) -> int:
    """Find where the annotations/comments preceding a declaration begin.

    Walks backwards to the nearest ``;``, ``{`` or ``}`` that is not nested
    inside parentheses or brackets.
    """
    depth = 0
    index = decl_index - 1
    while index >= 0:
        char = masked[index]
        if char in ")]":
            depth += 1
        elif char in "([":
            depth -= 1
        elif depth <= 0 and char in ";{}":
            return index + 1
        index -= 1
    return 0


# Preamble parsing


@dataclass
class Preamble:
    """Annotations and doc comment text found above a declaration."""

    annotations: List[str] = field(default_factory=list)
    description: str = ""


def read_preamble(
    text: str,
    masked: str,
    decl_index: int,
    annotation_reader: Callable[[str], List[str]] | None = None,
    comment_cleaner: Callable[[str], str] | None = None,
) -> Preamble:
    start = preamble_start(masked, decl_index)
    masked_region = masked[start:decl_index]
    annotations = annotation_reader(masked_region) if annotation_reader else []
    comments = _comment_text(text[start:decl_index], masked_region)
    description = comment_cleaner(comments) if comment_cleaner else clean_comment(comments)
    return Preamble(annotations=annotations, description=description)


def _comment_text(original: str, masked: str) -> str:
    # Characters that masking blanked out are exactly the comment characters.
    chars = [
        orig if orig != mask or orig == "\n" else " "
        for orig, mask in zip(original, masked)
    ]
    return "".join(chars)


_COMMENT_MARKERS = re.compile(r"^\s*(?:/{2,3}|/\*\*?|\*/|\*)?\s?")


def clean_comment(raw: str) -> str:
    lines: List[str] = []
    for line in raw.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        stripped = stripped.replace("*/", "")
        stripped = _COMMENT_MARKERS.sub("", stripped, count=1).strip()
        if stripped:
            lines.append(stripped)
    return "\n".join(lines)


def read_java_annotations(region: str) -> List[str]:
    annotations: List[str] = []
    for match in re.finditer(r"@([A-Za-z_][\w.]*)", region):
        end = match.end()
        after = region[end:]
        stripped = after.lstrip()
        if stripped.startswith("("):
            open_index = end + (len(after) - len(stripped))
            close = balanced_end(region, open_index)
            annotations.append(re.sub(r"\s+", " ", region[match.start() : close]))
        else:
            annotations.append(match.group(0))
    return _drop_nested(annotations)


def _drop_nested(annotations: List[str]) -> List[str]:
    # Annotations captured inside another annotation's arguments are not top-level.
    result: List[str] = []
    for annotation in annotations:
        if any(annotation != other and annotation in other for other in result):
            continue
        result.append(annotation)
    return result


def read_csharp_attributes(region: str) -> List[str]:
    attributes: List[str] = []
    index = 0
    while index < len(region):
        if region[index] == "[":
            inner, end = balanced_inner(region, index)
            for part in split_top_level(inner):
                attributes.append(re.sub(r"\s+", " ", f"[{part}]"))
            index = end
            continue
        index += 1
    return attributes


# Endpoint helpers


def combine_paths(base_path: str, method_path: str) -> str:
    clean_base = (base_path or "").rstrip("/")
    clean_method = (method_path or "").lstrip("/")
    if not clean_base and not clean_method:
        return "/"
    if not clean_base:
        return f"/{clean_method}"
    if not clean_base.startswith("/"):
        clean_base = f"/{clean_base}"
    if not clean_method:
        return clean_base
    return f"{clean_base}/{clean_method}"


_COLON_PARAM = re.compile(r":(\w+)")
_BRACE_PARAM = re.compile(r"\{(\w+)(?::([^}]+))?\}")


def path_parameters(path: str, type_for: Callable[[Optional[str]], str] | None = None) -> List[Parameter]:
    parameters: List[Parameter] = []
    for match in _COLON_PARAM.finditer(path):
        if _inside_braces(path, match.start()):
            continue
        parameters.append(_path_parameter(match.group(1), "string"))
    for match in _BRACE_PARAM.finditer(path):
        constraint = match.group(2)
        param_type = type_for(constraint) if type_for else "string"
        parameters.append(_path_parameter(match.group(1), param_type))
    return parameters


def _inside_braces(path: str, index: int) -> bool:
    return path.rfind("{", 0, index) > path.rfind("}", 0, index)


def _path_parameter(name: str, param_type: str) -> Parameter:
    return Parameter(
        name=name,
        type=param_type,
        location="path",
        required=True,
        description=f"Path parameter: {name}",
    )


__all__ = [
    "HTTP_METHODS",
    "Preamble",
    "TypeSpan",
    "annotation_args",
    "annotation_name",
    "balanced_end",
    "balanced_inner",
    "brace_depth",
    "first_string",
    "clean_comment",
    "combine_paths",
    "line_of",
    "mask_comments",
    "owner_of",
    "path_parameters",
    "preamble_start",
    "read_csharp_attributes",
    "read_java_annotations",
    "read_preamble",
    "split_top_level",
    "status_description",
]
