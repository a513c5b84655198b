"""Go structural fact parser (Gin, Echo, Fiber, chi and net/http routes)."""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

from ..models import ApiEndpoint, ClassInfo, FunctionInfo, Parameter, PropertyInfo, ResponseInfo
from .base import BaseParser
from .utils import (
    HTTP_METHODS,
    balanced_inner,
    combine_paths,
    line_of,
    mask_comments,
    path_parameters,
    split_top_level,
    status_description,
)

_FRAMEWORK_IMPORTS: Tuple[Tuple[str, str], ...] = (
    ("github.com/gin-gonic/gin", "gin"),
    ("github.com/labstack/echo", "echo"),
    ("github.com/gofiber/fiber", "fiber"),
    ("github.com/go-chi/chi", "chi"),
)

_ROUTE = re.compile(r"\b(\w+)\.(\w+)\(\s*\"([^\"]+)\"\s*,\s*([^)]+)\)")
_HANDLE_FUNC = re.compile(r"\bhttp\.HandleFunc\(\s*\"([^\"]+)\"\s*,\s*([^)]+)\)")
_GROUP = re.compile(r"\b(\w+)\s*:?=\s*(\w+)\.Group\(\s*\"([^\"]*)\"")
_TYPE_DECL = re.compile(r"\btype\s+(\w+)\s+(struct|interface)\s*\{")
_FUNC = re.compile(r"\bfunc\s*(?:\(\s*(?:\w+\s+)?\*?(\w+)(?:\[[^\]]*\])?\s*\)\s*)?(\w+)\s*(?:\[[^\]]*\])?\(")
_JSON_RESPONSE = re.compile(r"\b\w+\.JSON\(\s*(http\.Status\w+|\d+)\s*,\s*([^)]*)")
_FIELD = re.compile(r"^(\w+(?:\s*,\s*\w+)*)\s+(.+)$")
_TAG = re.compile(r"`([^`]*)`")

_STATUS_CONSTANTS: Dict[str, int] = {
    "StatusOK": 200,
    "StatusCreated": 201,
    "StatusAccepted": 202,
    "StatusNoContent": 204,
    "StatusBadRequest": 400,
    "StatusUnauthorized": 401,
    "StatusForbidden": 403,
    "StatusNotFound": 404,
    "StatusConflict": 409,
    "StatusUnprocessableEntity": 422,
    "StatusInternalServerError": 500,
}


class GoParser(BaseParser):
    """Extracts routes, structs, interfaces and functions from Go files."""

    language = "go"
    extensions = (".go",)

    def extract_endpoints(self, content: str, file_path: str) -> List[ApiEndpoint]:
        masked = mask_comments(content, raw_quote="`")
        lines = content.splitlines()
        framework = _detect_framework(masked)
        prefixes = _group_prefixes(masked)

        endpoints: List[ApiEndpoint] = []
        for match in _ROUTE.finditer(masked):
            router, method, path, handler = match.groups()
            http_method = method.upper()
            if http_method not in HTTP_METHODS:
                continue
            full_path = combine_paths(prefixes.get(router, ""), path)
            endpoints.append(
                self._endpoint(masked, lines, match.start(), http_method, full_path, handler, framework, file_path)
            )

        for match in _HANDLE_FUNC.finditer(masked):
            path, handler = match.groups()
            endpoints.append(
                self._endpoint(masked, lines, match.start(), "GET", path, handler, "net/http", file_path)
            )
        return endpoints

    def _endpoint(
        self,
        masked: str,
        lines: List[str],
        index: int,
        method: str,
        path: str,
        handler: str,
        framework: str,
        file_path: str,
    ) -> ApiEndpoint:
        line_number = line_of(masked, index)
        description = doc_comment(lines, line_number)
        return ApiEndpoint(
            method=method,
            path=path,
            description=description or f"{method} {path}",
            file_name=file_path,
            line_number=line_number,
            parameters=path_parameters(path),
            responses=_handler_responses(masked, handler),
            tags=[framework],
        )

    def extract_classes(self, content: str) -> List[ClassInfo]:
        masked = mask_comments(content, raw_quote="`")
        lines = content.splitlines()
        classes: List[ClassInfo] = []
        by_name: Dict[str, ClassInfo] = {}
        for match in _TYPE_DECL.finditer(masked):
            name, kind = match.groups()
            body, _ = balanced_inner(masked, match.end() - 1)
            line_number = line_of(masked, match.start())
            info = ClassInfo(
                name=name,
                description=doc_comment(lines, line_number) or f"{kind.title()}: {name}",
                line_number=line_number,
                properties=_struct_fields(body) if kind == "struct" else [],
                annotations=[kind],
            )
            classes.append(info)
            by_name.setdefault(name, info)

        for function in self._iter_functions(masked, lines):
            receiver, info = function
            if receiver and receiver in by_name:
                by_name[receiver].methods.append(info)
        return classes

    def extract_functions(self, content: str) -> List[FunctionInfo]:
        masked = mask_comments(content, raw_quote="`")
        lines = content.splitlines()
        return [info for _, info in self._iter_functions(masked, lines)]

    def _iter_functions(self, masked: str, lines: List[str]) -> List[Tuple[Optional[str], FunctionInfo]]:
        functions: List[Tuple[Optional[str], FunctionInfo]] = []
        for match in _FUNC.finditer(masked):
            receiver, name = match.groups()
            params, end = balanced_inner(masked, match.end() - 1)
            line_end = masked.find("\n", end)
            signature_tail = masked[end : len(masked) if line_end == -1 else line_end]
            return_type = signature_tail.split("{", 1)[0].strip()
            line_number = line_of(masked, match.start())
            functions.append(
                (
                    receiver,
                    FunctionInfo(
                        name=name,
                        description=doc_comment(lines, line_number) or f"Function: {name}",
                        line_number=line_number,
                        parameters=_function_parameters(params),
                        return_type=return_type or "void",
                        annotations=[f"receiver:{receiver}"] if receiver else [],
                    ),
                )
            )
        return functions


def doc_comment(lines: List[str], line_number: int) -> str:
    """Return the ``//`` comment block directly above a 1-based line."""
    collected: List[str] = []
    index = line_number - 2
    while index >= 0:
        stripped = lines[index].strip()
        if stripped.startswith("//"):
            collected.append(stripped[2:].strip())
        elif stripped.startswith("/*") and stripped.endswith("*/"):
            collected.append(stripped[2:-2].strip())
        else:
            break
        index -= 1
    return "\n".join(reversed([line for line in collected if line]))


def _detect_framework(masked: str) -> str:
    for import_path, name in _FRAMEWORK_IMPORTS:
        if import_path in masked:
            return name
    return "router"


def _group_prefixes(masked: str) -> Dict[str, str]:
    prefixes: Dict[str, str] = {}
    for match in _GROUP.finditer(masked):
        variable, parent, prefix = match.groups()
        prefixes[variable] = combine_paths(prefixes.get(parent, ""), prefix)
    return prefixes


def _struct_fields(body: str) -> List[PropertyInfo]:
    fields: List[PropertyInfo] = []
    for raw_line in body.splitlines():
        line = raw_line.strip()
        if not line or line in {"}", "{"}:
            continue
        tag_match = _TAG.search(line)
        tag = tag_match.group(1) if tag_match else None
        declaration = _TAG.sub("", line).strip()
        annotations = [tag] if tag else []
        description = f"Tag: {tag}" if tag else ""

        field_match = _FIELD.match(declaration)
        if field_match is None:
            # Embedded type: the type name doubles as the field name.
            type_name = declaration.split()[0] if declaration else ""
            if not type_name:
                continue
            fields.append(
                PropertyInfo(
                    name=type_name.lstrip("*").split(".")[-1],
                    type=type_name,
                    description=description,
                    annotations=["embedded", *annotations],
                )
            )
            continue
        names, field_type = field_match.groups()
        for name in (part.strip() for part in names.split(",")):
            fields.append(
                PropertyInfo(name=name, type=field_type.strip(), description=description, annotations=list(annotations))
            )
    return fields


def _function_parameters(params: str) -> List[Parameter]:
    parameters: List[Parameter] = []
    pending: List[str] = []
    for part in split_top_level(params):
        tokens = part.split(None, 1)
        if len(tokens) == 2:
            name, param_type = tokens
            for grouped in pending:
                parameters.append(_parameter(grouped, param_type))
            pending = []
            parameters.append(_parameter(name, param_type))
        else:
            pending.append(tokens[0])
    for param_type in pending:
        parameters.append(_parameter("", param_type))
    return parameters


def _parameter(name: str, param_type: str) -> Parameter:
    return Parameter(
        name=name,
        type=param_type.strip(),
        location="body",
        required=True,
        description=f"Parameter: {name}" if name else f"Parameter of type {param_type.strip()}",
    )


def _handler_responses(masked: str, handler: str) -> List[ResponseInfo]:
    handler = handler.strip()
    responses: List[ResponseInfo] = []
    name_match = re.search(r"(\w+)\s*$", handler)
    if name_match and not handler.startswith("func"):
        body = _function_body(masked, name_match.group(1))
        seen: set[int] = set()
        for response in _JSON_RESPONSE.finditer(body or ""):
            status_code = _status_code(response.group(1))
            if status_code in seen:
                continue
            seen.add(status_code)
            responses.append(
                ResponseInfo(
                    status_code=status_code,
                    description=status_description(status_code),
                    schema=_response_schema(response.group(2)),
                )
            )
    if not responses:
        responses.append(ResponseInfo(status_code=200, description="Success"))
    return responses


def _function_body(masked: str, name: str) -> Optional[str]:
    pattern = re.compile(r"\bfunc\s*(?:\([^)]*\)\s*)?" + re.escape(name) + r"\s*\(")
    match = pattern.search(masked)
    if match is None:
        return None
    _, params_end = balanced_inner(masked, match.end() - 1)
    brace = masked.find("{", params_end)
    if brace == -1:
        return None
    body, _ = balanced_inner(masked, brace)
    return body


def _status_code(token: str) -> int:
    if token.isdigit():
        return int(token)
    return _STATUS_CONSTANTS.get(token.split(".", 1)[-1], 200)


def _response_schema(data: str) -> Dict[str, str]:
    if "struct" in data or "map" in data or "gin.H" in data:
        return {"type": "object"}
    if "[]" in data:
        return {"type": "array"}
    if data.strip().startswith('"'):
        return {"type": "string"}
    return {"type": "object"}


__all__ = ["GoParser", "doc_comment"]
