"""Java structural fact parser (Spring MVC and JAX-RS)."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..models import ApiEndpoint, ClassInfo, FunctionInfo, Parameter, PropertyInfo, RequestBody, ResponseInfo
from .base import BaseParser
from .utils import (
    TypeSpan,
    annotation_args,
    annotation_name,
    balanced_end,
    balanced_inner,
    clean_comment,
    combine_paths,
    first_string,
    line_of,
    mask_comments,
    owner_of,
    read_java_annotations,
    read_preamble,
    split_top_level,
    status_description,
)

_MODIFIERS = frozenset(
    {
        "public",
        "private",
        "protected",
        "static",
        "final",
        "abstract",
        "synchronized",
        "default",
        "native",
        "transient",
        "volatile",
        "strictfp",
    }
)
_STATEMENT_WORDS = frozenset(
    {"return", "new", "throw", "else", "if", "for", "while", "switch", "catch", "case", "do", "try", "yield"}
)

_TYPE_DECL = re.compile(
    r"\b((?:(?:public|private|protected|abstract|final|static|sealed|strictfp)\s+)*)"
    r"(class|interface|enum|record)\s+(\w+)"
)
_METHOD = re.compile(
    r"^[ \t]*(?:@[\w.]+(?:\([^)]*\))?\s+)*"
    r"((?:\w+\s+)*?)"
    r"(?:<[^>]+>\s+)?"
    r"([\w.]+(?:<[^;{}()]*>)?(?:\[\])*)\s+(\w+)\s*\(",
    re.MULTILINE,
)
_FIELD = re.compile(
    r"^[ \t]*(?:@[\w.]+(?:\([^)]*\))?\s+)*"
    r"((?:\w+\s+)*?)"
    r"([\w.]+(?:<[^;=(){}]*>)?(?:\[\])*)\s+(\w+)\s*(?:=[^;]*)?;",
    re.MULTILINE,
)

_SPRING_MAPPINGS: Dict[str, Optional[str]] = {
    "GetMapping": "GET",
    "PostMapping": "POST",
    "PutMapping": "PUT",
    "DeleteMapping": "DELETE",
    "PatchMapping": "PATCH",
    "RequestMapping": None,
}
_JAXRS_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH")

_PARAM_LOCATIONS: Dict[str, str] = {
    "PathVariable": "path",
    "PathParam": "path",
    "RequestParam": "query",
    "QueryParam": "query",
    "RequestHeader": "header",
    "HeaderParam": "header",
}

_FACTORY_STATUS: Dict[str, int] = {
    "ok": 200,
    "created": 201,
    "accepted": 202,
    "noContent": 204,
    "badRequest": 400,
    "notFound": 404,
    "unprocessableEntity": 422,
    "internalServerError": 500,
}
_HTTP_STATUS: Dict[str, int] = {
    "OK": 200,
    "CREATED": 201,
    "ACCEPTED": 202,
    "NO_CONTENT": 204,
    "BAD_REQUEST": 400,
    "UNAUTHORIZED": 401,
    "FORBIDDEN": 403,
    "NOT_FOUND": 404,
    "CONFLICT": 409,
    "UNPROCESSABLE_ENTITY": 422,
    "INTERNAL_SERVER_ERROR": 500,
}
_RESPONSE_CALL = re.compile(r"\bResponseEntity\s*\.\s*(\w+)\s*\(|\bHttpStatus\.(\w+)")


@dataclass
class _ParamDecl:
    name: str
    type: str
    annotations: List[str] = field(default_factory=list)


@dataclass
class _MethodDecl:
    info: FunctionInfo
    index: int
    params: List[_ParamDecl]
    body: Optional[str]
    doc: str = ""


class JavaParser(BaseParser):
    """Extracts Spring/JAX-RS endpoints, classes and methods from Java files."""

    language = "java"
    extensions = (".java",)

    def extract_endpoints(self, content: str, file_path: str) -> List[ApiEndpoint]:
        masked = mask_comments(content)
        types = self._types(content, masked)
        endpoints: List[ApiEndpoint] = []
        for method in self._methods(content, masked, types):
            owner = owner_of(types, masked, method.index)
            endpoint = self._endpoint(method, owner, file_path)
            if endpoint is not None:
                endpoints.append(endpoint)
        return endpoints

    def extract_classes(self, content: str) -> List[ClassInfo]:
        masked = mask_comments(content)
        types = self._types(content, masked)
        self._methods(content, masked, types)
        return [declared.info for declared in types]

    def extract_functions(self, content: str) -> List[FunctionInfo]:
        masked = mask_comments(content)
        types = self._types(content, masked)
        return [method.info for method in self._methods(content, masked, types)]

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _types(self, content: str, masked: str) -> List[TypeSpan]:
        types: List[TypeSpan] = []
        for match in _TYPE_DECL.finditer(masked):
            kind, name = match.group(2), match.group(3)
            brace = masked.find("{", match.end())
            if brace == -1 or ";" in masked[match.end() : brace]:
                continue
            preamble = read_preamble(content, masked, match.start(), read_java_annotations, clean_javadoc)
            info = ClassInfo(
                name=name,
                description=preamble.description or f"{kind.title()}: {name}",
                line_number=line_of(masked, match.start()),
                properties=[],
                annotations=preamble.annotations,
            )
            declared = TypeSpan(info=info, body_start=brace + 1, body_end=balanced_end(masked, brace))
            info.properties = self._fields(content, masked, declared)
            types.append(declared)
        return types

    def _fields(self, content: str, masked: str, declared: TypeSpan) -> List[PropertyInfo]:
        properties: List[PropertyInfo] = []
        for match in _FIELD.finditer(masked, declared.body_start, declared.body_end):
            modifiers, field_type, name = match.groups()
            if field_type in _STATEMENT_WORDS or field_type in _MODIFIERS or not declared.encloses(masked, match.start()):
                continue
            if any(word not in _MODIFIERS for word in modifiers.split()):
                continue
            preamble = read_preamble(content, masked, match.start(1), read_java_annotations, clean_javadoc)
            properties.append(
                PropertyInfo(
                    name=name,
                    type=field_type,
                    description=preamble.description,
                    annotations=preamble.annotations,
                )
            )
        return properties

    def _methods(self, content: str, masked: str, types: List[TypeSpan]) -> List[_MethodDecl]:
        methods: List[_MethodDecl] = []
        for match in _METHOD.finditer(masked):
            modifiers, return_type, name = match.groups()
            if return_type in _STATEMENT_WORDS or return_type in _MODIFIERS or name in _STATEMENT_WORDS:
                continue
            if any(word not in _MODIFIERS for word in modifiers.split()):
                continue
            owner = owner_of(types, masked, match.start())
            if owner is None:
                continue
            params_text, params_end = balanced_inner(masked, match.end() - 1)
            body = _method_body(masked, params_end)
            decl_index = match.start(1) if modifiers else match.start(2)
            preamble = read_preamble(content, masked, decl_index, read_java_annotations, clean_javadoc)
            params = _parse_params(params_text)
            info = FunctionInfo(
                name=name,
                description=preamble.description or f"Method: {name}",
                line_number=line_of(masked, match.start(2)),
                parameters=[
                    Parameter(name=param.name, type=param.type, location="body", description=f"Parameter: {param.name}")
                    for param in params
                ],
                return_type=return_type,
                annotations=preamble.annotations,
            )
            owner.info.methods.append(info)
            methods.append(
                _MethodDecl(info=info, index=match.start(), params=params, body=body, doc=preamble.description)
            )
        return methods

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    def _endpoint(self, method: _MethodDecl, owner: Optional[TypeSpan], file_path: str) -> Optional[ApiEndpoint]:
        info = method.info
        class_annotations = owner.info.annotations if owner else []
        route = _spring_route(info.annotations)
        framework = "spring"
        prefix = _spring_prefix(class_annotations)
        if route is None:
            route = _jaxrs_route(info.annotations)
            framework = "jax-rs"
            prefix = _jaxrs_prefix(class_annotations)
        if route is None:
            return None
        http_method, method_path = route
        path = combine_paths(prefix, method_path)

        parameters: List[Parameter] = []
        request_body: Optional[RequestBody] = None
        for param in method.params:
            names = [annotation_name(annotation) for annotation in param.annotations]
            if "RequestBody" in names:
                request_body = RequestBody(content_type="application/json", schema={"type": param.type})
                continue
            for annotation, annotation_kind in zip(param.annotations, names):
                location = _PARAM_LOCATIONS.get(annotation_kind)
                if location is None:
                    continue
                args = annotation_args(annotation)
                required = location == "path" or not (
                    re.search(r"required\s*=\s*false", args) or "defaultValue" in args
                )
                parameters.append(
                    Parameter(
                        name=_explicit_name(args) or param.name,
                        type=param.type,
                        location=location,
                        required=required,
                        description=f"{location.title()} parameter: {param.name}",
                    )
                )
                break

        return ApiEndpoint(
            method=http_method,
            path=path,
            description=method.doc or f"{http_method} {path}",
            file_name=file_path,
            line_number=info.line_number,
            parameters=parameters,
            request_body=request_body,
            responses=_responses(method, info.return_type),
            tags=[framework, owner.info.name] if owner else [framework],
        )


def clean_javadoc(raw: str) -> str:
    """Javadoc text without ``@param``-style block tags."""
    return "\n".join(line for line in clean_comment(raw).splitlines() if not line.startswith("@"))


def _method_body(masked: str, params_end: int) -> Optional[str]:
    brace = masked.find("{", params_end)
    semicolon = masked.find(";", params_end)
    if brace == -1 or (semicolon != -1 and semicolon < brace):
        return None
    body, _ = balanced_inner(masked, brace)
    return body


def _parse_params(params_text: str) -> List[_ParamDecl]:
    params: List[_ParamDecl] = []
    for part in split_top_level(params_text):
        annotations = read_java_annotations(part)
        remainder = re.sub(r"@[\w.]+(?:\s*\([^)]*\))?", " ", part)
        tokens = [token for token in remainder.split() if token != "final"]
        if len(tokens) < 2:
            continue
        params.append(_ParamDecl(name=tokens[-1], type=" ".join(tokens[:-1]), annotations=annotations))
    return params


def _mapping_path(args: str) -> str:
    explicit = re.search(r"\b(?:path|value)\s*=\s*\{?\s*\"([^\"]*)\"", args)
    if explicit:
        return explicit.group(1)
    if re.match(r"\s*\{?\s*\"", args):
        return first_string(args) or ""
    return ""


def _spring_route(annotations: List[str]) -> Optional[Tuple[str, str]]:
    for annotation in annotations:
        name = annotation_name(annotation)
        if name not in _SPRING_MAPPINGS:
            continue
        args = annotation_args(annotation)
        http_method = _SPRING_MAPPINGS[name]
        if http_method is None:
            verb = re.search(r"RequestMethod\.(\w+)", args)
            http_method = verb.group(1).upper() if verb else "GET"
        return http_method, _mapping_path(args)
    return None


def _spring_prefix(class_annotations: List[str]) -> str:
    for annotation in class_annotations:
        if annotation_name(annotation) == "RequestMapping":
            return _mapping_path(annotation_args(annotation))
    return ""


def _jaxrs_route(annotations: List[str]) -> Optional[Tuple[str, str]]:
    names = [annotation_name(annotation) for annotation in annotations]
    http_method = next((name for name in names if name in _JAXRS_METHODS), None)
    if http_method is None:
        return None
    return http_method, _jaxrs_prefix(annotations)


def _jaxrs_prefix(annotations: List[str]) -> str:
    for annotation in annotations:
        if annotation_name(annotation) == "Path":
            return first_string(annotation_args(annotation)) or ""
    return ""


def _explicit_name(args: str) -> Optional[str]:
    named = re.search(r"\b(?:name|value)\s*=\s*\"([^\"]*)\"", args)
    if named:
        return named.group(1)
    if re.match(r"\s*\"", args):
        return first_string(args)
    return None


def _responses(method: _MethodDecl, return_type: str) -> List[ResponseInfo]:
    responses: List[ResponseInfo] = []
    seen: set[int] = set()

    def _add(status_code: int) -> None:
        if status_code in seen:
            return
        seen.add(status_code)
        responses.append(
            ResponseInfo(
                status_code=status_code,
                description=status_description(status_code),
                schema=_schema_for(return_type) if status_code < 300 else None,
            )
        )

    for annotation in method.info.annotations:
        if annotation_name(annotation) == "ResponseStatus":
            status = re.search(r"HttpStatus\.(\w+)", annotation)
            if status and status.group(1) in _HTTP_STATUS:
                _add(_HTTP_STATUS[status.group(1)])

    for match in _RESPONSE_CALL.finditer(method.body or ""):
        factory, constant = match.groups()
        if factory and factory in _FACTORY_STATUS:
            _add(_FACTORY_STATUS[factory])
        elif constant and constant in _HTTP_STATUS:
            _add(_HTTP_STATUS[constant])

    if not responses:
        responses.append(ResponseInfo(status_code=200, description="Success", schema=_schema_for(return_type)))
    return responses


def _schema_for(return_type: str) -> Optional[Dict[str, str]]:
    if return_type == "void":
        return None
    if re.search(r"\b(?:List|Set|Collection|Iterable)<|\[\]", return_type):
        return {"type": "array"}
    if return_type in {"String", "ResponseEntity<String>"}:
        return {"type": "string"}
    return {"type": "object"}


__all__ = ["JavaParser", "clean_javadoc"]
