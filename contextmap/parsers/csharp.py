"""C# structural fact parser (ASP.NET Core controllers and Minimal APIs)."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

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
    path_parameters,
    read_csharp_attributes,
    read_preamble,
    split_top_level,
    status_description,
)

_MODIFIERS = frozenset(
    {
        "public",
        "private",
        "protected",
        "internal",
        "static",
        "virtual",
        "override",
        "abstract",
        "async",
        "sealed",
        "new",
        "extern",
        "partial",
        "readonly",
        "unsafe",
        "required",
        "const",
        "volatile",
    }
)
_STATEMENT_WORDS = frozenset(
    {"return", "throw", "else", "if", "for", "foreach", "while", "switch", "catch", "case", "using", "lock", "await", "var"}
)

_TYPE_DECL = re.compile(
    r"\b((?:(?:public|private|protected|internal|abstract|sealed|static|partial|readonly)\s+)*)"
    r"(class|interface|enum|struct|record(?:\s+(?:class|struct))?)\s+(\w+)"
)
_METHOD = re.compile(
    r"^[ \t]*(?:\[[^\]]*\]\s*)*"
    r"((?:\w+\s+)*?)"
    r"([\w.]+(?:<[^;{}()]*>)?(?:\[\])?\??)\s+(\w+)\s*(?:<[^>]*>)?\s*\(",
    re.MULTILINE,
)
_MEMBER = re.compile(
    r"^[ \t]*(?:\[[^\]]*\]\s*)*"
    r"((?:\w+\s+)*?)"
    r"([\w.]+(?:<[^;=(){}]*>)?(?:\[\])?\??)\s+(\w+)\s*(?=\{\s*(?:get|set|init)\b|=[^>]|;)",
    re.MULTILINE,
)
_MINIMAL_API = re.compile(r"\b(\w+)\.Map(Get|Post|Put|Delete|Patch)\s*\(\s*\"([^\"]*)\"")
_MAP_GROUP = re.compile(r"\b(\w+)\s*=\s*(\w+)\.MapGroup\(\s*\"([^\"]*)\"")

_HTTP_ATTRIBUTES: Dict[str, str] = {
    "HttpGet": "GET",
    "HttpPost": "POST",
    "HttpPut": "PUT",
    "HttpDelete": "DELETE",
    "HttpPatch": "PATCH",
}
_BINDING_LOCATIONS: Dict[str, str] = {
    "FromQuery": "query",
    "FromRoute": "path",
    "FromHeader": "header",
}
_CONSTRAINT_TYPES: Dict[str, str] = {
    "int": "integer",
    "long": "integer",
    "decimal": "number",
    "double": "number",
    "float": "number",
    "bool": "boolean",
    "guid": "string",
    "datetime": "string",
}
_RESULT_STATUS: Dict[str, int] = {
    "Ok": 200,
    "Created": 201,
    "CreatedAtAction": 201,
    "CreatedAtRoute": 201,
    "Accepted": 202,
    "NoContent": 204,
    "BadRequest": 400,
    "Unauthorized": 401,
    "Forbid": 403,
    "NotFound": 404,
    "Conflict": 409,
    "UnprocessableEntity": 422,
}
_RESULT_CALL = re.compile(r"\b(\w+)\s*\(|\bStatusCodes\.Status(\d{3})")
_STATUS_CODE_CALL = re.compile(r"\bStatusCode\(\s*(\d{3})")
_CONVENTION_VERBS = ("Get", "Post", "Put", "Delete", "Patch")


@dataclass
class _ParamDecl:
    name: str
    type: str
    attributes: List[str] = field(default_factory=list)
    has_default: bool = False


@dataclass
class _MethodDecl:
    info: FunctionInfo
    modifiers: List[str]
    params: List[_ParamDecl]
    body: Optional[str]
    doc: str = ""


class CSharpParser(BaseParser):
    """Extracts ASP.NET Core endpoints, classes and methods from C# files."""

    language = "csharp"
    extensions = (".cs",)

    def extract_endpoints(self, content: str, file_path: str) -> List[ApiEndpoint]:
        masked = mask_comments(content)
        types = self._types(content, masked)
        endpoints: List[ApiEndpoint] = []
        for declared in types:
            prefix = _controller_prefix(declared.info)
            for method in self._methods(content, masked, [declared], attach=False):
                endpoint = self._controller_endpoint(declared.info, prefix, method, file_path)
                if endpoint is not None:
                    endpoints.append(endpoint)
        endpoints.extend(self._minimal_api_endpoints(content, masked, file_path))
        return endpoints

    def extract_classes(self, content: str) -> List[ClassInfo]:
        masked = mask_comments(content)
        types = self._types(content, masked)
        self._methods(content, masked, types)
        return [declared.info for declared in types]

    def extract_functions(self, content: str) -> List[FunctionInfo]:
        masked = mask_comments(content)
        types = self._types(content, masked)
        return [method.info for method in self._methods(content, masked, types, attach=False)]

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _types(self, content: str, masked: str) -> List[TypeSpan]:
        types: List[TypeSpan] = []
        for match in _TYPE_DECL.finditer(masked):
            kind, name = match.group(2), match.group(3)
            preamble = read_preamble(content, masked, match.start(), read_csharp_attributes, clean_xml_doc)
            info = ClassInfo(
                name=name,
                description=preamble.description or f"{kind.title()}: {name}",
                line_number=line_of(masked, match.start()),
                annotations=preamble.annotations,
            )
            brace = masked.find("{", match.end())
            semicolon = masked.find(";", match.end())
            if brace == -1 or (semicolon != -1 and semicolon < brace):
                # Positional record without a body: its parameters are its properties.
                paren = masked.find("(", match.end())
                if not kind.startswith("record") or paren == -1 or (semicolon != -1 and semicolon < paren):
                    continue
                params_text, _ = balanced_inner(masked, paren)
                info.properties = [
                    PropertyInfo(name=param.name, type=param.type, annotations=param.attributes)
                    for param in _parse_params(params_text)
                ]
                types.append(TypeSpan(info=info, body_start=match.end(), body_end=match.end()))
                continue
            declared = TypeSpan(info=info, body_start=brace + 1, body_end=balanced_end(masked, brace))
            info.properties = self._members(content, masked, declared)
            types.append(declared)
        return types

    def _members(self, content: str, masked: str, declared: TypeSpan) -> List[PropertyInfo]:
        properties: List[PropertyInfo] = []
        for match in _MEMBER.finditer(masked, declared.body_start, declared.body_end):
            modifiers, member_type, name = match.groups()
            if member_type in _STATEMENT_WORDS or member_type in _MODIFIERS:
                continue
            if any(word not in _MODIFIERS for word in modifiers.split()):
                continue
            if not declared.encloses(masked, match.start()):
                continue
            preamble = read_preamble(content, masked, match.start(1), read_csharp_attributes, clean_xml_doc)
            properties.append(
                PropertyInfo(
                    name=name,
                    type=member_type,
                    description=preamble.description,
                    annotations=preamble.annotations,
                )
            )
        return properties

    def _methods(
        self, content: str, masked: str, types: List[TypeSpan], *, attach: bool = True
    ) -> List[_MethodDecl]:
        methods: List[_MethodDecl] = []
        for match in _METHOD.finditer(masked):
            modifiers, return_type, name = match.groups()
            # Constructors leave a modifier in the return type slot.
            if return_type in _MODIFIERS or return_type in _STATEMENT_WORDS or name in _STATEMENT_WORDS:
                continue
            modifier_words = modifiers.split()
            if any(word not in _MODIFIERS for word in modifier_words):
                continue
            owner = owner_of(types, masked, match.start())
            if owner is None:
                continue
            params_text, params_end = balanced_inner(masked, match.end() - 1)
            decl_index = match.start(1) if modifiers else match.start(2)
            preamble = read_preamble(content, masked, decl_index, read_csharp_attributes, clean_xml_doc)
            params = _parse_params(params_text)
            info = FunctionInfo(
                name=name,
                description=preamble.description or f"Method: {name}",
                line_number=line_of(masked, match.start(2)),
                parameters=[
                    Parameter(
                        name=param.name,
                        type=param.type,
                        location="body",
                        required=not param.has_default,
                        description=f"Parameter: {param.name}",
                    )
                    for param in params
                ],
                return_type=return_type,
                annotations=preamble.annotations,
            )
            if attach:
                owner.info.methods.append(info)
            methods.append(
                _MethodDecl(
                    info=info,
                    modifiers=modifier_words,
                    params=params,
                    body=_method_body(masked, params_end),
                    doc=preamble.description,
                )
            )
        return methods

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    def _controller_endpoint(
        self, owner: ClassInfo, prefix: Optional[str], method: _MethodDecl, file_path: str
    ) -> Optional[ApiEndpoint]:
        info = method.info
        names = [annotation_name(attribute) for attribute in info.annotations]
        http_method: Optional[str] = None
        method_path: Optional[str] = None
        for attribute, name in zip(info.annotations, names):
            if name in _HTTP_ATTRIBUTES and http_method is None:
                http_method = _HTTP_ATTRIBUTES[name]
                method_path = first_string(annotation_args(attribute))
            elif name == "Route" and method_path is None:
                method_path = first_string(annotation_args(attribute))

        if http_method is None:
            if not _is_convention_action(owner, method, names):
                return None
            http_method = next((verb.upper() for verb in _CONVENTION_VERBS if info.name.startswith(verb)), "GET")
            if method_path is None and prefix is None:
                method_path = info.name.lower()
        elif prefix is None and not owner.name.endswith("Controller"):
            return None

        base = prefix if prefix is not None else f"/{_controller_name(owner.name)}"
        method_path = (method_path or "").replace("[action]", info.name.lower())
        if method_path.startswith(("/", "~/")):
            path = combine_paths("", method_path.lstrip("~"))
        else:
            path = combine_paths(base, method_path)

        parameters, request_body = _endpoint_parameters(path, method.params)
        return ApiEndpoint(
            method=http_method,
            path=path,
            description=method.doc or f"{http_method} {path}",
            file_name=file_path,
            line_number=info.line_number,
            parameters=parameters,
            request_body=request_body,
            responses=_responses(info.annotations, method.body, info.return_type),
            tags=["aspnet", owner.name],
        )

    def _minimal_api_endpoints(self, content: str, masked: str, file_path: str) -> List[ApiEndpoint]:
        groups: Dict[str, str] = {}
        for match in _MAP_GROUP.finditer(masked):
            variable, parent, prefix = match.groups()
            groups[variable] = combine_paths(groups.get(parent, ""), prefix)

        lines = content.splitlines()
        endpoints: List[ApiEndpoint] = []
        for match in _MINIMAL_API.finditer(masked):
            target, verb, route = match.groups()
            http_method = verb.upper()
            path = combine_paths(groups.get(target, ""), route)
            call_args, _ = balanced_inner(masked, masked.index("(", match.start()))
            line_number = line_of(masked, match.start())
            handler_params = _lambda_params(call_args)
            parameters, request_body = _endpoint_parameters(path, handler_params)
            endpoints.append(
                ApiEndpoint(
                    method=http_method,
                    path=path,
                    description=_line_comment_above(lines, line_number) or f"{http_method} {path}",
                    file_name=file_path,
                    line_number=line_number,
                    parameters=parameters,
                    request_body=request_body,
                    responses=_responses([], call_args, ""),
                    tags=["minimal-api"],
                )
            )
        return endpoints


def clean_xml_doc(raw: str) -> str:
    """XML doc comment text, preferring the ``<summary>`` element."""
    text = clean_comment(raw)
    summary = re.search(r"<summary>(.*?)</summary>", text, re.DOTALL)
    if summary:
        text = summary.group(1)
    text = re.sub(r"<[^>]+>", "", text)
    return "\n".join(line.strip() for line in text.splitlines() if line.strip())


def constraint_type(constraint: Optional[str]) -> str:
    if not constraint:
        return "string"
    return _CONSTRAINT_TYPES.get(constraint.split(":")[0].split("(")[0].lower(), "string")


def _controller_name(class_name: str) -> str:
    name = class_name[: -len("Controller")] if class_name.endswith("Controller") else class_name
    return name.lower()


def _controller_prefix(info: ClassInfo) -> Optional[str]:
    for attribute in info.annotations:
        if annotation_name(attribute) == "Route":
            template = first_string(annotation_args(attribute)) or ""
            return combine_paths("", template.replace("[controller]", _controller_name(info.name)))
    return None


def _is_convention_action(owner: ClassInfo, method: _MethodDecl, names: List[str]) -> bool:
    return (
        owner.name.endswith("Controller")
        and "public" in method.modifiers
        and "static" not in method.modifiers
        and "ActionResult" in method.info.return_type
        and "NonAction" not in names
    )


def _method_body(masked: str, params_end: int) -> Optional[str]:
    candidates = []
    for token in ("{", ";", "=>"):
        index = masked.find(token, params_end)
        if index != -1:
            candidates.append((index, token))
    if not candidates:
        return None
    index, token = min(candidates)
    if token == "{":
        body, _ = balanced_inner(masked, index)
        return body
    if token == "=>":
        end = masked.find(";", index)
        return masked[index + 2 : len(masked) if end == -1 else end]
    return None


def _parse_params(params_text: str) -> List[_ParamDecl]:
    params: List[_ParamDecl] = []
    for part in split_top_level(params_text):
        attributes = read_csharp_attributes(part)
        declaration = re.sub(r"\[[^\]]*\]", " ", part)
        declaration, has_default = _split_default(declaration)
        tokens = [token for token in declaration.split() if token not in {"this", "params", "ref", "out", "in"}]
        if len(tokens) < 2:
            continue
        params.append(
            _ParamDecl(name=tokens[-1], type=" ".join(tokens[:-1]), attributes=attributes, has_default=has_default)
        )
    return params


def _split_default(declaration: str) -> tuple[str, bool]:
    if "=" in declaration:
        return declaration.split("=", 1)[0], True
    return declaration, False


def _lambda_params(call_args: str) -> List[_ParamDecl]:
    parts = split_top_level(call_args)
    if len(parts) < 2:
        return []
    handler = parts[1].strip()
    if handler.startswith("async"):
        handler = handler[len("async") :].lstrip()
    if not handler.startswith("("):
        return []
    params_text, _ = balanced_inner(handler, 0)
    return _parse_params(params_text)


def _endpoint_parameters(path: str, params: List[_ParamDecl]) -> tuple[List[Parameter], Optional[RequestBody]]:
    parameters = path_parameters(path, constraint_type)
    known = {parameter.name for parameter in parameters}
    request_body: Optional[RequestBody] = None
    for param in params:
        names = [annotation_name(attribute) for attribute in param.attributes]
        if "FromBody" in names:
            request_body = RequestBody(content_type="application/json", schema={"type": param.type})
            continue
        binding = next(
            (
                (attribute, _BINDING_LOCATIONS[name])
                for attribute, name in zip(param.attributes, names)
                if name in _BINDING_LOCATIONS
            ),
            None,
        )
        if binding is None or param.name in known:
            continue
        attribute, location = binding
        explicit = re.search(r"Name\s*=\s*\"([^\"]*)\"", attribute)
        parameters.append(
            Parameter(
                name=explicit.group(1) if explicit else param.name,
                type=param.type,
                location=location,
                required=location == "path" or not (param.type.endswith("?") or param.has_default),
                description=f"{location.title()} parameter: {param.name}",
            )
        )
        known.add(param.name)
    return parameters, request_body


def _responses(attributes: List[str], body: Optional[str], return_type: str) -> List[ResponseInfo]:
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
                schema={"type": "object"} if 200 <= status_code < 300 and status_code != 204 else None,
            )
        )

    for attribute in attributes:
        if annotation_name(attribute) == "ProducesResponseType":
            status = re.search(r"Status(\d{3})|\b(\d{3})\b", annotation_args(attribute))
            if status:
                _add(int(status.group(1) or status.group(2)))

    for match in _RESULT_CALL.finditer(body or ""):
        call, constant = match.groups()
        if call in _RESULT_STATUS:
            _add(_RESULT_STATUS[call])
        elif constant:
            _add(int(constant))
    for match in _STATUS_CODE_CALL.finditer(body or ""):
        _add(int(match.group(1)))

    if not responses:
        responses.append(
            ResponseInfo(
                status_code=200,
                description="Success",
                schema=None if return_type in {"void", "Task"} else {"type": "object"},
            )
        )
    return responses


def _line_comment_above(lines: List[str], line_number: int) -> str:
    collected: List[str] = []
    index = line_number - 2
    while index >= 0 and lines[index].strip().startswith("//"):
        collected.append(lines[index].strip().lstrip("/").strip())
        index -= 1
    return "\n".join(reversed([line for line in collected if line]))


__all__ = ["CSharpParser", "clean_xml_doc", "constraint_type"]
