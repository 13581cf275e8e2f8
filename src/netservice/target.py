"""
Declarative endpoint descriptions and the builder that turns them into httpx requests.
A target names its base URL, path, method, headers and exactly one body-encoding task.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Protocol, Sequence, Union

import httpx
from pydantic_core import PydanticSerializationError, to_json

from netservice._errors import EncodingError, InvalidURLError

JSON_CONTENT_TYPE = "application/json"

ParamValue = Union[str, int, float, bool, None, Sequence["ParamValue"], Mapping[str, "ParamValue"]]
Parameters = Mapping[str, ParamValue]


class HTTPMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"


@dataclass(slots=True)
class RequestParts:
    """Mutable request under construction, handed to parameter encodings."""

    method: str
    url: httpx.URL
    headers: httpx.Headers
    content: bytes | None = None

    def to_request(self) -> httpx.Request:
        return httpx.Request(self.method, self.url, headers=self.headers, content=self.content)


class ParameterEncoding(Protocol):
    def encode(self, request: RequestParts, parameters: Parameters) -> None: ...


def _scalar_to_query(name: str, value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise EncodingError(f"query parameter {name!r} has unsupported type {type(value).__name__}")


def _query_items(name: str, value: ParamValue) -> list[tuple[str, str]]:
    """Flatten one parameter into query items; sequences repeat the key."""
    if isinstance(value, Mapping):
        raise EncodingError(f"query parameter {name!r} cannot be a nested mapping")
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return [(name, _scalar_to_query(name, item)) for item in value]
    return [(name, _scalar_to_query(name, value))]


def _check_json_value(path: str, value: Any) -> None:
    if value is None or isinstance(value, (str, int, float, bool)):
        return
    if isinstance(value, Mapping):
        for key, item in value.items():
            if not isinstance(key, str):
                raise EncodingError(f"JSON parameter {path!r} has a non-string key {key!r}")
            _check_json_value(f"{path}.{key}", item)
        return
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        for i, item in enumerate(value):
            _check_json_value(f"{path}[{i}]", item)
        return
    raise EncodingError(f"JSON parameter {path!r} has unsupported type {type(value).__name__}")


def _to_json_bytes(value: Any) -> bytes:
    try:
        return to_json(value)
    except (PydanticSerializationError, TypeError, ValueError) as e:
        raise EncodingError(f"cannot serialize payload as JSON: {e}") from e


@dataclass(frozen=True, slots=True)
class URLEncoding:
    """Merge parameters into the URL query string."""

    def encode(self, request: RequestParts, parameters: Parameters) -> None:
        if not parameters:
            return
        items: list[tuple[str, str]] = []
        for name, value in parameters.items():
            items.extend(_query_items(name, value))
        request.url = request.url.copy_merge_params(items)


@dataclass(frozen=True, slots=True)
class JSONEncoding:
    """Send parameters as a JSON object body."""

    def encode(self, request: RequestParts, parameters: Parameters) -> None:
        for name, value in parameters.items():
            _check_json_value(name, value)
        request.content = _to_json_bytes(dict(parameters))
        if "content-type" not in request.headers:
            request.headers["Content-Type"] = JSON_CONTENT_TYPE


@dataclass(frozen=True, slots=True)
class RequestPlain:
    """No body."""


@dataclass(frozen=True, slots=True)
class RequestData:
    """Raw bytes body."""

    data: bytes


@dataclass(frozen=True, slots=True)
class RequestJSONEncodable:
    """
    Body serialized as JSON with pydantic, so dicts, dataclasses and
    ``BaseModel`` instances are all accepted.
    """

    value: Any


@dataclass(frozen=True, slots=True)
class RequestParameters:
    """Parameters applied by a pluggable encoding strategy."""

    parameters: Parameters
    encoding: ParameterEncoding = field(default_factory=URLEncoding)


NetworkTask = Union[RequestPlain, RequestData, RequestJSONEncodable, RequestParameters]


class TargetType(Protocol):
    @property
    def base_url(self) -> str | httpx.URL: ...

    @property
    def path(self) -> str: ...

    @property
    def method(self) -> HTTPMethod: ...

    @property
    def task(self) -> NetworkTask: ...

    @property
    def headers(self) -> Mapping[str, str] | None: ...


@dataclass(frozen=True, slots=True)
class Target:
    """Ready-made :class:`TargetType` for callers that don't need their own class."""

    base_url: str | httpx.URL
    path: str = ""
    method: HTTPMethod = HTTPMethod.GET
    task: NetworkTask = field(default_factory=RequestPlain)
    headers: Mapping[str, str] | None = None


def resolve_url(base_url: str | httpx.URL, path: str) -> httpx.URL:
    """
    Join ``path`` onto the base URL with exactly one slash between them.

    Raises:
        InvalidURLError: If the result is not an absolute URL with a host.
    """
    try:
        url = httpx.URL(base_url)
        if path:
            url = url.copy_with(path=url.path.rstrip("/") + "/" + path.lstrip("/"))
    except httpx.InvalidURL as e:
        raise InvalidURLError(f"cannot build URL from {str(base_url)!r} and {path!r}: {e}") from e

    if not url.is_absolute_url or not url.host:
        raise InvalidURLError(f"cannot build URL from {str(base_url)!r} and {path!r}: not absolute")
    return url


def _apply_task(request: RequestParts, task: NetworkTask) -> None:
    if isinstance(task, RequestPlain):
        return
    if isinstance(task, RequestData):
        request.content = bytes(task.data)
        return
    if isinstance(task, RequestJSONEncodable):
        request.content = _to_json_bytes(task.value)
        if "content-type" not in request.headers:
            request.headers["Content-Type"] = JSON_CONTENT_TYPE
        return
    if isinstance(task, RequestParameters):
        task.encoding.encode(request, task.parameters)
        return
    raise TypeError(f"unknown task {task!r}")


def build_request(target: TargetType, *, default_headers: Mapping[str, str] | None = None) -> httpx.Request:
    """
    Build the transport-level request for a target.

    Args:
        target: Endpoint description.
        default_headers: Headers applied first; the target's own headers win.

    Raises:
        InvalidURLError: If the URL cannot be resolved.
        EncodingError: If the task payload cannot be serialized.
    """
    headers = httpx.Headers(default_headers or {})
    headers.update(target.headers or {})
    request = RequestParts(
        method=HTTPMethod(target.method).value,
        url=resolve_url(target.base_url, target.path),
        headers=headers,
    )
    _apply_task(request, target.task)
    return request.to_request()
