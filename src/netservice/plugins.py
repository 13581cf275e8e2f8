"""
Plugin hooks applied by :class:`~netservice.NetworkService` around every request,
plus the built-in logging and access-token plugins.
"""

from __future__ import annotations

import inspect
import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Mapping, Union

import httpx

from netservice._auth import AuthConfig

if TYPE_CHECKING:
    from netservice.target import TargetType

ENV_HTTP_DEBUG = "NETSERVICE_HTTP_DEBUG"

TokenProvider = Callable[[], Union[str, Awaitable[str]]]


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").lower() in {"1", "true", "yes", "on"}


def _redact_headers(headers: Mapping[str, Any]) -> dict[str, Any]:
    out = dict(headers)
    for k in ("authorization", "Authorization"):
        if k in out:
            out[k] = "Bearer ***REDACTED***"
    return out


@dataclass(frozen=True, slots=True)
class RequestResult:
    """Terminal outcome of one request: the response and body, or the error."""

    response: httpx.Response | None = None
    data: bytes | None = None
    error: BaseException | None = None

    @classmethod
    def success(cls, response: httpx.Response, data: bytes) -> RequestResult:
        return cls(response=response, data=data)

    @classmethod
    def failure(cls, error: BaseException) -> RequestResult:
        return cls(error=error)

    @property
    def is_success(self) -> bool:
        return self.error is None


class PluginType:
    """
    Base class for request plugins. Every hook defaults to a no-op.

    Hooks run in registration order:
    - ``prepare`` may return a modified request; each plugin sees the previous one's output.
    - ``will_send`` observes the final request.
    - ``did_receive`` observes the outcome of a non-streaming request, once, even on failure.
    """

    async def prepare(self, request: httpx.Request, target: TargetType) -> httpx.Request:
        return request

    def will_send(self, request: httpx.Request, target: TargetType) -> None:
        return None

    def did_receive(self, result: RequestResult, target: TargetType) -> None:
        return None


class LoggingPlugin(PluginType):
    """
    Debug traffic logging with the Authorization header redacted.

    Enabled with ``debug=True`` or the NETSERVICE_HTTP_DEBUG environment variable.
    """

    def __init__(self, *, debug: bool | None = None) -> None:
        self._debug = _env_flag(ENV_HTTP_DEBUG) if debug is None else debug

    def will_send(self, request: httpx.Request, target: TargetType) -> None:
        if not self._debug:
            return
        logging.warning("HTTP REQUEST %s %s", request.method, request.url)
        logging.warning("HTTP REQUEST headers=%s", _redact_headers(dict(request.headers)))
        if request.content:
            try:
                logging.warning("HTTP REQUEST body=%s", request.content.decode("utf-8"))
            except UnicodeDecodeError:
                logging.warning("HTTP REQUEST body=(binary) len=%s", len(request.content))

    def did_receive(self, result: RequestResult, target: TargetType) -> None:
        if not self._debug:
            return
        if result.response is None:
            logging.warning("HTTP FAILURE %s%s err=%r", target.base_url, target.path, result.error)
            return

        response = result.response
        req = response.request
        logging.warning("HTTP RESPONSE %s %s -> %s", req.method, req.url, response.status_code)
        logging.warning("HTTP RESPONSE headers=%s", dict(response.headers))

        ctype = response.headers.get("content-type", "")
        if "text/event-stream" in ctype:
            logging.warning("HTTP RESPONSE body=(event-stream; not auto-logged)")
            return
        if result.data:
            logging.warning("HTTP RESPONSE body=%s", result.data.decode("utf-8", "ignore"))


class AccessTokenPlugin(PluginType):
    """
    Inject ``Authorization: Bearer <token>`` unless the request already carries one.

    The token comes from ``token_provider`` (sync or async callable, asked on every
    request), else from ``access_token`` or the NETSERVICE_ACCESS_TOKEN environment variable.
    """

    def __init__(self, access_token: str | None = None, *, token_provider: TokenProvider | None = None) -> None:
        self._token_provider = token_provider
        self._auth = None if token_provider is not None else AuthConfig.from_env_or_value(access_token)

    async def _current_auth(self) -> AuthConfig:
        if self._auth is not None:
            return self._auth
        token = self._token_provider()
        if inspect.isawaitable(token):
            token = await token
        return AuthConfig(access_token=token)

    async def prepare(self, request: httpx.Request, target: TargetType) -> httpx.Request:
        if "authorization" in request.headers:
            return request
        auth = await self._current_auth()
        request.headers["Authorization"] = auth.authorization
        return request
