from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, AsyncIterator, Mapping, Sequence

import httpx

from netservice._errors import RequestFailedError, ServerError
from netservice._sse import SSEEvent, aiter_sse_events
from netservice.plugins import PluginType, RequestResult
from netservice.target import TargetType, build_request

EVENT_STREAM = "text/event-stream"


@dataclass(frozen=True, slots=True)
class HttpConfig:
    timeout_s: float = 120.0
    raise_for_status: bool = False
    headers: Mapping[str, str] | None = None


def _parse_error_response(status_code: int, reason_phrase: str, body: bytes, content_type: str) -> ServerError:
    """
    Build a ServerError from a non-2xx response.

    A JSON body with ``message`` or ``error.message`` supplies the message;
    otherwise the body text is used, falling back to the reason phrase.
    """
    message = reason_phrase or "HTTP error"
    body_text = body.decode("utf-8", "ignore").strip()

    if "application/json" in content_type.lower():
        try:
            data: Any = json.loads(body_text) if body_text else {}
        except ValueError:
            data = None
        if isinstance(data, dict):
            error_obj = data.get("error")
            msg = error_obj.get("message") if isinstance(error_obj, dict) else data.get("message")
            if isinstance(msg, str) and msg.strip():
                return ServerError(status_code=status_code, message=msg.strip(), body=body or None)

    if body_text:
        message = body_text
    return ServerError(status_code=status_code, message=message, body=body or None)


class NetworkService:
    """
    Async request executor over httpx with:
    - plugin hooks around every request
    - raw-body requests
    - Server-Sent Events streams decoded incrementally

    Holds no per-request state, so one instance may serve concurrent callers.
    """

    def __init__(
        self,
        *,
        config: HttpConfig | None = None,
        plugins: Sequence[PluginType] = (),
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or HttpConfig()
        self._plugins = tuple(plugins)
        self._aclient = httpx.AsyncClient(timeout=httpx.Timeout(self._config.timeout_s), transport=transport)

    @property
    def plugins(self) -> tuple[PluginType, ...]:
        return self._plugins

    async def aclose(self) -> None:
        await self._aclient.aclose()

    async def __aenter__(self) -> NetworkService:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def _status_error(self, response: httpx.Response) -> ServerError | None:
        if not self._config.raise_for_status or 200 <= response.status_code < 300:
            return None
        return _parse_error_response(
            status_code=response.status_code,
            reason_phrase=response.reason_phrase,
            body=response.content,
            content_type=response.headers.get("content-type", ""),
        )

    async def _prepare(self, target: TargetType, *, accept: str | None = None) -> httpx.Request:
        request = build_request(target, default_headers=self._config.headers)
        if accept and "accept" not in request.headers:
            request.headers["Accept"] = accept

        for plugin in self._plugins:
            request = await plugin.prepare(request, target)

        for plugin in self._plugins:
            plugin.will_send(request, target)
        return request

    def _notify(self, result: RequestResult, target: TargetType) -> None:
        for plugin in self._plugins:
            plugin.did_receive(result, target)

    async def request(self, target: TargetType) -> bytes:
        """
        Perform one round trip and return the raw response body.

        Raises:
            InvalidURLError / EncodingError: If the request cannot be built.
            RequestFailedError: On transport failure.
            ServerError: On a non-2xx status when ``raise_for_status`` is enabled.
        """
        request = await self._prepare(target)

        try:
            response = await self._aclient.send(request)
        except httpx.HTTPError as e:
            error = RequestFailedError(e)
            self._notify(RequestResult.failure(error), target)
            raise error from e

        status_error = self._status_error(response)
        if status_error is not None:
            self._notify(RequestResult.failure(status_error), target)
            raise status_error

        self._notify(RequestResult.success(response, response.content), target)
        return response.content

    async def stream(self, target: TargetType) -> AsyncIterator[SSEEvent]:
        """
        Open an SSE stream and yield events as they are decoded.

        The connection is opened on first iteration. Closing the iterator early
        (``aclose()`` or ``contextlib.aclosing``) closes the response, so no
        further bytes are read.

        Usage:
            async with aclosing(service.stream(target)) as events:
                async for event in events:
                    ...
        """
        request = await self._prepare(target, accept=EVENT_STREAM)

        try:
            response = await self._aclient.send(request, stream=True)
        except httpx.HTTPError as e:
            raise RequestFailedError(e) from e

        try:
            if self._config.raise_for_status and not 200 <= response.status_code < 300:
                await response.aread()
            status_error = self._status_error(response)
            if status_error is not None:
                raise status_error

            async for event in aiter_sse_events(response):
                yield event
        except httpx.HTTPError as e:
            raise RequestFailedError(e) from e
        finally:
            await response.aclose()
