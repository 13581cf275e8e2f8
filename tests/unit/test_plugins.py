import logging

import httpx
import pytest

from netservice._auth import ENV_ACCESS_TOKEN
from netservice.plugins import (
    ENV_HTTP_DEBUG,
    AccessTokenPlugin,
    LoggingPlugin,
    PluginType,
    RequestResult,
)
from netservice.target import Target

TARGET = Target(base_url="https://example.com", path="/items")


def make_request(**kwargs):
    return httpx.Request("GET", "https://example.com/items", **kwargs)


@pytest.mark.asyncio
async def test_plugin_type_defaults_are_noops():
    plugin = PluginType()
    request = make_request()

    assert await plugin.prepare(request, TARGET) is request
    assert plugin.will_send(request, TARGET) is None
    assert plugin.did_receive(RequestResult.failure(RuntimeError("x")), TARGET) is None


def test_request_result_success_and_failure():
    response = httpx.Response(200, request=make_request(), content=b"ok")
    ok = RequestResult.success(response, b"ok")
    err = RuntimeError("boom")
    failed = RequestResult.failure(err)

    assert ok.is_success
    assert ok.response is response
    assert ok.data == b"ok"
    assert not failed.is_success
    assert failed.error is err
    assert failed.response is None


def test_logging_plugin_redacts_authorization(monkeypatch, caplog):
    # The environment flag turns logging on.
    monkeypatch.setenv(ENV_HTTP_DEBUG, "1")
    plugin = LoggingPlugin()
    request = httpx.Request(
        "POST",
        "https://example.com/test",
        headers={"Authorization": "Bearer secret-token", "X-Other": "1"},
        content=b'{"data": 123}',
    )

    with caplog.at_level(logging.WARNING):
        plugin.will_send(request, TARGET)

    messages = " ".join(rec.getMessage() for rec in caplog.records)
    assert "***REDACTED***" in messages
    assert "secret-token" not in messages
    assert '{"data": 123}' in messages


def test_logging_plugin_binary_body_fallback(caplog):
    plugin = LoggingPlugin(debug=True)
    request = httpx.Request(
        "PUT",
        "https://example.com/binary",
        headers={"Authorization": "Bearer top-secret"},
        content=b"\x89PNG\r\n\x1a\n\xff\xfe",
    )

    with caplog.at_level(logging.WARNING):
        plugin.will_send(request, TARGET)

    messages = " ".join(rec.getMessage() for rec in caplog.records)
    assert "body=(binary) len=10" in messages
    assert "top-secret" not in messages


def test_logging_plugin_disabled_logs_nothing(monkeypatch, caplog):
    monkeypatch.delenv(ENV_HTTP_DEBUG, raising=False)
    plugin = LoggingPlugin()
    response = httpx.Response(200, request=make_request(), content=b"ok")

    with caplog.at_level(logging.WARNING):
        plugin.will_send(make_request(), TARGET)
        plugin.did_receive(RequestResult.success(response, b"ok"), TARGET)

    assert caplog.records == []


def test_logging_plugin_logs_response_and_skips_event_stream(caplog):
    plugin = LoggingPlugin(debug=True)
    req = make_request()
    resp_json = httpx.Response(200, request=req, content=b"json-body", headers={"content-type": "application/json"})
    resp_stream = httpx.Response(200, request=req, content=b"data: x\n\n", headers={"content-type": "text/event-stream"})

    with caplog.at_level(logging.WARNING):
        plugin.did_receive(RequestResult.success(resp_json, b"json-body"), TARGET)
        plugin.did_receive(RequestResult.success(resp_stream, b"data: x\n\n"), TARGET)

    messages = " ".join(rec.getMessage() for rec in caplog.records)
    assert "HTTP RESPONSE" in messages
    assert "json-body" in messages
    assert "not auto-logged" in messages
    assert "data: x" not in messages


def test_logging_plugin_logs_failure(caplog):
    plugin = LoggingPlugin(debug=True)

    with caplog.at_level(logging.WARNING):
        plugin.did_receive(RequestResult.failure(RuntimeError("down")), TARGET)

    messages = " ".join(rec.getMessage() for rec in caplog.records)
    assert "HTTP FAILURE" in messages
    assert "down" in messages


@pytest.mark.asyncio
async def test_access_token_plugin_with_explicit_token():
    plugin = AccessTokenPlugin("tok-123")

    request = await plugin.prepare(make_request(), TARGET)

    assert request.headers["authorization"] == "Bearer tok-123"


@pytest.mark.asyncio
async def test_access_token_plugin_reads_env(monkeypatch):
    monkeypatch.setenv(ENV_ACCESS_TOKEN, "env-token")
    plugin = AccessTokenPlugin()

    request = await plugin.prepare(make_request(), TARGET)

    assert request.headers["authorization"] == "Bearer env-token"


def test_access_token_plugin_missing_token_raises(monkeypatch):
    monkeypatch.delenv(ENV_ACCESS_TOKEN, raising=False)

    with pytest.raises(ValueError):
        AccessTokenPlugin()


@pytest.mark.asyncio
async def test_access_token_plugin_keeps_existing_authorization():
    plugin = AccessTokenPlugin("tok-123")

    request = await plugin.prepare(make_request(headers={"Authorization": "Basic abc"}), TARGET)

    assert request.headers["authorization"] == "Basic abc"


@pytest.mark.asyncio
async def test_access_token_plugin_sync_and_async_providers():
    tokens = iter(["first", "second"])

    async def async_provider():
        return "async-token"

    sync_plugin = AccessTokenPlugin(token_provider=lambda: next(tokens))
    async_plugin = AccessTokenPlugin(token_provider=async_provider)

    first = await sync_plugin.prepare(make_request(), TARGET)
    second = await sync_plugin.prepare(make_request(), TARGET)
    third = await async_plugin.prepare(make_request(), TARGET)

    assert first.headers["authorization"] == "Bearer first"
    assert second.headers["authorization"] == "Bearer second"
    assert third.headers["authorization"] == "Bearer async-token"
