# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Tests for middleware: CSRF check, request duration, chain building."""

import logging

import pytest

from genro_headers import CsrfTokenVerificationError, InvalidArgument
from genro_headers.middleware import MIDDLEWARE_REGISTRY, middleware_chain
from genro_headers.middleware.csrf import CsrfMiddleware
from genro_headers.middleware.duration import RequestDurationMiddleware


@pytest.fixture
def calls() -> list:
    """Fixture to record scopes seen by the app."""
    return []


@pytest.fixture
def dummy_app(calls: list):
    """Dummy ASGI app answering 200 with a body."""

    async def app(scope, receive, send):
        calls.append(scope)
        if scope["type"] == "http":
            await send(
                {
                    "type": "http.response.start",
                    "status": 200,
                    "headers": [(b"content-type", b"text/plain")],
                }
            )
            await send({"type": "http.response.body", "body": b"ok"})

    return app


@pytest.fixture
def sent() -> list:
    return []


@pytest.fixture
def send(sent: list):
    async def send(message):
        sent.append(message)

    return send


def http_scope(method: str = "GET", headers=None, **extra) -> dict:
    scope = {
        "type": "http",
        "method": method,
        "path": "/submit",
        "query_string": b"",
        "headers": headers or [],
        "client": ("10.0.0.1", 5000),
    }
    scope.update(extra)
    return scope


class TestRegistry:
    """Tests for middleware registration."""

    def test_registered(self) -> None:
        """Both middleware classes are registered under their names."""
        assert MIDDLEWARE_REGISTRY["csrf"] is CsrfMiddleware
        assert MIDDLEWARE_REGISTRY["duration"] is RequestDurationMiddleware

    def test_duplicate_name_rejected(self) -> None:
        """Registering the same name twice fails."""
        with pytest.raises(ValueError, match="already registered"):

            class Duplicate(CsrfMiddleware):
                middleware_name = "csrf"


class TestCsrfMiddleware:
    """Tests for CsrfMiddleware."""

    def test_requires_token(self, dummy_app) -> None:
        """Token or provider is mandatory."""
        with pytest.raises(ValueError, match="requires 'token'"):
            CsrfMiddleware(dummy_app)

    def test_invalid_header_name(self, dummy_app) -> None:
        """Configured header name is validated."""
        with pytest.raises(InvalidArgument):
            CsrfMiddleware(dummy_app, token="t", header_name="X CSRF")

    @pytest.mark.asyncio
    async def test_safe_method_passes(self, dummy_app, calls, send, sent) -> None:
        """GET requests are not checked."""
        middleware = CsrfMiddleware(dummy_app, token="secret")
        await middleware(http_scope("GET"), None, send)
        assert len(calls) == 1
        assert sent[0]["status"] == 200

    @pytest.mark.asyncio
    async def test_valid_token(self, dummy_app, calls, send, sent) -> None:
        """POST with the right header passes."""
        middleware = CsrfMiddleware(dummy_app, token="secret")
        scope = http_scope("POST", headers=[(b"X-CSRF-Token", b"secret")])
        await middleware(scope, None, send)
        assert len(calls) == 1
        assert sent[0]["status"] == 200

    @pytest.mark.asyncio
    async def test_missing_token_rejected(self, dummy_app, calls, send, sent) -> None:
        """POST without token gets 403 and never reaches the app."""
        middleware = CsrfMiddleware(dummy_app, token="secret")
        await middleware(http_scope("POST"), None, send)
        assert calls == []
        assert sent[0]["status"] == 403
        assert (b"content-type", b"text/plain; charset=utf-8") in sent[0]["headers"]
        assert sent[1]["body"] == b"The CSRF token is missing from the request or is invalid."
        assert (b"content-length", str(len(sent[1]["body"])).encode()) in sent[0]["headers"]

    @pytest.mark.asyncio
    async def test_wrong_token_rejected(self, dummy_app, calls, send, sent) -> None:
        """A wrong token gets 403."""
        middleware = CsrfMiddleware(dummy_app, token="secret")
        scope = http_scope("DELETE", headers=[(b"x-csrf-token", b"guess")])
        await middleware(scope, None, send)
        assert calls == []
        assert sent[0]["status"] == 403

    @pytest.mark.asyncio
    async def test_raise_errors(self, dummy_app, send) -> None:
        """raise_errors propagates the exception."""
        middleware = CsrfMiddleware(dummy_app, token="secret", raise_errors=True)
        with pytest.raises(CsrfTokenVerificationError):
            await middleware(http_scope("PUT"), None, send)

    @pytest.mark.asyncio
    async def test_failure_logged_without_token(self, dummy_app, send, caplog) -> None:
        """Failures are logged at WARNING without the submitted token."""
        middleware = CsrfMiddleware(dummy_app, token="secret")
        scope = http_scope("POST", headers=[(b"x-csrf-token", b"leaked-guess")])
        with caplog.at_level(logging.WARNING, logger="genro_headers.middleware.csrf"):
            await middleware(scope, None, send)
        assert "CSRF verification failed for POST /submit" in caplog.text
        assert "leaked-guess" not in caplog.text

    @pytest.mark.asyncio
    async def test_token_provider(self, dummy_app, calls, send) -> None:
        """token_provider supplies the expected token per request."""
        middleware = CsrfMiddleware(
            dummy_app, token_provider=lambda scope: scope["session"]["csrf"]
        )
        scope = http_scope(
            "POST", headers=[(b"x-csrf-token", b"from-session")], session={"csrf": "from-session"}
        )
        await middleware(scope, None, send)
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_provider_without_token_rejects(self, dummy_app, calls, send, sent) -> None:
        """A provider returning None rejects every unsafe request."""
        middleware = CsrfMiddleware(dummy_app, token_provider=lambda scope: None)
        scope = http_scope("POST", headers=[(b"x-csrf-token", b"anything")])
        await middleware(scope, None, send)
        assert calls == []
        assert sent[0]["status"] == 403

    @pytest.mark.asyncio
    async def test_custom_header_and_methods(self, dummy_app, calls, send, sent) -> None:
        """Header name and safe methods are configurable."""
        middleware = CsrfMiddleware(
            dummy_app, token="secret", header_name="X-XSRF-TOKEN", safe_methods="GET, POST"
        )
        await middleware(http_scope("POST"), None, send)
        await middleware(
            http_scope("PATCH", headers=[(b"x-xsrf-token", b"secret")]), None, send
        )
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_non_http_passthrough(self, dummy_app, calls) -> None:
        """Non-HTTP scopes are not checked."""
        middleware = CsrfMiddleware(dummy_app, token="secret")
        await middleware({"type": "websocket", "headers": []}, None, None)
        assert len(calls) == 1


class TestRequestDurationMiddleware:
    """Tests for RequestDurationMiddleware."""

    @pytest.mark.asyncio
    async def test_logs_duration(self, dummy_app, send, caplog) -> None:
        """A record with nanoseconds and seconds is logged."""
        middleware = RequestDurationMiddleware(dummy_app)
        scope = http_scope("GET", query_string=b"page=2")
        with caplog.at_level(logging.INFO, logger="genro_headers.duration"):
            await middleware(scope, None, send)
        assert len(caplog.records) == 1
        message = caplog.records[0].getMessage()
        assert message.startswith("Request /submit?page=2 from 10.0.0.1 took ")
        assert message.endswith("s)")
        assert "ns (" in message

    def test_format_record_decimal_places(self, dummy_app) -> None:
        """Seconds use the configured number of decimals."""
        middleware = RequestDurationMiddleware(dummy_app, decimal_places=3)
        record = middleware.format_record(http_scope(client=None), 1_500_000_000)
        assert record == "Request /submit from unknown took 1500000000ns (1.500s)"

    def test_format_record_default_decimals(self, dummy_app) -> None:
        """Five decimals by default."""
        middleware = RequestDurationMiddleware(dummy_app)
        record = middleware.format_record(http_scope(), 12_345)
        assert record == "Request /submit from 10.0.0.1 took 12345ns (0.00001s)"

    @pytest.mark.asyncio
    async def test_custom_level(self, dummy_app, send, caplog) -> None:
        """Records use the configured level."""
        middleware = RequestDurationMiddleware(dummy_app, level="debug")
        with caplog.at_level(logging.DEBUG, logger="genro_headers.duration"):
            await middleware(http_scope(), None, send)
        assert caplog.records[0].levelno == logging.DEBUG

    @pytest.mark.asyncio
    async def test_logs_when_app_raises(self, send, caplog) -> None:
        """Duration is logged and the error propagates."""

        async def failing_app(scope, receive, send):
            raise RuntimeError("boom")

        middleware = RequestDurationMiddleware(failing_app)
        with caplog.at_level(logging.INFO, logger="genro_headers.duration"):
            with pytest.raises(RuntimeError, match="boom"):
                await middleware(http_scope(), None, send)
        assert len(caplog.records) == 1

    @pytest.mark.asyncio
    async def test_server_timing_header(self, dummy_app, send, sent) -> None:
        """server_timing appends a Server-Timing header."""
        middleware = RequestDurationMiddleware(dummy_app, server_timing=True)
        await middleware(http_scope(), None, send)
        headers = sent[0]["headers"]
        assert headers[0] == (b"content-type", b"text/plain")
        name, value = headers[-1]
        assert name == b"server-timing"
        assert value.startswith(b"app; dur=")

    @pytest.mark.asyncio
    async def test_no_server_timing_by_default(self, dummy_app, send, sent) -> None:
        """Response headers are untouched by default."""
        middleware = RequestDurationMiddleware(dummy_app)
        await middleware(http_scope(), None, send)
        assert sent[0]["headers"] == [(b"content-type", b"text/plain")]

    def test_timing_header(self, dummy_app) -> None:
        """Server-Timing header reports milliseconds."""
        middleware = RequestDurationMiddleware(dummy_app, metric_name="total")
        header = middleware.timing_header(2_500_000)
        assert header.generate() == "Server-Timing: total; dur=2.500"

    @pytest.mark.asyncio
    async def test_non_http_passthrough(self, dummy_app, calls, caplog) -> None:
        """Non-HTTP scopes are not timed."""
        middleware = RequestDurationMiddleware(dummy_app)
        with caplog.at_level(logging.INFO, logger="genro_headers.duration"):
            await middleware({"type": "lifespan"}, None, None)
        assert len(calls) == 1
        assert caplog.records == []


class TestMiddlewareChain:
    """Tests for middleware_chain."""

    def test_nothing_enabled(self, dummy_app) -> None:
        """Without config the app is returned unchanged."""
        assert middleware_chain({}, dummy_app) is dummy_app

    def test_order(self, dummy_app) -> None:
        """Lower middleware_order wraps outermost."""
        app = middleware_chain(
            "csrf, duration", dummy_app, full_config={"csrf_middleware": {"token": "t"}}
        )
        assert isinstance(app, RequestDurationMiddleware)
        assert isinstance(app.app, CsrfMiddleware)
        assert app.app.app is dummy_app
        assert app.app.token == "t"

    def test_dict_config_on_off(self, dummy_app) -> None:
        """Dict values are parsed as on/off."""
        app = middleware_chain({"duration": "on", "csrf": "off"}, dummy_app)
        assert isinstance(app, RequestDurationMiddleware)
        assert app.app is dummy_app

    def test_list_config(self, dummy_app) -> None:
        """A list enables the named middleware."""
        app = middleware_chain(
            ["duration"], dummy_app, full_config={"duration_middleware": {"decimal_places": 2}}
        )
        assert app.decimal_places == 2

    def test_unknown_middleware(self, dummy_app) -> None:
        """Unknown names are rejected."""
        with pytest.raises(ValueError, match="Unknown middleware: gzip"):
            middleware_chain("gzip", dummy_app)
