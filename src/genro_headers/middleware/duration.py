# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Request Duration Middleware - log how long each HTTP request took.

Log format:
    "Request /api/users?page=2 from 192.168.1.1 took 1234567ns (0.00123s)"

When ``server_timing`` is enabled the duration up to the response start is
also exposed to the client with a ``Server-Timing`` header::

    Server-Timing: app; dur=1.235

Config:
    logger_name (str): Logger name. Default: "genro_headers.duration".
    level (str): Log level (DEBUG, INFO, WARNING, ERROR). Default: "INFO".
    decimal_places (int): Decimals of the seconds figure. Default: 5.
    server_timing (bool): Add the Server-Timing response header. Default: False.
    metric_name (str): Server-Timing metric name. Default: "app".

Example:
    Enable in config.toml::

        [middleware]
        duration = "on"

        [duration_middleware]
        level = "DEBUG"
        server_timing = true
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, MutableMapping

from . import BaseMiddleware
from ..header import Header

if TYPE_CHECKING:
    from ..types import ASGIApp, Receive, Scope, Send


class RequestDurationMiddleware(BaseMiddleware):
    """Request duration logging middleware.

    Attributes:
        logger: Python Logger instance for duration records.
        level: Numeric log level (from logging module).
        decimal_places: Decimals used for the seconds figure.
        server_timing: Whether to add a Server-Timing response header.
        metric_name: Metric name used in Server-Timing.

    Class Attributes:
        middleware_name: "duration" - identifier for config.
        middleware_order: 200 - runs early to capture full request timing.
        middleware_default: False - disabled by default.
    """

    middleware_name = "duration"
    middleware_order = 200
    middleware_default = False

    __slots__ = ("logger", "level", "decimal_places", "server_timing", "metric_name")

    def __init__(
        self,
        app: ASGIApp,
        logger_name: str = "genro_headers.duration",
        level: str = "INFO",
        decimal_places: int = 5,
        server_timing: bool = False,
        metric_name: str = "app",
        **kwargs: Any,
    ) -> None:
        super().__init__(app, **kwargs)
        self.logger = logging.getLogger(logger_name)
        self.level = getattr(logging, level.upper(), logging.INFO)
        self.decimal_places = int(decimal_places)
        self.server_timing = server_timing
        self.metric_name = metric_name

    def timing_header(self, elapsed_ns: int) -> Header:
        """Build the Server-Timing header for an elapsed time in nanoseconds."""
        return Header("Server-Timing", self.metric_name, {"dur": f"{elapsed_ns / 1_000_000:.3f}"})

    def format_record(self, scope: Scope, elapsed_ns: int) -> str:
        path = scope.get("path", "/")
        query = scope.get("query_string", b"").decode("latin-1")
        url = f"{path}?{query}" if query else path
        client = scope.get("client")
        client_ip = client[0] if client else "unknown"
        seconds = f"{elapsed_ns / 1_000_000_000:.{self.decimal_places}f}"
        return f"Request {url} from {client_ip} took {elapsed_ns}ns ({seconds}s)"

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Process request, logging its duration once the app returns.

        Note:
            Non-HTTP requests pass through without timing.
            The duration is logged also when the app raises.
        """
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started = time.perf_counter_ns()

        async def send_with_timing(message: MutableMapping[str, Any]) -> None:
            if self.server_timing and message["type"] == "http.response.start":
                header = self.timing_header(time.perf_counter_ns() - started)
                message["headers"] = [*message.get("headers", []), header.as_asgi()]
            await send(message)

        try:
            await self.app(scope, receive, send_with_timing)
        finally:
            self.logger.log(self.level, self.format_record(scope, time.perf_counter_ns() - started))


if __name__ == "__main__":
    pass
