# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""CSRF Middleware - reject state-changing requests without a valid token.

Requests whose method is not in ``safe_methods`` must carry the CSRF token in
a request header (``X-CSRF-TOKEN`` by default). The submitted token is
compared with the expected one using ``hmac.compare_digest``.

On failure a ``403`` plain text response is sent, or
``CsrfTokenVerificationError`` is raised when ``raise_errors`` is set so that
an outer error handler can render it.

Config:
    token (str): Expected token. Required unless ``token_provider`` is given.
    token_provider (callable): ``(scope) -> str | None`` returning the expected
        token for a request, e.g. from the session. Takes precedence over token.
    header_name (str): Request header carrying the token. Default: "X-CSRF-TOKEN".
    safe_methods (str | list): Methods exempt from the check.
        Default: "GET, HEAD, OPTIONS".
    raise_errors (bool): Raise instead of answering 403. Default: False.

Example:
    Enable in config.toml::

        [middleware]
        csrf = "on"

        [csrf_middleware]
        token = "${CSRF_TOKEN}"
        safe_methods = "GET, HEAD, OPTIONS, TRACE"
"""

from __future__ import annotations

import hmac
import logging
from typing import TYPE_CHECKING, Any, Callable

from . import BaseMiddleware, headers_dict
from ..exceptions import CsrfTokenVerificationError, InvalidArgument
from ..header import Header
from ..utils import split_and_strip

if TYPE_CHECKING:
    from ..types import ASGIApp, Receive, Scope, Send

logger = logging.getLogger(__name__)

DEFAULT_SAFE_METHODS = ["GET", "HEAD", "OPTIONS"]


class CsrfMiddleware(BaseMiddleware):
    """CSRF token verification for HTTP requests.

    Class Attributes:
        middleware_name: "csrf" - identifier for config.
        middleware_order: 300 - security layer.
        middleware_default: False - disabled by default.
    """

    middleware_name = "csrf"
    middleware_order = 300
    middleware_default = False

    __slots__ = ("token", "token_provider", "header_name", "safe_methods", "raise_errors")

    def __init__(
        self,
        app: ASGIApp,
        token: str | None = None,
        token_provider: Callable[[Scope], str | None] | None = None,
        header_name: str = "X-CSRF-TOKEN",
        safe_methods: str | list[str] | None = None,
        raise_errors: bool = False,
        **kwargs: Any,
    ) -> None:
        """Initialize CSRF middleware.

        Raises:
            ValueError: If neither token nor token_provider is configured.
            InvalidArgument: If header_name is not a valid header name.
        """
        super().__init__(app, **kwargs)
        if not token and token_provider is None:
            raise ValueError("CSRF middleware requires 'token' or 'token_provider'")
        if not Header.is_valid_name(header_name):
            raise InvalidArgument(f'Invalid header name "{header_name}".', argument=header_name)
        self.token = token
        self.token_provider = token_provider
        self.header_name = header_name.strip()
        self.safe_methods = {
            method.upper() for method in split_and_strip(safe_methods, DEFAULT_SAFE_METHODS)
        }
        self.raise_errors = raise_errors

    def requires_csrf(self, scope: Scope) -> bool:
        """Check whether the request must pass CSRF verification.

        Override for finer rules, e.g. exempting webhook paths.
        """
        return scope.get("method", "GET").upper() not in self.safe_methods

    def token_from_request(self, scope: Scope) -> str | None:
        """Extract the submitted token. Override to read it from elsewhere."""
        token: str | None = scope["_headers"].get(self.header_name.lower())
        return token

    def expected_token(self, scope: Scope) -> str | None:
        if self.token_provider is not None:
            return self.token_provider(scope)
        return self.token

    def verify(self, scope: Scope) -> None:
        """Verify the submitted token.

        Raises:
            CsrfTokenVerificationError: If the token is missing or wrong.
        """
        submitted = self.token_from_request(scope)
        expected = self.expected_token(scope)
        if submitted is None or not expected:
            raise CsrfTokenVerificationError()
        if not hmac.compare_digest(expected.encode("utf-8"), submitted.encode("utf-8")):
            raise CsrfTokenVerificationError()

    async def _reject(self, send: Send, exc: CsrfTokenVerificationError) -> None:
        body = exc.detail.encode("utf-8")
        headers = [
            Header("Content-Type", "text/plain", {"charset": "utf-8"}),
            Header("Content-Length", str(len(body))),
        ]
        await send(
            {
                "type": "http.response.start",
                "status": exc.status_code,
                "headers": [header.as_asgi() for header in headers],
            }
        )
        await send({"type": "http.response.body", "body": body})

    @headers_dict
    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Verify the CSRF token of unsafe HTTP requests.

        Note:
            Non-HTTP requests pass through without checks.
        """
        if scope["type"] == "http" and self.requires_csrf(scope):
            try:
                self.verify(scope)
            except CsrfTokenVerificationError as exc:
                logger.warning(
                    "CSRF verification failed for %s %s",
                    scope.get("method", "?"),
                    scope.get("path", "/"),
                )
                if self.raise_errors:
                    raise
                await self._reject(send, exc)
                return
        await self.app(scope, receive, send)


if __name__ == "__main__":
    pass
