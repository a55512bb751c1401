# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""ASGI type aliases used by the genro-headers middleware.

Scope : MutableMapping[str, Any]
    Connection metadata (type, method, path, headers, client...).

Message : MutableMapping[str, Any]
    Event exchanged with the server, e.g. "http.response.start".

Receive / Send : async callables moving Messages in and out.

ASGIApp : the application callable wrapped by each middleware.

Headers in ASGI messages stay ``list[tuple[bytes, bytes]]``; use
``Header.as_asgi()`` to produce entries for them.
"""

from typing import Any, Awaitable, Callable, MutableMapping

Scope = MutableMapping[str, Any]
Message = MutableMapping[str, Any]
Receive = Callable[[], Awaitable[Message]]
Send = Callable[[Message], Awaitable[None]]
ASGIApp = Callable[[Scope, Receive, Send], Awaitable[None]]

__all__ = ["Scope", "Message", "Receive", "Send", "ASGIApp"]
