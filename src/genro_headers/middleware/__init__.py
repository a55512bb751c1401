# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Middleware package - ASGI middleware built on the genro-headers model."""

from __future__ import annotations

import functools
import importlib
from abc import ABC, abstractmethod
from collections.abc import Callable, Coroutine, Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..types import ASGIApp, Receive, Scope, Send

MIDDLEWARE_REGISTRY: dict[str, type["BaseMiddleware"]] = {}


def headers_dict(
    func: Callable[..., Coroutine[Any, Any, None]],
) -> Callable[..., Coroutine[Any, Any, None]]:
    """Decorator that parses headers into scope["_headers"] dict if not present.

    Names are lowercased. When a header repeats, the first value wins.
    """

    @functools.wraps(func)
    async def wrapper(
        self: "BaseMiddleware", scope: "Scope", receive: "Receive", send: "Send"
    ) -> None:
        if "_headers" not in scope:
            parsed: dict[str, str] = {}
            for name, value in scope.get("headers", []):
                parsed.setdefault(name.decode("latin-1").lower(), value.decode("latin-1"))
            scope["_headers"] = parsed
        await func(self, scope, receive, send)

    return wrapper


class BaseMiddleware(ABC):
    """Base class for all middleware. Subclasses auto-register via __init_subclass__.

    Class attributes:
        middleware_name: Registry key (default: class name).
        middleware_order: Order in chain (lower = earlier). Ranges:
            200: Logging/Timing
            300: Security (csrf)
            500-800: Custom
        middleware_default: Default on/off state. Default: False.

    Use @headers_dict decorator on __call__ to access scope["_headers"].
    """

    middleware_name: str = ""
    middleware_order: int = 500
    middleware_default: bool = False

    __slots__ = ("app",)

    def __init__(self, app: ASGIApp, **kwargs: Any) -> None:
        """Initialize middleware with wrapped app.

        Args:
            app: The ASGI app to wrap (next in chain).
            **kwargs: Middleware-specific configuration.
        """
        self.app = app

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        name = cls.middleware_name or cls.__name__
        if name in MIDDLEWARE_REGISTRY:
            raise ValueError(f"Middleware name '{name}' already registered")
        cls.middleware_name = name
        MIDDLEWARE_REGISTRY[name] = cls

    @abstractmethod
    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None: ...


def _autodiscover() -> None:
    """Import all middleware modules in this package to trigger registration."""
    package_dir = Path(__file__).parent
    for py_file in package_dir.glob("*.py"):
        if py_file.name.startswith("_"):
            continue
        importlib.import_module(f".{py_file.stem}", __package__)


def middleware_chain(
    middleware_config: str | list[str] | Mapping[str, Any],
    app: ASGIApp,
    full_config: Mapping[str, Any] | None = None,
) -> ASGIApp:
    """Build middleware chain from config with automatic ordering.

    Uses middleware_order class attribute for sorting (lower = earlier in chain).
    Uses middleware_default class attribute for default on/off state.

    TOML format:
        [middleware]
        duration = "on"
        csrf = "on"

        [csrf_middleware]
        token = "${CSRF_TOKEN}"
        safe_methods = "GET, HEAD, OPTIONS"

        [duration_middleware]
        server_timing = true

    Args:
        middleware_config: Dict {name: on/off}, comma-separated string, or list.
        app: The innermost ASGI app.
        full_config: Full config mapping to lookup {name}_middleware sections.

    Returns:
        Wrapped ASGI app with middleware chain.
    """
    config_dict: dict[str, bool] = {}

    if isinstance(middleware_config, str):
        for name in middleware_config.split(","):
            name = name.strip()
            if name:
                config_dict[name] = True
    elif hasattr(middleware_config, "as_dict"):
        for name, value in middleware_config.as_dict().items():  # type: ignore[union-attr]
            config_dict[name] = _parse_enabled(value)
    elif isinstance(middleware_config, Mapping):
        for name, value in middleware_config.items():
            config_dict[name] = _parse_enabled(value)
    elif middleware_config:
        for name in middleware_config:
            config_dict[name] = True

    unknown = set(config_dict) - set(MIDDLEWARE_REGISTRY)
    if unknown:
        raise ValueError(f"Unknown middleware: {', '.join(sorted(unknown))}")

    enabled: list[tuple[int, str, type[BaseMiddleware]]] = []
    for name, cls in MIDDLEWARE_REGISTRY.items():
        is_enabled = config_dict.get(name, cls.middleware_default)
        if is_enabled:
            enabled.append((cls.middleware_order, name, cls))

    enabled.sort(key=lambda x: x[0])

    # First in order = outermost wrapper
    for _order, name, cls in reversed(enabled):
        config: Any = {}
        if full_config is not None:
            mw_config = full_config.get(f"{name}_middleware")
            if mw_config is not None:
                config = mw_config.as_dict() if hasattr(mw_config, "as_dict") else dict(mw_config)
        app = cls(app, **config)

    return app


def _parse_enabled(value: Any) -> bool:
    """Parse on/off/true/false value to bool."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() in ("on", "true", "yes", "1")
    return bool(value)


_autodiscover()
globals().update(MIDDLEWARE_REGISTRY)

__all__ = [
    "BaseMiddleware",
    "MIDDLEWARE_REGISTRY",
    "headers_dict",
    "middleware_chain",
    *MIDDLEWARE_REGISTRY.keys(),
]
