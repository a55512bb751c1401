# Copyright 2025 Softwell S.r.l.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Configuration utilities for genro-headers.

Configuration is read from a TOML file. String values may reference
environment variables, so secrets such as the CSRF token stay out of the file:

    ${VAR}            - required, ConfigError if not set
    ${VAR:-default}   - with default value

Example TOML structure:
    [middleware]
    duration = "on"
    csrf = "on"

    [csrf_middleware]
    token = "${CSRF_TOKEN}"

    [duration_middleware]
    level = "DEBUG"
    server_timing = true
"""

from __future__ import annotations

import os
import re
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .exceptions import ConfigError

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

if TYPE_CHECKING:
    from .types import ASGIApp

__all__ = ["load_config", "find_config_file", "middleware_from_config", "ConfigError"]

ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def load_config(path: str | Path) -> dict[str, Any]:
    """
    Load configuration from TOML file.

    Args:
        path: Path to TOML configuration file.

    Returns:
        Parsed configuration dict with environment variables expanded.

    Raises:
        ConfigError: If file not found, invalid TOML, or a required
            environment variable is not set.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        with open(path, "rb") as f:
            config = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Failed to parse TOML: {e}") from e

    return dict(_expand_env_vars(config))


def _expand_env_vars(obj: Any) -> Any:
    """Recursively expand environment variables in config values."""
    if isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        return _expand_string(obj)
    return obj


def _expand_string(s: str) -> str:
    """
    Expand environment variables in a string.

    Raises:
        ConfigError: If required variable is not set.
    """

    def replace(match: re.Match[str]) -> str:
        expr = match.group(1)
        if ":-" in expr:
            var_name, default = expr.split(":-", 1)
            return os.environ.get(var_name, default)
        value = os.environ.get(expr)
        if value is None:
            raise ConfigError(f"Required environment variable not set: {expr}")
        return value

    return ENV_VAR_PATTERN.sub(replace, s)


def find_config_file() -> Path | None:
    """
    Find configuration file in standard locations.

    Searches:
    1. GENRO_HEADERS_CONFIG environment variable
    2. ./genro-headers.toml
    3. ./config.toml
    4. ~/.config/genro-headers/config.toml

    Returns:
        Path to config file or None if not found.
    """
    env_config = os.environ.get("GENRO_HEADERS_CONFIG")
    if env_config:
        path = Path(env_config)
        if path.exists():
            return path

    locations = [
        Path.cwd() / "genro-headers.toml",
        Path.cwd() / "config.toml",
        Path.home() / ".config" / "genro-headers" / "config.toml",
    ]

    for path in locations:
        if path.exists():
            return path

    return None


def middleware_from_config(config: Mapping[str, Any], app: ASGIApp) -> ASGIApp:
    """
    Wrap an ASGI app with the middleware enabled in a loaded config.

    Args:
        config: Mapping as returned by ``load_config()``.
        app: The innermost ASGI app.

    Returns:
        The wrapped app, or ``app`` itself when no middleware is enabled.
    """
    from .middleware import middleware_chain

    return middleware_chain(config.get("middleware", {}), app, full_config=config)


if __name__ == "__main__":
    import argparse
    import json

    parser = argparse.ArgumentParser(description="Load and validate config")
    parser.add_argument("config", nargs="?", help="Config file path")
    parser.add_argument("--show", action="store_true", help="Show parsed config")
    args = parser.parse_args()

    config_path: Path | None
    if args.config:
        config_path = Path(args.config)
    else:
        config_path = find_config_file()

    if config_path is None:
        print("No configuration file found")
        sys.exit(1)

    print(f"Loading: {config_path}")

    try:
        config = load_config(config_path)
    except ConfigError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if args.show:
        print(json.dumps(config, indent=2, default=str))
