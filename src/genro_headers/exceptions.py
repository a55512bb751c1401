# Copyright 2025 Softwell S.r.l.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Exception classes for genro-headers.

Module Structure
----------------
1. InvalidArgument - Bad header name or bad constructor parameters
2. HTTPException - For HTTP error responses raised by middleware
3. CsrfTokenVerificationError - 403 raised when the CSRF check fails
4. ConfigError - Configuration file could not be loaded

Design Decisions
----------------
- InvalidArgument subclasses ValueError so callers that already catch
  ValueError around header construction keep working.
- HTTPException headers: Accepts dict[str, str], list[tuple[str, str]] or
  ``Header`` instances. Stored as list of tuples so duplicate names survive.
  A ``Header`` contributes its name and its value with parameters.

Example:
    >>> raise InvalidArgument("Invalid header name \\"Bad:Name\\".", argument="Bad:Name")
    >>> raise HTTPException(401, detail="Auth required", headers={"WWW-Authenticate": "Bearer"})
    >>> raise CsrfTokenVerificationError()
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from .header import Header

__all__ = [
    "InvalidArgument",
    "HTTPException",
    "CsrfTokenVerificationError",
    "ConfigError",
]


class InvalidArgument(ValueError):
    """
    A value handed to a header operation was rejected.

    Raised by ``Header`` when a name fails validation (at construction or in
    ``set_name``) and when constructor parameters are not all strings. The
    object the call targeted is left as it was.

    Attributes:
        argument: The offending value, when there is a single one.
    """

    def __init__(self, message: str, argument: object = None) -> None:
        self.argument = argument
        super().__init__(message)

    def __repr__(self) -> str:
        return f"InvalidArgument({str(self)!r}, argument={self.argument!r})"


class HTTPException(Exception):
    """
    HTTP exception with status code and detail.

    Attributes:
        status_code: HTTP status code (expected 4xx or 5xx, not validated)
        detail: Error detail message
        headers: Response headers as list of tuples (supports duplicate names)

    Example:
        >>> raise HTTPException(404, detail="Not found")
        >>> raise HTTPException(400, headers=[Header("Retry-After", "120")])
    """

    def __init__(
        self,
        status_code: int,
        detail: str = "",
        headers: dict[str, str] | Iterable[tuple[str, str] | Header] | None = None,
    ) -> None:
        """
        Initialize HTTP exception.

        Args:
            status_code: HTTP status code (4xx, 5xx expected)
            detail: Error detail message (default: "")
            headers: Response headers as dict, list of tuples or ``Header``
                     objects (default: None). Normalized to list of tuples.
        """
        self.status_code = status_code
        self.detail = detail
        if headers is None:
            self.headers: list[tuple[str, str]] | None = None
        elif isinstance(headers, dict):
            self.headers = list(headers.items())
        else:
            self.headers = [_header_pair(item) for item in headers]
        super().__init__(detail)

    def __repr__(self) -> str:
        return f"HTTPException(status_code={self.status_code}, detail={self.detail!r})"


class CsrfTokenVerificationError(HTTPException):
    """HTTP 403 raised when a request fails CSRF token verification."""

    def __init__(
        self,
        detail: str = "The CSRF token is missing from the request or is invalid.",
    ) -> None:
        super().__init__(403, detail=detail)


class ConfigError(Exception):
    """Configuration error."""


def _header_pair(item: tuple[str, str] | Header) -> tuple[str, str]:
    if isinstance(item, tuple):
        return item
    return item.as_pair()


if __name__ == "__main__":
    pass
