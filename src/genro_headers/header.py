# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""
Structured protocol header with validated name and ordered parameters.

Purpose
=======
A header line in email-style protocols (SMTP, MIME parts, HTTP) is made of a
name, a value and zero or more value parameters::

    {name}: {value}[; {param-name}={param-value}[; {param-name}={param-value}]...]

This module provides:
- ``Header``: Mutable header whose name is validated at every mutation
- ``Header.is_valid_name()``: Token-character check for header names

Processing Schema::

    Header("Content-Type", "text/plain", {"charset": "utf-8"})
                        ↓
            name trimmed + validated
                        ↓
    _name = "Content-Type", _value = "text/plain", _params = {"charset": "utf-8"}
                        ↓
                   generate()
                        ↓
    "Content-Type: text/plain; charset=utf-8"

Definition::

    class Header:
        __slots__ = ("_name", "_value", "_params")

        def __init__(self, name: str, value: str, parameters: Mapping[str, str] | None = None) -> None
        @staticmethod
        def is_valid_name(name: str) -> bool
        def set_name(self, name: str) -> None
        name: str                                   # read-only
        def set_value(self, value: str) -> None
        value: str
        def set_parameter(self, name: str, value: str) -> None
        def parameter(self, name: str) -> str | None
        def has_parameter(self, name: str) -> bool
        def remove_parameter(self, name: str) -> None
        def parameters(self) -> dict[str, str]
        def parameter_count(self) -> int
        def generate(self) -> str
        def encode(self, encoding: str = "utf-8") -> bytes
        def as_pair(self) -> tuple[str, str]
        def as_asgi(self) -> tuple[bytes, bytes]

Example::

    from genro_headers import Header

    header = Header("Content-Type", "text/plain", {"charset": "utf-8"})
    str(header)                 # "Content-Type: text/plain; charset=utf-8"

    header.set_parameter("format", "flowed")
    header.generate()           # "Content-Type: text/plain; charset=utf-8; format=flowed"

    Header.is_valid_name("X-CSRF-TOKEN")   # True
    Header.is_valid_name("Bad:Name")       # False

Design Notes
============
- The name can only change through ``set_name()``, which rejects invalid
  names with ``InvalidArgument`` and keeps the previous name.
- Parameters keep insertion order. Setting an existing parameter again
  updates it in place; its position in the output does not move.
- Parameter names and values are not validated nor escaped. Callers must
  not put ``;``, ``=`` or line terminators in them unless already encoded.
- ``generate()`` adds no line terminator: CRLF for SMTP/HTTP, something
  else for other protocols, is up to the protocol layer.

References
==========
- Header field names (RFC 5322): https://tools.ietf.org/html/rfc5322#section-2.2
- Token characters (RFC 7230): https://tools.ietf.org/html/rfc7230#section-3.2.6
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from .exceptions import InvalidArgument

__all__ = ["Header", "NAME_PATTERN"]

NAME_PATTERN = re.compile(r"[!#$%&'*+\-0-9A-Z^_`a-z|~]+")


class Header:
    """
    A single protocol header: name, value and ordered parameters.

    The full header line, without trailing delimiter, is available from
    ``generate()`` or ``str(header)``.

    Parameters may also be written straight into the value passed to
    ``set_value()``. Those are not reported by ``parameters()`` while
    parameters set with ``set_parameter()`` are still appended, so mixing
    the two styles on one header is best avoided.

    Example:
        >>> header = Header("Content-Type", "text/plain", {"charset": "utf-8"})
        >>> header.name
        'Content-Type'
        >>> header.parameter("charset")
        'utf-8'
        >>> str(header)
        'Content-Type: text/plain; charset=utf-8'
        >>> Header("bad name!", "x")
        Traceback (most recent call last):
        ...
        genro_headers.exceptions.InvalidArgument: Invalid header name "bad name!".
    """

    __slots__ = ("_name", "_value", "_params")

    def __init__(
        self,
        name: str,
        value: str,
        parameters: Mapping[str, str] | None = None,
    ) -> None:
        """
        Create a header.

        Args:
            name: Header name. Surrounding whitespace is trimmed before validation.
            value: Header value, may be empty.
            parameters: Initial parameters, applied in iteration order.

        Raises:
            InvalidArgument: If a parameter name is not a non-blank string, a
                parameter value is not a string, or the name is invalid.
        """
        if parameters is not None and not isinstance(parameters, Mapping):
            raise InvalidArgument("All header parameter names must be strings.")
        parameters = dict(parameters) if parameters else {}
        if not all(isinstance(key, str) and key.strip() for key in parameters):
            raise InvalidArgument("All header parameter names must be strings.")
        if not all(isinstance(param, str) for param in parameters.values()):
            raise InvalidArgument("All header parameters must be strings.")

        self._params: dict[str, str] = {}
        self.set_name(name)
        self.set_value(value)
        for param_name, param_value in parameters.items():
            self.set_parameter(param_name, param_value)

    @staticmethod
    def is_valid_name(name: str) -> bool:
        """
        Check whether a string is a valid header name.

        The candidate is trimmed first. Valid names are non-empty and made
        only of the token characters::

            !#$%&'*+-0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ^_`abcdefghijklmnopqrstuvwxyz|~
        """
        return NAME_PATTERN.fullmatch(name.strip()) is not None

    def set_name(self, name: str) -> None:
        """
        Set the header name.

        Raises:
            InvalidArgument: If the trimmed name is not valid. The current
                name is left unchanged.
        """
        name = name.strip()
        if not self.is_valid_name(name):
            raise InvalidArgument(f'Invalid header name "{name}".', argument=name)
        self._name = name

    @property
    def name(self) -> str:
        """The header name, already trimmed and validated."""
        return self._name

    def set_value(self, value: str) -> None:
        """Set the header value. The empty string is allowed."""
        self._value = value

    @property
    def value(self) -> str:
        """The header value."""
        return self._value

    @value.setter
    def value(self, value: str) -> None:
        self.set_value(value)

    def set_parameter(self, name: str, value: str) -> None:
        """Insert or update a parameter. Neither name nor value is validated."""
        self._params[name] = value

    def parameter(self, name: str) -> str | None:
        """Return the value of a parameter, or None if it is not set."""
        return self._params.get(name)

    def has_parameter(self, name: str) -> bool:
        return name in self._params

    def remove_parameter(self, name: str) -> None:
        """Remove a parameter. Removing a missing parameter does nothing."""
        self._params.pop(name, None)

    def parameters(self) -> dict[str, str]:
        """Return a copy of the parameters, in output order."""
        return dict(self._params)

    def parameter_count(self) -> int:
        return len(self._params)

    def _parameter_suffix(self) -> str:
        return "".join(f"; {key}={value}" for key, value in self._params.items())

    def generate(self) -> str:
        """
        Generate the header line.

        Returns:
            ``"{name}: {value}"`` followed by ``"; {key}={value}"`` for each
            parameter. No trailing delimiter is added.
        """
        return f"{self._name}: {self._value}{self._parameter_suffix()}"

    def encode(self, encoding: str = "utf-8") -> bytes:
        """Return ``generate()`` encoded to bytes."""
        return self.generate().encode(encoding)

    def as_pair(self) -> tuple[str, str]:
        """
        Return ``(name, value)`` with the parameters folded into the value.

        Useful for frameworks that keep headers as name/value tuples.
        """
        return self._name, f"{self._value}{self._parameter_suffix()}"

    def as_asgi(self) -> tuple[bytes, bytes]:
        """
        Return the header as an ASGI ``(name, value)`` pair of latin-1 bytes.

        The name is lowercased as ASGI servers expect.

        Raises:
            UnicodeEncodeError: If the value holds characters outside latin-1.
        """
        name, value = self.as_pair()
        return name.lower().encode("latin-1"), value.encode("latin-1")

    def matches(self, other: Header | str) -> bool:
        """
        Check whether this header matches another header or a header name.

        Against a name, only the names are compared (case-insensitive).
        Against a header, names are compared case-insensitively, values
        exactly, and parameters must hold the same entries in any order.
        """
        if isinstance(other, str):
            return self._name.lower() == other.strip().lower()
        return (
            self._name.lower() == other._name.lower()
            and self._value == other._value
            and self._params == other._params
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Header):
            return NotImplemented
        return self.matches(other)

    __hash__ = None  # type: ignore[assignment]

    def __str__(self) -> str:
        return self.generate()

    def __repr__(self) -> str:
        return f"Header({self._name!r}, {self._value!r}, {self._params!r})"
