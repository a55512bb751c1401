# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""
Ordered, multi-value collection of ``Header`` objects.

Purpose
=======
A message (an email, a MIME part, an HTTP response) owns a header section:
an ordered list of headers where the same name may appear more than once
(e.g. ``Received``, ``Cc``, ``Set-Cookie``). Lookups by name are
case-insensitive.

This module provides:
- ``HasHeaders``: Mixin giving any message class a header section
- ``HeaderList``: Standalone header section built on the mixin

Definition::

    class HasHeaders:
        def headers(self) -> list[Header]
        def header_values(self, name: str) -> list[str]
        def header_by_name(self, name: str) -> Header | None
        def all_headers_by_name(self, name: str) -> list[Header]
        def add_header(self, header: Header | str, value: str | None = None,
                       parameters: Mapping[str, str] | None = None) -> Header
        def remove_header(self, header: Header | str) -> None
        def clear_headers(self) -> None
        def generate_headers(self, delimiter: str = CRLF) -> str
        def headers_as_asgi(self) -> list[tuple[bytes, bytes]]

    class HeaderList(HasHeaders):
        def __init__(self, headers: Iterable[Header] | None = None) -> None
        def generate(self, delimiter: str = CRLF) -> str
        def __len__ / __iter__ / __contains__ / __repr__

Example::

    from genro_headers import Header, HeaderList

    headers = HeaderList()
    headers.add_header("To", "alice@example.com")
    headers.add_header("Cc", "bob@example.com")
    headers.add_header("Cc", "carol@example.com")
    headers.add_header(Header("Content-Type", "text/plain", {"charset": "utf-8"}))

    headers.header_values("cc")      # ["bob@example.com", "carol@example.com"]
    headers.remove_header("CC")      # removes both Cc headers
    headers.generate()               # "To: alice@example.com\\r\\nContent-Type: ...\\r\\n"

Design Notes
============
- Headers are stored as the caller's ``Header`` objects, not copies.
- ``remove_header(name)`` removes every header with that name;
  ``remove_header(header)`` removes only exact matches (see ``Header.matches``).
- No parsing of raw header lines is offered: headers are built from
  structured data only.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping

from .header import Header

__all__ = ["CRLF", "HasHeaders", "HeaderList"]

CRLF = "\r\n"


class HasHeaders:
    """
    Mixin that gives a message class an ordered header section.

    Subclasses get the ``_headers`` list created lazily, so the mixin can be
    combined with classes that do not call ``super().__init__()``.
    """

    _headers: list[Header]

    def _header_list(self) -> list[Header]:
        try:
            return self._headers
        except AttributeError:
            self._headers = []
            return self._headers

    def headers(self) -> list[Header]:
        """Return all headers in insertion order. Empty list if none."""
        return list(self._header_list())

    def header_values(self, name: str) -> list[str]:
        """
        Get the values of every header with the given name.

        Args:
            name: Header name (case-insensitive).

        Returns:
            Values in insertion order, empty list if the header is absent.
        """
        return [header.value for header in self._header_list() if header.matches(name)]

    def header_by_name(self, name: str) -> Header | None:
        """Return the first header with the given name (case-insensitive), or None."""
        for header in self._header_list():
            if header.matches(name):
                return header
        return None

    def all_headers_by_name(self, name: str) -> list[Header]:
        """Return every header with the given name (case-insensitive)."""
        return [header for header in self._header_list() if header.matches(name)]

    def add_header(
        self,
        header: Header | str,
        value: str | None = None,
        parameters: Mapping[str, str] | None = None,
    ) -> Header:
        """
        Append a header.

        Args:
            header: A ``Header`` or a header name.
            value: Header value, used only when ``header`` is a name.
            parameters: Header parameters, used only when ``header`` is a name.

        Returns:
            The header that was appended.

        Raises:
            InvalidArgument: If ``header`` is a name that is not valid.
        """
        if isinstance(header, str):
            header = Header(header, value or "", parameters)
        self._header_list().append(header)
        return header

    def remove_header(self, header: Header | str) -> None:
        """
        Remove headers.

        A name removes every header with that name. A ``Header`` removes the
        headers that match it exactly, name, value and parameters; if none
        match nothing is removed.
        """
        self._header_list()[:] = [
            existing for existing in self._header_list() if not existing.matches(header)
        ]

    def clear_headers(self) -> None:
        self._header_list().clear()

    def generate_headers(self, delimiter: str = CRLF) -> str:
        """
        Generate the header section.

        Args:
            delimiter: Line terminator of the target protocol. Defaults to CRLF.

        Returns:
            Each header line followed by ``delimiter``. Empty string if there
            are no headers.
        """
        return "".join(f"{header.generate()}{delimiter}" for header in self._header_list())

    def headers_as_asgi(self) -> list[tuple[bytes, bytes]]:
        """Return the headers as ASGI ``(name, value)`` byte pairs."""
        return [header.as_asgi() for header in self._header_list()]


class HeaderList(HasHeaders):
    """
    Standalone ordered header section.

    Example:
        >>> headers = HeaderList([Header("From", "alice@example.com")])
        >>> headers.add_header("Subject", "Hello")
        Header('Subject', 'Hello', {})
        >>> len(headers)
        2
        >>> "subject" in headers
        True
    """

    def __init__(self, headers: Iterable[Header] | None = None) -> None:
        self._headers = list(headers) if headers else []

    def generate(self, delimiter: str = CRLF) -> str:
        """Same as ``generate_headers()``."""
        return self.generate_headers(delimiter)

    def __len__(self) -> int:
        return len(self._headers)

    def __iter__(self) -> Iterator[Header]:
        return iter(list(self._headers))

    def __contains__(self, name: object) -> bool:
        """Check if a header with this name exists (case-insensitive)."""
        if not isinstance(name, str):
            return False
        return self.header_by_name(name) is not None

    def __str__(self) -> str:
        return self.generate()

    def __repr__(self) -> str:
        return f"HeaderList({self._headers!r})"
