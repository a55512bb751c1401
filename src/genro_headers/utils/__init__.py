# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Utility functions for genro-headers.

Exports:
    split_and_strip: Split comma-separated string and strip whitespace.
"""


def split_and_strip(
    value: str | list[str] | None, default: list[str] | None = None
) -> list[str]:
    """Split comma-separated string and strip whitespace from each item.

    If value is already a list, returns a copy. If None, returns default.
    Empty items are dropped.

    Examples:
        split_and_strip("GET, HEAD")  # ["GET", "HEAD"]
        split_and_strip(["x", "y"])  # ["x", "y"]
        split_and_strip(None, ["default"])  # ["default"]
    """
    if value is None:
        return list(default) if default is not None else []
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    return list(value)


__all__ = ["split_and_strip"]
