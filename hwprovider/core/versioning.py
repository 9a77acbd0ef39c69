"""Dotted-numeric version comparison."""

from __future__ import annotations

from itertools import zip_longest

from hwprovider.core.errors import InvalidVersionFormatError


def parse_version(text: str) -> tuple[int, ...]:
    components: list[int] = []
    for part in text.split("."):
        # str.isdigit() accepts non-ASCII digits that int() may reject.
        if not part or not (part.isascii() and part.isdigit()):
            raise InvalidVersionFormatError(f"Invalid version '{text}': component '{part}' is not numeric")
        components.append(int(part))
    return tuple(components)


def compare_versions(a: str, b: str) -> int:
    """Compare two versions component by component.

    Returns -1, 0 or 1. Missing trailing components count as 0, so
    ``"1.0"`` equals ``"1.0.0"`` and ``"1.0.9"`` sorts before ``"1.0.11"``.
    """
    for left, right in zip_longest(parse_version(a), parse_version(b), fillvalue=0):
        if left < right:
            return -1
        if left > right:
            return 1
    return 0
