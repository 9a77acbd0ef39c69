from __future__ import annotations

import pytest

from hwprovider.core.errors import InvalidVersionFormatError
from hwprovider.core.versioning import compare_versions, parse_version


@pytest.mark.parametrize(
    ("a", "b", "expected"),
    [
        ("1.0.9", "1.0.11", -1),
        ("1.0.11", "1.0.11", 0),
        ("1.0.22", "1.0.21", 1),
        ("1.1.0", "1.0.22", 1),
        ("2", "1.99.99", 1),
        ("1.0", "1.0.0", 0),
        ("1.0.0.1", "1.0", 1),
    ],
)
def test_compare_versions(a: str, b: str, expected: int) -> None:
    assert compare_versions(a, b) == expected
    assert compare_versions(b, a) == -expected


def test_comparison_is_numeric_not_lexicographic() -> None:
    assert "1.0.9" > "1.0.11"
    assert compare_versions("1.0.9", "1.0.11") < 0


@pytest.mark.parametrize("bad", ["", "1..0", "1.0.x", "v1.0.0", "1.0.-1", "1.0.1 "])
def test_non_numeric_component_rejected(bad: str) -> None:
    with pytest.raises(InvalidVersionFormatError):
        compare_versions(bad, "1.0.0")
    with pytest.raises(InvalidVersionFormatError):
        compare_versions("1.0.0", bad)


def test_invalid_version_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        parse_version("beta")


def test_parse_version() -> None:
    assert parse_version("1.0.22") == (1, 0, 22)
