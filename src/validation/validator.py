"""Structural comparison of expected fixture bodies against actual responses."""

from typing import Any, Mapping

from src.models.outcome import MISSING, FieldMismatch


def values_equal(expected: Any, actual: Any) -> bool:
    """Deep equality where mapping key order is irrelevant.

    Booleans only equal booleans, so ``True`` never matches ``1``.
    Numbers compare by value (``1000 == 1000.0``). Lists compare in order.
    """
    if isinstance(expected, bool) or isinstance(actual, bool):
        return isinstance(expected, bool) and isinstance(actual, bool) and expected == actual
    if isinstance(expected, Mapping):
        if not isinstance(actual, Mapping) or set(expected) != set(actual):
            return False
        return all(values_equal(expected[k], actual[k]) for k in expected)
    if isinstance(expected, (list, tuple)):
        if not isinstance(actual, (list, tuple)) or len(expected) != len(actual):
            return False
        return all(values_equal(e, a) for e, a in zip(expected, actual))
    return expected == actual


def compare(expected_body: Mapping[str, Any], actual_body: Mapping[str, Any] | None) -> list[FieldMismatch]:
    """Return every key of ``expected_body`` whose value differs in ``actual_body``.

    Extra keys in ``actual_body`` are ignored. A key missing from
    ``actual_body`` is reported with ``actual=MISSING``.
    """
    actual_body = actual_body or {}
    mismatches = []
    for key, expected in expected_body.items():
        actual = actual_body.get(key, MISSING) if isinstance(actual_body, Mapping) else MISSING
        if actual is MISSING or not values_equal(expected, actual):
            mismatches.append(FieldMismatch(key, expected, actual))
    return mismatches


def validate(expected_body: Mapping[str, Any], actual_body: Mapping[str, Any] | None) -> FieldMismatch | None:
    """First mismatch between the fixture body and the actual body, or None."""
    mismatches = compare(expected_body, actual_body)
    return mismatches[0] if mismatches else None
