"""Fold cluster member attributes into one canonical value."""

from __future__ import annotations

from collections.abc import Iterable

DELIMITER = ", "


def truncated_mean(values: Iterable[int]) -> int:
    """Arithmetic mean truncated toward zero; 0 for no values."""

    scores = list(values)
    if not scores:
        return 0
    return int(sum(scores) / len(scores))


def split_delimited(value: str | None) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def merge_delimited(groups: Iterable[Iterable[str] | str | None]) -> list[str]:
    """Union of every group, deduplicated and sorted.

    A group is either a list of values or one comma-separated string.
    """

    merged: set[str] = set()
    for group in groups:
        if group is None:
            continue
        values = split_delimited(group) if isinstance(group, str) else group
        merged.update(value.strip() for value in values if value and value.strip())
    return sorted(merged)


def join_delimited(values: Iterable[str]) -> str:
    return DELIMITER.join(values)
