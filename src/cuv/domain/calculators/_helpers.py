"""Shared ordering helpers for calculator modules."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Protocol


class _Dated(Protocol):
    date: str


def sort_by_date[T: _Dated](rows: Iterable[T]) -> list[T]:
    """Ascending by ISO date; ISO strings order the same as the dates they name."""
    return sorted(rows, key=lambda row: row.date)


def rank_desc[T](items: Iterable[T], key: Callable[[T], float]) -> list[T]:
    """Stable descending sort: ties keep first-seen order."""
    return sorted(items, key=key, reverse=True)


def top_entry(totals: dict[str, int]) -> tuple[str, int] | None:
    """Highest value in insertion-ordered totals; the first seen wins ties."""
    best: tuple[str, int] | None = None
    for name, value in totals.items():
        if best is None or value > best[1]:
            best = (name, value)
    return best
