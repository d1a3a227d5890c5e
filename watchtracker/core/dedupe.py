from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, TypeVar


class _Named(Protocol):
    @property
    def name(self) -> str: ...


T = TypeVar("T", bound=_Named)


def dedupe_by_name(items: Iterable[T]) -> list[T]:
    """
    Keep the first occurrence of every name. Same-named variants (e.g. two
    colorways sold under one title) collapse into a single entry.
    """
    seen: dict[str, None] = {}
    out: list[T] = []
    for item in items:
        if item.name in seen:
            continue
        seen[item.name] = None
        out.append(item)
    return out
