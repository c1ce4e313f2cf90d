from __future__ import annotations

from typing import Sequence, TypeVar

T = TypeVar("T")


def unwrap_relation(relation: T | Sequence[T] | None) -> T | None:
    """Single related object from a relationship that may come back as a collection."""
    if relation is None:
        return None
    if isinstance(relation, (list, tuple)):
        return relation[0] if relation else None
    return relation
