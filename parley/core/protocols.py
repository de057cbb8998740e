from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, runtime_checkable

from parley.core.models import Discussion
from parley.lib.locks import KeyedLock

ChangeListener = Callable[[str, Discussion | None], None]


@runtime_checkable
class DiscussionRepository(Protocol):
    """Discussion store consumed by the versioning and similarity code.

    ``save`` swaps the stored reference for the given value; callers build a
    new ``Discussion`` rather than mutating the one returned by ``get``.
    """

    locks: KeyedLock

    def get(self, discussion_id: str) -> Discussion | None: ...

    def list(self) -> list[Discussion]: ...

    def save(self, discussion: Discussion) -> Discussion: ...

    def delete(self, discussion_id: str) -> bool: ...
