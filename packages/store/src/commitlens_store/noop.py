"""No-op store — used by ``commitlens track --no-save``.

Using a NoOpHistoryStore rather than None lets the CLI always call
store.record() without conditional checks.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from commitlens_store.base import BaseHistoryStore

if TYPE_CHECKING:
    from commitlens_store.models import CommitRecord


class NoOpHistoryStore(BaseHistoryStore):
    """Silently discards all records — nothing is read from or written to disk."""

    def ensure(self) -> None:
        pass

    def load(self) -> list[CommitRecord]:
        return []

    def save(self, records: list[CommitRecord]) -> None:
        pass  # intentional no-op
