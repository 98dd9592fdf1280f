"""Abstract history store interface.

The CLI depends on BaseHistoryStore — not on a concrete backend — so the
JSON file can be swapped for a no-op store without touching CLI code.
Placeholder reconciliation is backend independent and lives here.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable

from commitlens_core.refs import Resolved, resolve_commit_url
from commitlens_core.vcs import GitError

if TYPE_CHECKING:
    from commitlens_store.models import CommitRecord

logger = logging.getLogger(__name__)

# Records with a missing or malformed date sort first.
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _sort_key(date: str) -> datetime:
    try:
        dt = datetime.fromisoformat(date.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return _EPOCH
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def by_commit_date(records: list[CommitRecord]) -> list[CommitRecord]:
    """Return ``records`` oldest first. Ties keep their relative order."""
    return sorted(records, key=lambda r: _sort_key(r.commit.date))


class BaseHistoryStore(ABC):
    """Pluggable persistence layer for commit history."""

    @abstractmethod
    def ensure(self) -> None:
        """Create an empty history if none exists yet."""

    @abstractmethod
    def load(self) -> list[CommitRecord]:
        """Return all stored records, oldest first.

        Returns an empty list if no history exists or it cannot be read — never raises.
        """

    @abstractmethod
    def save(self, records: list[CommitRecord]) -> None:
        """Replace the stored history with ``records``."""

    def reconcile(
        self,
        records: list[CommitRecord],
        current: CommitRecord,
        resolve_previous: Callable[[], str],
    ) -> list[CommitRecord]:
        """Finalise the previous placeholder and append ``current``.

        The placeholder left by the last run belongs to the commit just before
        the one being tracked now, so it is rewritten to that hash. Any
        placeholder still present afterwards is dropped; ``current`` becomes
        the only one.
        """
        pending = next((r for r in records if r.is_pending), None)
        if pending is not None:
            try:
                previous_sha = resolve_previous()
            except GitError as e:
                logger.warning("Could not resolve the previous commit; dropping its placeholder entry: %s", e)
            else:
                pending.sha = Resolved(previous_sha)
                pending.commit.url = resolve_commit_url(pending.commit.url, previous_sha)

        reconciled = [r for r in records if not r.is_pending]
        reconciled.append(current)
        return reconciled

    def record(self, current: CommitRecord, resolve_previous: Callable[[], str]) -> list[CommitRecord]:
        """Load, reconcile and save in one step.

        Returns the saved records oldest first, the same order ``load`` gives back.
        """
        records = by_commit_date(self.reconcile(self.load(), current, resolve_previous))
        self.save(records)
        return records

    def close(self) -> None:
        """Release any resources held by the store.

        Optional — default is a no-op so callers can always call close() safely.
        """
