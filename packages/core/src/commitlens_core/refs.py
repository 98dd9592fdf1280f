"""Commit references.

The commit being tracked does not have a hash we can trust yet when the
history entry is first written, so it is recorded as ``Pending`` and resolved
to a concrete hash on the next run. ``Pending`` is written as ``"HEAD"`` in
both the history file and the test log; that string never leaves this module.
"""

from __future__ import annotations

from dataclasses import dataclass

_PLACEHOLDER = "HEAD"


@dataclass(frozen=True)
class Pending:
    """The commit currently being tracked."""

    @property
    def rev(self) -> str:
        return _PLACEHOLDER

    def __str__(self) -> str:
        return _PLACEHOLDER


@dataclass(frozen=True)
class Resolved:
    """A commit identified by its full hash."""

    sha: str

    @property
    def rev(self) -> str:
        return self.sha

    def __str__(self) -> str:
        return self.sha


CommitRef = Pending | Resolved

PENDING = Pending()


def parse_ref(value: str) -> CommitRef:
    if value == _PLACEHOLDER:
        return PENDING
    return Resolved(value)


def commit_url(repo_url: str, ref: CommitRef) -> str:
    return f"{repo_url}/commit/{ref.rev}"


def resolve_commit_url(url: str, sha: str) -> str:
    """Point a URL built for ``Pending`` at a concrete hash. Other URLs pass through."""
    suffix = f"/commit/{_PLACEHOLDER}"
    if url.endswith(suffix):
        return url[: -len(suffix)] + f"/commit/{sha}"
    return url
