"""Commit history data models.

Decoupled from the tracking pipeline so the store layer can be used on its own
(the history and stats commands never touch git or the network).
"""

from __future__ import annotations

from dataclasses import dataclass, field

from commitlens_core.refs import CommitRef, Pending, parse_ref

CONCLUSIONS = ("success", "failure", "neutral")


@dataclass
class CommitDetails:
    date: str  # ISO-8601 UTC
    message: str
    url: str


@dataclass
class StatsRecord:
    additions: int = 0
    deletions: int = 0
    date: str = ""  # YYYY-MM-DD

    @property
    def total(self) -> int:
        return self.additions + self.deletions


@dataclass
class CommitRecord:
    """One tracked commit persisted to the history file.

    Created by the CLI after track_commit() returns a TrackSummary. The most
    recently tracked commit is stored with ``sha=Pending()`` until the next
    run resolves it to a hash.
    """

    sha: CommitRef
    author: str
    commit: CommitDetails
    stats: StatsRecord = field(default_factory=StatsRecord)
    coverage: float = 0
    test_count: int = 0
    failed_tests: int = 0
    conclusion: str = "neutral"  # "success" | "failure" | "neutral"

    @property
    def is_pending(self) -> bool:
        return isinstance(self.sha, Pending)

    def to_dict(self) -> dict:
        return {
            "sha": str(self.sha),
            "author": self.author,
            "commit": {"date": self.commit.date, "message": self.commit.message, "url": self.commit.url},
            "stats": {
                "total": self.stats.total,
                "additions": self.stats.additions,
                "deletions": self.stats.deletions,
                "date": self.stats.date,
            },
            "coverage": self.coverage,
            "test_count": self.test_count,
            "failed_tests": self.failed_tests,
            "conclusion": self.conclusion,
        }

    @classmethod
    def from_dict(cls, d: dict) -> CommitRecord:
        commit = d.get("commit") or {}
        stats = d.get("stats") or {}
        return cls(
            sha=parse_ref(str(d.get("sha", ""))),
            author=d.get("author", ""),
            commit=CommitDetails(
                date=commit.get("date", ""),
                message=commit.get("message", ""),
                url=commit.get("url", ""),
            ),
            stats=StatsRecord(
                additions=stats.get("additions", 0),
                deletions=stats.get("deletions", 0),
                date=stats.get("date", ""),
            ),
            coverage=d.get("coverage", 0),
            test_count=d.get("test_count", 0),
            failed_tests=d.get("failed_tests", 0),
            conclusion=d.get("conclusion", "neutral"),
        )
