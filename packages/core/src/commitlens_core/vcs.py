"""Read-only git queries for the commit being tracked.

Every git call goes through a ``GitRunner`` so the inspector can be pointed at
a fake repository in tests. The inspector never writes to the repository.
"""

from __future__ import annotations

import logging
import re
import subprocess
from dataclasses import dataclass
from datetime import datetime, timezone

from commitlens_core.refs import CommitRef, commit_url

logger = logging.getLogger(__name__)

_INSERTIONS_RE = re.compile(r"(\d+)\s+insertions?\(")
_DELETIONS_RE = re.compile(r"(\d+)\s+deletions?\(")
_SSH_REMOTE_RE = re.compile(r"^git@([^:]+):(.+)$")
# owner/name.git at the end of either an https or an ssh remote
_REPO_SLUG_RE = re.compile(r"[:/]([^/]+)/([^/]+)\.git$")

_GIT_TIMEOUT = 30


class GitError(RuntimeError):
    """A git command exited non-zero or could not be started."""


class GitRunner:
    """Runs git in a working directory and returns its trimmed stdout."""

    def __init__(self, cwd: str | None = None):
        self._cwd = cwd

    def run(self, *args: str) -> str:
        try:
            result = subprocess.run(
                ["git", *args],
                capture_output=True,
                text=True,
                cwd=self._cwd,
                timeout=_GIT_TIMEOUT,
            )
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            raise GitError(f"git {' '.join(args)}: {e}") from e
        if result.returncode != 0:
            raise GitError(f"git {' '.join(args)}: {result.stderr.strip() or 'exit ' + str(result.returncode)}")
        return result.stdout.strip()


@dataclass
class CommitStats:
    additions: int = 0
    deletions: int = 0
    date: str = ""  # YYYY-MM-DD

    @property
    def total(self) -> int:
        return self.additions + self.deletions


@dataclass
class CommitInfo:
    """Identity, URL and diff stats of a single commit."""

    ref: CommitRef
    author: str
    date: str  # ISO-8601 UTC, e.g. 2024-05-01T10:00:00.000Z
    message: str
    url: str
    stats: CommitStats


def normalize_remote_url(remote: str) -> str:
    """Turn a clone URL into the repository's web URL.

    https://github.com/owner/repo.git  →  https://github.com/owner/repo
    git@github.com:owner/repo.git      →  https://github.com/owner/repo
    """
    url = remote.strip().removesuffix(".git")
    match = _SSH_REMOTE_RE.match(url)
    if match:
        url = f"https://{match.group(1)}/{match.group(2)}"
    return url


def parse_stat_summary(output: str) -> tuple[int, int]:
    """Pull insertion and deletion totals out of ``git --stat`` output."""
    insertions = _INSERTIONS_RE.search(output)
    deletions = _DELETIONS_RE.search(output)
    return (
        int(insertions.group(1)) if insertions else 0,
        int(deletions.group(1)) if deletions else 0,
    )


def to_utc_iso(value: str) -> str:
    dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class GitInspector:
    """Answers the questions the tracker asks about the local repository."""

    def __init__(self, runner: GitRunner | None = None, excluded: list[str] | None = None):
        self._git = runner or GitRunner()
        self._excluded = list(excluded or [])

    def commit_info(self, ref: CommitRef) -> CommitInfo | None:
        """Return metadata for ``ref``, or None if git cannot identify the commit."""
        rev = ref.rev
        try:
            message = self._git.run("log", "-1", "--pretty=%B", rev)
            date = to_utc_iso(self._git.run("log", "-1", "--format=%aI", rev))
            author = self._git.run("log", "-1", "--pretty=format:%an", rev)
        except (GitError, ValueError) as e:
            logger.error("Could not read commit info for %s: %s", rev, e)
            return None

        stats = self.diff_stats(rev)
        stats.date = date.split("T")[0]
        return CommitInfo(
            ref=ref,
            author=author,
            date=date,
            message=message,
            url=commit_url(self.remote_url(), ref),
            stats=stats,
        )

    def remote_url(self) -> str:
        try:
            return normalize_remote_url(self._git.run("config", "--get", "remote.origin.url"))
        except GitError:
            logger.warning("Could not find remote.origin.url. Commit URL will be incomplete.")
            return ""

    def diff_stats(self, rev: str) -> CommitStats:
        """Line stats against the first parent, or the commit alone when it has none."""
        try:
            parents = self._git.run("log", "-1", "--pretty=%P", rev).split()
            if not parents:
                raise GitError(f"{rev} has no parent")
            output = self._git.run("diff", "--stat", parents[0], rev, "--", *self._exclude_specs())
            additions, deletions = parse_stat_summary(output)
            return CommitStats(additions=additions, deletions=deletions)
        except GitError as e:
            logger.warning("Could not calculate diff stats for %s, it might be the first commit: %s", rev, e)

        try:
            output = self._git.run("show", "--stat", "--format=", rev, "--", *self._exclude_specs())
        except GitError as e:
            logger.warning("Could not get stats for the first commit: %s", e)
            return CommitStats()
        additions, _ = parse_stat_summary(output)
        return CommitStats(additions=additions, deletions=0)

    def resolve(self, rev: str) -> str:
        return self._git.run("rev-parse", rev)

    def current_sha(self) -> str:
        return self.resolve("HEAD")

    def previous_sha(self) -> str:
        return self.resolve("HEAD~1")

    def branch_name(self) -> str:
        return self._git.run("rev-parse", "--abbrev-ref", "HEAD")

    def user_name(self) -> str:
        try:
            return self._git.run("config", "user.name") or "unknown_user"
        except GitError as e:
            logger.error("Could not read git user name: %s", e)
            return "unknown_user"

    def repo_name(self) -> str:
        try:
            remote = self._git.run("remote", "get-url", "origin")
        except GitError as e:
            logger.error("Could not read git repository name: %s", e)
            return "unknown_repo"
        match = _REPO_SLUG_RE.search(remote)
        return match.group(2) if match else "unknown_repo"

    def _exclude_specs(self) -> list[str]:
        return [f":(exclude){path}" for path in self._excluded]
