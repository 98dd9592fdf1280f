"""Tests for the track_commit orchestration."""

import asyncio
import json
from unittest.mock import MagicMock

import pytest

from commitlens_core.refs import PENDING
from commitlens_core.telemetry import SendResult
from commitlens_core.tracker import track_commit
from commitlens_core.vcs import CommitInfo, CommitStats


def make_inspector(info="default"):
    inspector = MagicMock()
    if info == "default":
        info = CommitInfo(
            ref=PENDING,
            author="Ada",
            date="2024-05-01T10:30:00.000Z",
            message="Add login form",
            url="https://github.com/owner/repo/commit/HEAD",
            stats=CommitStats(additions=8, deletions=4, date="2024-05-01"),
        )
    inspector.commit_info.return_value = info
    inspector.current_sha.return_value = "abc123"
    inspector.branch_name.return_value = "main"
    return inspector


class StubClient:
    def __init__(self, commit_ok=True, runs_ok=True):
        self.calls: list[tuple[str, dict]] = []
        self._commit_ok = commit_ok
        self._runs_ok = runs_ok

    async def send_commit(self, payload):
        self.calls.append(("commit", payload))
        return SendResult("/commits", ok=self._commit_ok, error=None if self._commit_ok else "boom")

    async def send_test_runs(self, payload):
        self.calls.append(("test-runs", payload))
        return SendResult("/test-runs", ok=self._runs_ok, error=None if self._runs_ok else "boom")


def write_log(tmp_path, entries):
    path = tmp_path / "tdd_log.json"
    path.write_text(json.dumps(entries))
    return path


RUN = {"numTotalTests": 4, "failedTests": 1, "numPassedTests": 3, "success": False, "timestamp": "t", "testId": "r1"}


@pytest.mark.asyncio
async def test_failed_inspection_sends_nothing(tmp_path):
    client = StubClient()
    summary = await track_commit(make_inspector(info=None), client, tmp_path / "missing.json")
    assert summary is None
    assert client.calls == []


@pytest.mark.asyncio
async def test_sends_commit_then_test_runs(tmp_path):
    client = StubClient()
    log = write_log(tmp_path, [{"commitId": "old"}, RUN, {"commitId": "HEAD"}])

    summary = await track_commit(make_inspector(), client, log)

    assert [kind for kind, _ in client.calls] == ["commit", "test-runs"]
    commit_payload = client.calls[0][1]
    assert commit_payload["_id"] == "abc123"
    assert commit_payload["commit"]["url"].endswith("/commit/abc123")
    assert commit_payload["conclusion"] == "failure"
    assert client.calls[1][1]["commit_sha"] == "abc123"
    assert summary.sha == "abc123"
    assert summary.branch == "main"
    assert summary.delivered is True


@pytest.mark.asyncio
async def test_no_runs_skips_batch_send(tmp_path):
    client = StubClient()
    summary = await track_commit(make_inspector(), client, tmp_path / "missing.json")

    assert [kind for kind, _ in client.calls] == ["commit"]
    assert summary.window.conclusion == "neutral"


@pytest.mark.asyncio
async def test_summary_keeps_pending_url(tmp_path):
    summary = await track_commit(make_inspector(), StubClient(), tmp_path / "missing.json")
    assert summary.info.url.endswith("/commit/HEAD")


@pytest.mark.asyncio
async def test_send_failures_are_reported_in_summary(tmp_path):
    client = StubClient(commit_ok=False, runs_ok=False)
    log = write_log(tmp_path, [RUN, {"commitId": "HEAD"}])

    summary = await track_commit(make_inspector(), client, log)

    assert summary is not None
    assert summary.delivered is False
    assert [r.ok for r in summary.results] == [False, False]


class BlockingClient(StubClient):
    """Sends that only complete once ``release`` is set."""

    def __init__(self):
        super().__init__()
        self.release = asyncio.Event()
        self.finished: list[str] = []

    async def send_commit(self, payload):
        self.calls.append(("commit", payload))
        await self.release.wait()
        self.finished.append("commit")
        return SendResult("/commits", ok=True)

    async def send_test_runs(self, payload):
        self.calls.append(("test-runs", payload))
        await self.release.wait()
        self.finished.append("test-runs")
        return SendResult("/test-runs", ok=True)


@pytest.mark.asyncio
async def test_persist_runs_while_sends_are_in_flight(tmp_path):
    client = BlockingClient()
    log = write_log(tmp_path, [RUN, {"commitId": "HEAD"}])
    seen = {}

    def persist(summary):
        seen["started"] = [kind for kind, _ in client.calls]
        seen["finished"] = list(client.finished)
        seen["results"] = list(summary.results)
        client.release.set()

    summary = await track_commit(make_inspector(), client, log, persist=persist)

    assert seen == {"started": ["commit", "test-runs"], "finished": [], "results": []}
    assert client.finished == ["commit", "test-runs"]
    assert summary.delivered is True
    assert len(summary.results) == 2


@pytest.mark.asyncio
async def test_persist_not_called_when_inspection_fails(tmp_path):
    persist = MagicMock()
    await track_commit(make_inspector(info=None), StubClient(), tmp_path / "missing.json", persist=persist)
    persist.assert_not_called()


@pytest.mark.asyncio
async def test_persist_failure_propagates(tmp_path):
    def persist(summary):
        raise OSError("disk full")

    with pytest.raises(OSError, match="disk full"):
        await track_commit(make_inspector(), StubClient(), tmp_path / "missing.json", persist=persist)
