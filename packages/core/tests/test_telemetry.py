"""Tests for the telemetry client and payload builders."""

import json

import httpx
import pytest

from commitlens_core.refs import PENDING
from commitlens_core.telemetry import TelemetryClient, build_commit_payload, build_test_runs_payload
from commitlens_core.testlog import TestRun, TestWindow
from commitlens_core.vcs import CommitInfo, CommitStats


def make_info():
    return CommitInfo(
        ref=PENDING,
        author="Ada",
        date="2024-05-01T10:30:00.000Z",
        message="Add login form",
        url="https://github.com/owner/repo/commit/HEAD",
        stats=CommitStats(additions=8, deletions=4, date="2024-05-01"),
    )


def make_window():
    return TestWindow(
        runs=[
            TestRun(total=3, failed=1, passed=2, success=False, timestamp="t1", test_id="r1"),
            TestRun(total=3, failed=0, passed=3, success=True, timestamp="t2", test_id="r2"),
        ],
        test_count=3,
        failed_tests=0,
        conclusion="success",
    )


def recording_transport(status=200):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(status, json={})

    return httpx.MockTransport(handler), seen


class TestPayloads:
    def test_commit_payload_uses_actual_hash(self):
        payload = build_commit_payload(make_info(), make_window(), "abc123", "main")
        assert payload["_id"] == "abc123"
        assert payload["branch"] == "main"
        assert payload["commit"]["url"] == "https://github.com/owner/repo/commit/abc123"
        assert payload["stats"] == {"total": 12, "additions": 8, "deletions": 4, "date": "2024-05-01"}
        assert payload["test_count"] == 3
        assert payload["failed_tests"] == 0
        assert payload["conclusion"] == "success"
        assert payload["coverage"] == 0

    def test_commit_payload_does_not_touch_info(self):
        info = make_info()
        build_commit_payload(info, make_window(), "abc123", "main")
        assert info.url.endswith("/commit/HEAD")

    def test_test_runs_payload(self):
        payload = build_test_runs_payload(make_window(), "abc123", "main")
        assert payload["commit_sha"] == "abc123"
        assert payload["branch"] == "main"
        assert payload["runs"][0] == {
            "execution_timestamp": "t1",
            "summary": {"passed": 2, "failed": 1, "total": 3},
            "success": False,
            "test_id": "r1",
        }
        assert [r["test_id"] for r in payload["runs"]] == ["r1", "r2"]


class TestTelemetryClient:
    @pytest.mark.asyncio
    async def test_send_commit_posts_to_commits(self):
        transport, seen = recording_transport()
        client = TelemetryClient("https://collector.example.com/api/", "ada", "repo", transport=transport)

        result = await client.send_commit({"_id": "abc123"})

        assert result.ok is True
        assert result.status_code == 200
        assert str(seen[0].url) == "https://collector.example.com/api/commits"
        body = json.loads(seen[0].content)
        assert body == {"_id": "abc123", "user_id": "ada", "repo_name": "repo"}

    @pytest.mark.asyncio
    async def test_send_test_runs_posts_to_test_runs(self):
        transport, seen = recording_transport()
        client = TelemetryClient("https://collector.example.com/api", "ada", "repo", transport=transport)

        result = await client.send_test_runs({"commit_sha": "abc123", "runs": []})

        assert result.ok is True
        assert seen[0].url.path == "/api/test-runs"
        assert seen[0].method == "POST"

    @pytest.mark.asyncio
    async def test_http_error_status_is_reported_not_raised(self):
        transport, _ = recording_transport(status=500)
        client = TelemetryClient("https://collector.example.com", "ada", "repo", transport=transport)

        result = await client.send_commit({})

        assert result.ok is False
        assert result.status_code == 500
        assert result.endpoint == "/commits"

    @pytest.mark.asyncio
    async def test_connection_error_is_reported_not_raised(self):
        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)

        client = TelemetryClient("https://collector.example.com", "ada", "repo", transport=httpx.MockTransport(handler))

        result = await client.send_test_runs({})

        assert result.ok is False
        assert result.status_code is None
        assert "Connection refused" in result.error

    @pytest.mark.asyncio
    async def test_malformed_base_url_is_reported_not_raised(self):
        client = TelemetryClient("http://localhost:99999", "ada", "repo")

        result = await client.send_commit({"_id": "abc123"})

        assert result.ok is False
        assert result.endpoint == "/commits"
        assert result.error.startswith("InvalidURL")
