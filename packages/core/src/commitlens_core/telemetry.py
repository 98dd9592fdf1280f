"""Best-effort delivery of commit and test-run telemetry.

The collector is a nice-to-have: a developer's commit must never fail because
it is down. Both sends therefore return a ``SendResult`` instead of raising,
and the caller decides what to log.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx

from commitlens_core.refs import resolve_commit_url

if TYPE_CHECKING:
    from commitlens_core.testlog import TestWindow
    from commitlens_core.vcs import CommitInfo

logger = logging.getLogger(__name__)

COMMITS_PATH = "/commits"
TEST_RUNS_PATH = "/test-runs"


@dataclass
class SendResult:
    endpoint: str
    ok: bool
    status_code: int | None = None
    error: str | None = None


class TelemetryClient:
    """POSTs JSON payloads to the collector, tagging each with who sent it."""

    def __init__(
        self,
        base_url: str,
        user_id: str,
        repo_name: str,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._user_id = user_id
        self._repo_name = repo_name
        self._timeout = timeout
        self._transport = transport

    async def send_commit(self, payload: dict) -> SendResult:
        logger.info("Sending data to %s endpoint...", COMMITS_PATH)
        return await self._post(COMMITS_PATH, payload)

    async def send_test_runs(self, payload: dict) -> SendResult:
        logger.info("Sending test runs batch to %s endpoint...", TEST_RUNS_PATH)
        return await self._post(TEST_RUNS_PATH, payload)

    async def _post(self, path: str, payload: dict) -> SendResult:
        body = {**payload, "user_id": self._user_id, "repo_name": self._repo_name}
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url, timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(path, json=body)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("Error sending data to %s: HTTP %s", path, e.response.status_code)
            return SendResult(path, ok=False, status_code=e.response.status_code, error=str(e))
        except Exception as e:
            # Covers transport errors and a malformed base URL (httpx.InvalidURL).
            logger.error("Error sending data to %s (%s): %s", path, type(e).__name__, e)
            return SendResult(path, ok=False, error=f"{type(e).__name__}: {e}")
        logger.info("Successfully sent data to %s.", path)
        return SendResult(path, ok=True, status_code=response.status_code)


def build_commit_payload(info: CommitInfo, window: TestWindow, sha: str, branch: str) -> dict:
    return {
        "_id": sha,
        "branch": branch,
        "author": info.author,
        "commit": {
            "date": info.date,
            "message": info.message,
            "url": resolve_commit_url(info.url, sha),
        },
        "stats": {
            "total": info.stats.total,
            "additions": info.stats.additions,
            "deletions": info.stats.deletions,
            "date": info.stats.date,
        },
        "coverage": window.coverage,
        "test_count": window.test_count,
        "failed_tests": window.failed_tests,
        "conclusion": window.conclusion,
    }


def build_test_runs_payload(window: TestWindow, sha: str, branch: str) -> dict:
    return {
        "commit_sha": sha,
        "branch": branch,
        "runs": [
            {
                "execution_timestamp": run.timestamp,
                "summary": {"passed": run.passed, "failed": run.failed, "total": run.total},
                "success": run.success,
                "test_id": run.test_id,
            }
            for run in window.runs
        ],
    }
