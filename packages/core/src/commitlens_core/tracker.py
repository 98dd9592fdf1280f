"""Commit tracking orchestration."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from commitlens_core.refs import PENDING
from commitlens_core.telemetry import SendResult, TelemetryClient, build_commit_payload, build_test_runs_payload
from commitlens_core.testlog import TestWindow, read_test_window
from commitlens_core.vcs import CommitInfo, GitInspector

logger = logging.getLogger(__name__)


@dataclass
class TrackSummary:
    """Result returned by track_commit — carries enough data for the CLI to persist history.

    Decoupled from commitlens_store so commitlens_core has no dependency on the
    store layer. The CLI converts this to a CommitRecord before persisting.
    """

    info: CommitInfo  # inspected as Pending; url still ends in /commit/HEAD
    sha: str
    branch: str
    window: TestWindow
    results: list[SendResult] = field(default_factory=list)

    @property
    def delivered(self) -> bool:
        return all(r.ok for r in self.results)


async def track_commit(
    inspector: GitInspector,
    client: TelemetryClient,
    test_log_path: str | Path,
    persist: Callable[[TrackSummary], None] | None = None,
) -> TrackSummary | None:
    """Inspect the tracked commit, pair it with its test runs and send both.

    Returns None when git cannot identify the commit; nothing should be sent
    or saved in that case. Send failures never raise. They are logged and
    reported in ``TrackSummary.results``.

    ``persist`` is called once both sends are in flight and before any of them
    is awaited, so a slow or unresponsive collector never holds up the history.
    ``results`` is still empty at that point.
    """
    info = inspector.commit_info(PENDING)
    if info is None:
        logger.error("No commit information available; skipping this run.")
        return None

    window = read_test_window(test_log_path)
    sha = inspector.current_sha()
    branch = inspector.branch_name()

    # Sends start in this order; neither waits for the other to complete.
    sends = [asyncio.create_task(client.send_commit(build_commit_payload(info, window, sha, branch)))]
    if window.runs:
        sends.append(asyncio.create_task(client.send_test_runs(build_test_runs_payload(window, sha, branch))))

    # Let both sends reach their first network wait before persisting.
    await asyncio.sleep(0)

    summary = TrackSummary(info=info, sha=sha, branch=branch, window=window)
    if persist is not None:
        persist(summary)

    summary.results = list(await asyncio.gather(*sends))
    for result in summary.results:
        if not result.ok:
            logger.warning("Telemetry for %s not delivered to %s: %s", sha[:7], result.endpoint, result.error)

    return summary
