"""Reading the local test-run log.

The log is a JSON array appended to by the test runner integration. It holds
two kinds of entries, in the order they happened:

    {"commitId": "<sha>"}                 a commit boundary
    {"commitId": "HEAD"}                  the commit being tracked right now
    {"numTotalTests": 3, ...}             one test run

The runs attributed to the tracked commit are the ones between the previous
commit boundary and the tracked commit's marker.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from commitlens_core.refs import Pending, parse_ref

logger = logging.getLogger(__name__)


@dataclass
class TestRun:
    __test__ = False  # not a pytest class

    total: int = 0
    failed: int = 0
    passed: int = 0
    success: bool = False
    timestamp: str = ""
    test_id: str = ""

    @classmethod
    def from_entry(cls, entry: dict) -> TestRun:
        return cls(
            total=entry.get("numTotalTests") or 0,
            failed=entry.get("failedTests") or 0,
            passed=entry.get("numPassedTests") or 0,
            success=bool(entry.get("success", False)),
            timestamp=entry.get("timestamp", ""),
            test_id=entry.get("testId", ""),
        )


@dataclass
class TestWindow:
    """Test runs attributed to one commit plus the commit-level aggregate."""

    __test__ = False

    runs: list[TestRun] = field(default_factory=list)
    test_count: int = 0
    failed_tests: int = 0
    conclusion: str = "neutral"  # "success" | "failure" | "neutral"
    coverage: float = 0.0  # the log carries no coverage data


def is_commit_marker(entry: dict) -> bool:
    return bool(entry.get("commitId"))


def is_placeholder_marker(entry: dict) -> bool:
    return is_commit_marker(entry) and isinstance(parse_ref(str(entry["commitId"])), Pending)


def read_test_log(path: str | Path) -> list[dict]:
    """Return the log entries, or [] if the file is missing or unreadable."""
    p = Path(path)
    if not p.exists():
        return []
    try:
        entries = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.error("Error reading test log %s: %s", p, e)
        return []
    if not isinstance(entries, list):
        logger.error("Test log %s is not a JSON array; ignoring it.", p)
        return []
    return [e for e in entries if isinstance(e, dict)]


def relevant_runs(entries: list[dict]) -> list[TestRun]:
    """Test runs between the last commit marker and the placeholder marker.

    Without a placeholder marker the window extends to the end of the log.
    When the log holds more than one placeholder marker the first one wins.
    """
    placeholders = [i for i, e in enumerate(entries) if is_placeholder_marker(e)]
    if len(placeholders) > 1:
        logger.warning(
            "Test log holds %d placeholder commit markers; using the first at position %d.",
            len(placeholders),
            placeholders[0],
        )
    end = placeholders[0] if placeholders else len(entries)

    start = 0
    for i in range(end - 1, -1, -1):
        if is_commit_marker(entries[i]):
            start = i + 1
            break

    return [TestRun.from_entry(e) for e in entries[start:end] if not is_commit_marker(e)]


def conclusion_for(run: TestRun) -> str:
    if run.total == 0:
        return "neutral"
    if run.failed > 0:
        return "failure"
    return "success"


def summarize(entries: list[dict]) -> TestWindow:
    """Build the commit's test window. Only the last run sets the aggregate."""
    runs = relevant_runs(entries)
    if not runs:
        return TestWindow()
    last = runs[-1]
    return TestWindow(
        runs=runs,
        test_count=last.total,
        failed_tests=last.failed,
        conclusion=conclusion_for(last),
    )


def read_test_window(path: str | Path) -> TestWindow:
    return summarize(read_test_log(path))
