"""JsonHistoryStore — commit history as a JSON array committed alongside the code.

Data format: a single pretty-printed JSON array of CommitRecord dicts, sorted
by commit date (oldest first). The file lives in the repository, so it is
rewritten in one step and never left half-written.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from commitlens_store.base import BaseHistoryStore, by_commit_date
from commitlens_store.models import CommitRecord

logger = logging.getLogger(__name__)


class JsonHistoryStore(BaseHistoryStore):
    """Stores commit history in a local JSON file.

    The path defaults to ``script/commit-history.json`` relative to the working
    directory. Configure via .commitlens.yml: ``history_file: path/to/file.json``.
    """

    def __init__(self, path: str | Path = "script/commit-history.json"):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def ensure(self) -> None:
        if not self._path.exists():
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text("[]", encoding="utf-8")

    def load(self) -> list[CommitRecord]:
        if not self._path.exists():
            self.ensure()
            return []
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Error reading commit history file %s: %s", self._path, e)
            return []
        if not isinstance(data, list):
            logger.error("Commit history file %s is not a JSON array; treating it as empty.", self._path)
            return []
        return [CommitRecord.from_dict(d) for d in data if isinstance(d, dict)]

    def save(self, records: list[CommitRecord]) -> None:
        content = json.dumps([r.to_dict() for r in by_commit_date(records)], indent=2, ensure_ascii=False)

        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self._path.parent, prefix=".commit-history-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_path, self._path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
