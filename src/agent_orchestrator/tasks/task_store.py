# src/agent_orchestrator/tasks/task_store.py

from __future__ import annotations

import json
import logging
import os
import re
import threading
from dataclasses import fields, replace
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from ..core.errors import ConflictError, MalformedRecordError, TaskNotFoundError
from .task_models import Task, utcnow

logger = logging.getLogger(__name__)

_SAFE_ID = re.compile(r"^[A-Za-z0-9_-]+$")
_IMMUTABLE_FIELDS = frozenset({"id", "created_at", "updated_at"})
_TASK_FIELDS = frozenset(f.name for f in fields(Task))


class JsonTaskStore:
    """
    JSON-file task store: one <id>.json document per task.

    Writes go to a temp file and are moved into place with os.replace, so a
    reader never sees a half-written record.

    Thread-safety:
    - a process-local lock serializes read-modify-write (update)
    - nothing protects against a second process writing the same directory
    """

    def __init__(self, data_dir: str | Path) -> None:
        self._dir = Path(data_dir)
        self._dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        try:
            total = self.count()
        except Exception:
            total = -1
        logger.info("TaskStore ready dir=%s total=%s", self._dir, total)

    # ---- low-level helpers ----

    def _path(self, task_id: str) -> Path | None:
        if not task_id or not _SAFE_ID.match(task_id):
            return None
        return self._dir / f"{task_id}.json"

    def _write(self, task: Task) -> None:
        path = self._path(task.id)
        if path is None:
            raise ValueError(f"task id is not storable: {task.id!r}")
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps(task.to_record(), ensure_ascii=False, indent=2), "utf-8")
        os.replace(tmp, path)

    @staticmethod
    def _read(path: Path) -> Task:
        try:
            data = json.loads(path.read_text("utf-8"))
        except (OSError, ValueError) as e:
            raise MalformedRecordError(f"{path.name}: {e}") from e
        return Task.from_record(data)

    # ---- public API ----

    def count(self) -> int:
        return sum(1 for _ in self._dir.glob("*.json"))

    def save(self, task: Task) -> None:
        with self._lock:
            self._write(task)
        logger.debug("Task saved id=%s status=%s", task.id, task.status.value)

    def get(self, task_id: str) -> Task | None:
        path = self._path(task_id)
        if path is None or not path.exists():
            return None
        return self._read(path)

    def list(self) -> list[Task]:
        """
        Return every readable record, oldest first.

        A malformed file is logged and skipped; it never aborts the listing.
        """
        tasks: list[Task] = []
        for path in sorted(self._dir.glob("*.json")):
            try:
                tasks.append(self._read(path))
            except MalformedRecordError:
                logger.exception("Skipping malformed task file %s", path.name)
        tasks.sort(key=lambda t: t.created_at)
        return tasks

    def update(
        self,
        task_id: str,
        *,
        expected_updated_at: datetime | None = None,
        **changes: Any,
    ) -> Task:
        """
        Merge `changes` over the stored record and persist it.

        - raises TaskNotFoundError if the record is absent
        - raises ConflictError if expected_updated_at is given and no longer matches
        - always advances updated_at (strictly, even if the clock did not move)
        """
        unknown = set(changes) - _TASK_FIELDS
        if unknown:
            raise ValueError(f"unknown task fields: {sorted(unknown)}")
        frozen = set(changes) & _IMMUTABLE_FIELDS
        if frozen:
            raise ValueError(f"fields cannot be updated: {sorted(frozen)}")

        with self._lock:
            current = self.get(task_id)
            if current is None:
                raise TaskNotFoundError(task_id)
            if expected_updated_at is not None and current.updated_at != expected_updated_at:
                raise ConflictError(task_id)

            now = utcnow()
            if now <= current.updated_at:
                now = current.updated_at + timedelta(microseconds=1)

            merged = replace(current, **changes, updated_at=now)
            self._write(merged)

        logger.debug("Task updated id=%s fields=%s", task_id, ",".join(sorted(changes)))
        return merged
