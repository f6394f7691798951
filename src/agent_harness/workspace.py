# workspace.py
# Workspace collaborator: the only surface file tools touch.
#
# Records are addressed by project-relative, forward-slash paths. Both
# implementations serialize mutations behind a lock so concurrent runs on
# the same project cannot interleave a find-then-create.

import os
import threading
import time
import uuid
from pathlib import Path
from typing import Any, Protocol

from agent_harness.models import FileRecord


class WorkspaceError(Exception):
    """Raised by a workspace when a record cannot be created or updated."""


class Workspace(Protocol):
    lock: threading.RLock

    def find_by_path(self, path: str) -> FileRecord | None: ...

    def create(self, record: FileRecord) -> FileRecord: ...

    def update(self, record_id: str, patch: dict[str, Any]) -> FileRecord: ...

    def list(self, parent_path: str = "", recursive: bool = False) -> list[FileRecord]: ...


def new_record(name: str, type: str, parent: FileRecord | None, content: str | None = None) -> FileRecord:
    """Build a record for a new entry under ``parent`` (None means root)."""
    path = f"{parent.path}/{name}" if parent else name
    now = time.time()
    return FileRecord(
        id=uuid.uuid4().hex,
        name=name,
        type=type,
        parent_id=parent.id if parent else None,
        path=path,
        content=content if type == "file" else None,
        created_at=now,
        updated_at=now,
    )


def _normalize(path: str) -> str:
    return path.replace("\\", "/").strip("/")


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------


class InMemoryWorkspace:
    """Dict-backed record store, keyed by record id."""

    def __init__(self, records: list[FileRecord] | None = None) -> None:
        self.lock = threading.RLock()
        self._records: dict[str, FileRecord] = {r.id: r for r in records or []}

    def find_by_path(self, path: str) -> FileRecord | None:
        path = _normalize(path)
        with self.lock:
            return next((r for r in self._records.values() if r.path == path), None)

    def create(self, record: FileRecord) -> FileRecord:
        with self.lock:
            if self.find_by_path(record.path) is not None:
                raise WorkspaceError(f"Path already exists: {record.path}")
            self._records[record.id] = record
            return record

    def update(self, record_id: str, patch: dict[str, Any]) -> FileRecord:
        with self.lock:
            current = self._records.get(record_id)
            if current is None:
                raise WorkspaceError(f"No record with id {record_id}")
            updated = current.model_copy(update={**patch, "updated_at": time.time()})
            self._records[record_id] = updated
            return updated

    def list(self, parent_path: str = "", recursive: bool = False) -> list[FileRecord]:
        parent_path = _normalize(parent_path)
        with self.lock:
            records = list(self._records.values())
        if recursive:
            prefix = f"{parent_path}/" if parent_path else ""
            return [r for r in records if r.path.startswith(prefix)]
        if not parent_path:
            return [r for r in records if r.parent_id is None]
        parent = next((r for r in records if r.path == parent_path), None)
        if parent is None:
            return []
        return [r for r in records if r.parent_id == parent.id]


# ---------------------------------------------------------------------------
# Directory-backed
# ---------------------------------------------------------------------------


class DirectoryWorkspace:
    """
    Maps records onto a real project directory.

    Record ids are the project-relative paths themselves. Paths that resolve
    outside the root are refused, and hidden entries (such as .agent/) are
    not listed.
    """

    def __init__(self, root: str | Path) -> None:
        self.lock = threading.RLock()
        self._root = Path(root).resolve()

    @property
    def root(self) -> Path:
        return self._root

    def _resolve(self, path: str) -> Path:
        target = (self._root / _normalize(path)).resolve()
        if target != self._root and self._root not in target.parents:
            raise WorkspaceError(f"Path escapes the project root: {path}")
        return target

    def _record(self, target: Path) -> FileRecord:
        rel = target.relative_to(self._root).as_posix()
        parent = target.parent.relative_to(self._root).as_posix()
        stat = target.stat()
        is_file = target.is_file()
        return FileRecord(
            id=rel,
            name=target.name,
            type="file" if is_file else "folder",
            parent_id=None if parent == "." else parent,
            path=rel,
            content=target.read_text(encoding="utf-8", errors="replace") if is_file else None,
            created_at=stat.st_ctime,
            updated_at=stat.st_mtime,
        )

    def find_by_path(self, path: str) -> FileRecord | None:
        if not _normalize(path):
            return None
        try:
            target = self._resolve(path)
        except WorkspaceError:
            return None
        return self._record(target) if target.exists() else None

    def create(self, record: FileRecord) -> FileRecord:
        with self.lock:
            target = self._resolve(record.path)
            if target.exists():
                raise WorkspaceError(f"Path already exists: {record.path}")
            if not target.parent.is_dir():
                raise WorkspaceError(f"Parent folder not found: {target.parent.name}")
            if record.type == "folder":
                target.mkdir()
            else:
                target.write_text(record.content or "", encoding="utf-8")
            return self._record(target)

    def update(self, record_id: str, patch: dict[str, Any]) -> FileRecord:
        with self.lock:
            target = self._resolve(record_id)
            if not target.is_file():
                raise WorkspaceError(f"No file at {record_id}")
            if "content" in patch:
                target.write_text(patch["content"] or "", encoding="utf-8")
            return self._record(target)

    def list(self, parent_path: str = "", recursive: bool = False) -> list[FileRecord]:
        base = self._resolve(parent_path)
        if not base.is_dir():
            return []
        records: list[FileRecord] = []
        if recursive:
            for dirpath, dirnames, filenames in os.walk(base):
                dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
                for name in dirnames + sorted(f for f in filenames if not f.startswith(".")):
                    records.append(self._record(Path(dirpath) / name))
        else:
            for child in sorted(base.iterdir()):
                if not child.name.startswith("."):
                    records.append(self._record(child))
        return records
