"""Local JSON file backend implementing IStateStore."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from filestack.core.exceptions import StateStoreError
from filestack.models.deployment import DeploymentState
from filestack.persistence.serialization import dumps, loads, next_revision, retain


class FileStateStore:
    """One JSON document per deployment id; writes are temp-file-then-rename."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    def _path(self, deployment_id: str) -> Path:
        return self._root / f"{deployment_id}.json"

    def load(self, deployment_id: str) -> DeploymentState | None:
        path = self._path(deployment_id)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StateStoreError(f"Reading {path} failed: {exc}") from exc
        return loads(raw)

    def save(self, state: DeploymentState) -> DeploymentState:
        stored = next_revision(self.load(state.deployment_id), state)
        self._write(stored)
        return stored

    def clear(self, deployment_id: str, preserving: set[str]) -> DeploymentState | None:
        current = self.load(deployment_id)
        if current is None:
            return None
        kept = retain(current, preserving)
        if kept is None:
            try:
                self._path(deployment_id).unlink()
            except FileNotFoundError:
                pass
            except OSError as exc:
                raise StateStoreError(f"Deleting state for {deployment_id!r} failed: {exc}") from exc
            return None
        stored = next_revision(current, kept)
        self._write(stored)
        return stored

    def _write(self, state: DeploymentState) -> None:
        path = self._path(state.deployment_id)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(dumps(state))
                    fh.flush()
                    os.fsync(fh.fileno())
                os.replace(tmp, path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StateStoreError(f"Writing {path} failed: {exc}") from exc
