"""State store — JSON snapshot of the registry between process runs.

The snapshot is a convenience cache; the event log remains the audit
record. Writes go to a temporary sibling file which then replaces the
snapshot, so a crash mid-write never leaves a truncated document.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from jewelry_lifecycle.engine.registry import LifecycleRegistry

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


class StateStore:
    """Persists a LifecycleRegistry as a single JSON document."""

    def __init__(self, storage_path: Path) -> None:
        self._storage_path = storage_path

    @property
    def path(self) -> Path:
        return self._storage_path

    def exists(self) -> bool:
        return self._storage_path.exists()

    def save_registry(self, registry: LifecycleRegistry) -> None:
        """Write the snapshot. Raises OSError on filesystem failure."""
        document = {"version": SNAPSHOT_VERSION, "registry": registry.to_state()}
        self._storage_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._storage_path.with_name(self._storage_path.name + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(document, f, indent=2, sort_keys=True)
            f.write("\n")
        os.replace(tmp_path, self._storage_path)
        logger.debug("Registry snapshot written to %s", self._storage_path)

    def load_registry(self) -> Optional[LifecycleRegistry]:
        """Return the stored registry, or None if no snapshot exists.

        Raises ValueError on an unsupported version or inconsistent data.
        """
        if not self._storage_path.exists():
            return None
        with self._storage_path.open("r", encoding="utf-8") as f:
            document = json.load(f)
        version = document.get("version")
        if version != SNAPSHOT_VERSION:
            raise ValueError(f"Unsupported snapshot version: {version}")
        return LifecycleRegistry.from_state(document["registry"])
