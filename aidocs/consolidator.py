"""Builds the single lookup index spanning every documented library."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

from .errors import CachedArtifactUnreadable
from .logging import get_logger
from .stores import ArtifactStore, atomic_write_json

CONSOLIDATED_FILENAME = "consolidated_index.json"


class Consolidator:
    """Merges each library's summary view with its index view and writes one document."""

    def __init__(self, store: ArtifactStore, output_path: Path | None = None) -> None:
        self.store = store
        self.output_path = output_path or store.docs_dir / CONSOLIDATED_FILENAME
        self.logger = get_logger("consolidator")

    def build(self) -> Dict[str, Dict[str, Any]]:
        """Return ``{library: {...summary, ...index}}`` for every summary view on disk."""
        consolidated: Dict[str, Dict[str, Any]] = {}
        for library in self.store.library_names():
            try:
                summary = self.store.read_summary(library)
            except CachedArtifactUnreadable as exc:
                self.logger.warning("Excluding %s from the consolidated index: %s", library, exc.reason)
                continue
            if summary is None:
                continue

            entry: Dict[str, Any] = summary.model_dump(mode="json")
            try:
                index = self.store.read_index(library)
            except CachedArtifactUnreadable as exc:
                self.logger.warning("Ignoring index view for %s: %s", library, exc.reason)
                index = None
            if index is not None:
                entry.update(index.model_dump(mode="json", by_alias=True))
            consolidated[summary.name] = entry
        return consolidated

    def run(self) -> Path:
        """Rebuild the consolidated index from scratch and persist it."""
        consolidated = self.build()
        atomic_write_json(self.output_path, consolidated, indent=4)
        self.logger.info(
            "Consolidated index for %d libraries written to %s", len(consolidated), self.output_path
        )
        return self.output_path


__all__ = ["CONSOLIDATED_FILENAME", "Consolidator"]
