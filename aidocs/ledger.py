"""Decides which declared libraries need their documentation regenerated."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List

from .errors import CachedArtifactUnreadable
from .logging import get_logger
from .models import DependencyEntry
from .stores import ArtifactStore


@dataclass
class LedgerResult:
    """Stale entries plus the names whose cache could not be checked."""

    stale: List[DependencyEntry] = field(default_factory=list)
    fresh: List[DependencyEntry] = field(default_factory=list)
    unreadable: List[str] = field(default_factory=list)


class VersionLedger:
    """Compares declared versions against the versions recorded in the artifact store."""

    def __init__(self, store: ArtifactStore) -> None:
        self.store = store
        self.logger = get_logger("ledger")

    def stale(self, entries: Iterable[DependencyEntry]) -> List[DependencyEntry]:
        return self.check(entries).stale

    def check(self, entries: Iterable[DependencyEntry], *, force: bool = False) -> LedgerResult:
        """Partition ``entries`` by cache state.

        An entry is stale when no summary exists for it or its cached version
        differs from the declared one. Entries whose cached summary cannot be
        parsed are neither stale nor fresh; they are reported and skipped.
        """
        result = LedgerResult()
        for entry in entries:
            if force:
                result.stale.append(entry)
                continue
            try:
                cached = self.store.cached_version(entry.name)
            except CachedArtifactUnreadable as exc:
                self.logger.warning("Skipping %s: %s", entry.name, exc.reason)
                result.unreadable.append(entry.name)
                continue
            if cached is None:
                self.logger.debug("%s has no cached docs", entry.name)
                result.stale.append(entry)
            elif cached != entry.version:
                self.logger.debug("%s cached at %s, declared %s", entry.name, cached, entry.version)
                result.stale.append(entry)
            else:
                result.fresh.append(entry)
        return result


__all__ = ["LedgerResult", "VersionLedger"]
