"""Pipeline orchestration: ledger, extraction, summarization, and persistence."""

from __future__ import annotations

import asyncio
from contextlib import AsyncExitStack
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Protocol

from .config import AiDocsPaths, ToolConfig, load_config
from .consolidator import Consolidator
from .errors import LibraryError, ParseFailure
from .extractor import RawExtractor
from .ledger import LedgerResult, VersionLedger
from .llm import Summarizer
from .logging import get_logger, library_logger
from .manifest import load_dependencies
from .models import (
    CachedArtifactRecord,
    DependencyEntry,
    EntryOutcome,
    EntryState,
    RunReport,
)
from .signatures import SignatureExtractor, get_extractor
from .stores import ArtifactStore


class SupportsSummarize(Protocol):
    async def summarize(self, library: str, description: str, *, version: str | None = None) -> str:
        ...


@dataclass
class PendingSet:
    """Libraries selected for processing and how they were selected."""

    entries: List[DependencyEntry]
    ledger: LedgerResult
    forced: List[str]


class Orchestrator:
    """Coordinates the documentation sync for one project root."""

    def __init__(
        self,
        paths: AiDocsPaths,
        *,
        config: ToolConfig | None = None,
        store: ArtifactStore | None = None,
        extractor: RawExtractor | None = None,
        summarizer: SupportsSummarize | None = None,
        signature_extractor: SignatureExtractor | None = None,
    ) -> None:
        self.config = config if config is not None else load_config(paths.config_path)
        if config is None and self.config.docs_dir:
            paths = paths.with_docs_dir(self.config.docs_dir)
        self.paths = paths
        self.store = store or ArtifactStore(paths.docs_dir)
        self.ledger = VersionLedger(self.store)
        self.extractor = extractor or RawExtractor(paths.modules_dir)
        self._summarizer = summarizer
        self._signature_extractor = signature_extractor
        self.logger = get_logger("orchestrator")

    @classmethod
    def for_root(
        cls,
        root: Path | str,
        *,
        docs_dir: Path | str | None = None,
        config_path: Path | str | None = None,
    ) -> "Orchestrator":
        """Build an orchestrator for ``root``; an explicit ``docs_dir`` beats the config's ``docsDir``."""
        paths = AiDocsPaths.for_root(root, config_path=config_path)
        config = load_config(paths.config_path)
        if docs_dir is not None:
            paths = paths.with_docs_dir(docs_dir)
        elif config.docs_dir:
            paths = paths.with_docs_dir(config.docs_dir)
        return cls(paths, config=config)

    @property
    def summarizer(self) -> SupportsSummarize:
        if self._summarizer is None:
            self._summarizer = Summarizer.from_settings(self.config.llm)
        return self._summarizer

    @property
    def signature_extractor(self) -> SignatureExtractor:
        if self._signature_extractor is None:
            self._signature_extractor = get_extractor("javascript")
        return self._signature_extractor

    # ------------------------------------------------------------------
    # Selection

    def pending(self, *, force: bool = False) -> PendingSet:
        """Return stale manifest entries plus configured additional libraries.

        Raises ManifestMissing when package.json is absent.
        """
        dependencies = load_dependencies(self.paths.manifest_path)
        self.logger.debug("Manifest declares %d libraries", len(dependencies))
        ledger = self.ledger.check(dependencies, force=force)

        selected: Dict[str, DependencyEntry] = {entry.name: entry for entry in ledger.stale}
        forced: List[str] = []
        for entry in self.config.additional_libraries:
            selected[entry.name] = entry
            forced.append(entry.name)
        return PendingSet(entries=list(selected.values()), ledger=ledger, forced=forced)

    # ------------------------------------------------------------------
    # Runs

    def run(self, *, force: bool = False, dry_run: bool = False, consolidate: bool = False) -> RunReport:
        """Synchronous entrypoint around :meth:`run_async`."""
        return asyncio.run(self.run_async(force=force, dry_run=dry_run, consolidate=consolidate))

    async def run_async(
        self, *, force: bool = False, dry_run: bool = False, consolidate: bool = False
    ) -> RunReport:
        pending = self.pending(force=force)
        report = RunReport(
            pending=list(pending.entries),
            skipped=list(pending.ledger.unreadable),
            dry_run=dry_run,
        )
        if not pending.entries:
            self.logger.info("All library docs are up to date")
        elif dry_run:
            for entry in pending.entries:
                self.logger.info("Would process %s@%s", entry.name, entry.version)
        else:
            async with AsyncExitStack() as stack:
                summarizer = self.summarizer
                if hasattr(summarizer, "__aenter__"):
                    await stack.enter_async_context(summarizer)  # type: ignore[arg-type]
                for entry in pending.entries:
                    report.outcomes.append(await self.process_entry(entry, summarizer))
            self.logger.info(
                "Documentation processing completed: %d succeeded, %d failed",
                len(report.succeeded),
                len(report.failed),
            )

        if consolidate and not dry_run:
            report.consolidated_path = str(self.consolidate())
        return report

    async def process_entry(
        self, entry: DependencyEntry, summarizer: Optional[SupportsSummarize] = None
    ) -> EntryOutcome:
        """Run extraction, summarization, and persistence for one library.

        Failures are captured on the returned outcome instead of propagating.
        """
        summarizer = summarizer or self.summarizer
        outcome = EntryOutcome(entry=entry)
        log = library_logger("orchestrator", entry.name)
        log.info("Processing documentation for %s@%s...", entry.name, entry.version)
        try:
            outcome.state = EntryState.EXTRACTING
            raw = await asyncio.to_thread(self.extractor.extract, entry.name)
            if raw.entry_path:
                log.debug("Read entry file %s", raw.entry_path)

            outcome.state = EntryState.SUMMARIZING
            summary = await summarizer.summarize(entry.name, raw.description, version=entry.version)
            try:
                functions = self.signature_extractor.extract(raw.source, library=entry.name)
            except ParseFailure as exc:
                log.warning("Could not parse entry file for %s: %s", entry.name, exc.reason)
                functions = []

            outcome.state = EntryState.WRITING
            self.store.write(
                CachedArtifactRecord(
                    name=entry.name,
                    version=entry.version,
                    summary=summary,
                    functions=functions,
                )
            )
        except LibraryError as exc:
            return self._fail(outcome, exc.reason)
        except Exception as exc:  # isolate per-library failures
            log.debug("Unexpected failure for %s", entry.name, exc_info=True)
            return self._fail(outcome, f"{type(exc).__name__}: {exc}")

        outcome.state = EntryState.DONE
        outcome.function_count = len(functions)
        log.info(
            "Documentation files generated for %s@%s (%d functions)",
            entry.name,
            entry.version,
            len(functions),
        )
        return outcome

    def _fail(self, outcome: EntryOutcome, reason: str) -> EntryOutcome:
        stage = outcome.state.value
        outcome.state = EntryState.FAILED
        outcome.reason = f"{stage}: {reason}"
        library_logger("orchestrator", outcome.entry.name).error(
            "Failed to document %s@%s while %s: %s",
            outcome.entry.name,
            outcome.entry.version,
            stage,
            reason,
        )
        return outcome

    # ------------------------------------------------------------------
    # Maintenance

    def consolidate(self) -> Path:
        return Consolidator(self.store).run()

    def prune(self, *, dry_run: bool = False) -> List[str]:
        """Remove artifacts for libraries no longer declared or configured."""
        declared = [entry.name for entry in load_dependencies(self.paths.manifest_path)]
        declared.extend(entry.name for entry in self.config.additional_libraries)
        declared_keys = {self.store.key_for(name) for name in declared}
        removed: List[str] = []
        for key in self.store.keys():
            if key in declared_keys:
                continue
            library = self.store.library_for(key)
            if dry_run or self.store.remove_key(key):
                removed.append(library)
                self.logger.info("%s docs for %s", "Would remove" if dry_run else "Removed", library)
        return removed


__all__ = ["Orchestrator", "PendingSet", "SupportsSummarize"]
