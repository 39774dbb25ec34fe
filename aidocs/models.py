"""Core data models shared across ai-docs components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


@dataclass(frozen=True)
class DependencyEntry:
    """A library name and the version the project declares for it."""

    name: str
    version: str


@dataclass(frozen=True)
class FunctionSignature:
    """A top-level function declaration found in a library entry file.

    ``start`` and ``end`` are character offsets into the source text.
    """

    name: str
    params: List[str]
    start: int
    end: int


@dataclass
class FunctionDetail:
    """Index row for a function; enrichments are optional."""

    name: str
    params: List[str]
    description: Optional[str] = None
    code_example: Optional[str] = None


@dataclass
class RawDocs:
    """Unprocessed text pulled from an installed package."""

    description: str = ""
    source: str = ""
    entry_path: Optional[str] = None


@dataclass
class CachedArtifactRecord:
    """Everything persisted for one library, across its summary and index views."""

    name: str
    version: str
    summary: str
    functions: List[FunctionSignature] = field(default_factory=list)
    details: List[FunctionDetail] = field(default_factory=list)


class EntryState(str, Enum):
    """Lifecycle of one pending entry within a run."""

    PENDING = "pending"
    EXTRACTING = "extracting"
    SUMMARIZING = "summarizing"
    WRITING = "writing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class EntryOutcome:
    """Final state of one library after an orchestrator run."""

    entry: DependencyEntry
    state: EntryState = EntryState.PENDING
    reason: Optional[str] = None
    function_count: int = 0

    @property
    def succeeded(self) -> bool:
        return self.state is EntryState.DONE


@dataclass
class RunReport:
    """Summary of one orchestrator run."""

    pending: List[DependencyEntry] = field(default_factory=list)
    outcomes: List[EntryOutcome] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    dry_run: bool = False
    consolidated_path: Optional[str] = None

    @property
    def succeeded(self) -> List[EntryOutcome]:
        return [outcome for outcome in self.outcomes if outcome.succeeded]

    @property
    def failed(self) -> List[EntryOutcome]:
        return [outcome for outcome in self.outcomes if outcome.state is EntryState.FAILED]
