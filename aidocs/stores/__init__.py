"""Persistent stores for generated library documentation."""

from .artifacts import ArtifactStore, atomic_write_json
from .schemas import FunctionIndexEntry, FunctionSummary, IndexView, SummaryView

__all__ = [
    "ArtifactStore",
    "FunctionIndexEntry",
    "FunctionSummary",
    "IndexView",
    "SummaryView",
    "atomic_write_json",
]
