"""Per-library summary and index files under the docs directory."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, List, Optional, Type, TypeVar
from urllib.parse import quote, unquote

from pydantic import BaseModel, ValidationError

from ..errors import CachedArtifactUnreadable, PersistWriteFailure
from ..logging import get_logger
from ..models import CachedArtifactRecord, FunctionDetail, FunctionSignature
from .schemas import FunctionIndexEntry, FunctionSummary, IndexView, SummaryView

SUMMARY_SUFFIX = "_summary.json"
INDEX_SUFFIX = "_index.json"

_ModelT = TypeVar("_ModelT", bound=BaseModel)


def atomic_write_json(path: Path, payload: Any, *, indent: int = 2) -> None:
    """Write JSON to ``path`` via a temp file and rename so readers never see partial output."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=indent, ensure_ascii=False)
            handle.write("\n")
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise


class ArtifactStore:
    """Reads and writes the two JSON views kept for every processed library."""

    def __init__(self, docs_dir: Path) -> None:
        self.docs_dir = docs_dir
        self.logger = get_logger("store")

    @staticmethod
    def key_for(library: str) -> str:
        """Filesystem-safe key for a library name; ``@scope/pkg`` becomes ``@scope%2Fpkg``.

        Percent-encoding is reversible, so distinct names never share a key.
        """
        return quote(library, safe="@")

    @staticmethod
    def library_for(key: str) -> str:
        return unquote(key)

    def summary_path(self, library: str) -> Path:
        return self.docs_dir / f"{self.key_for(library)}{SUMMARY_SUFFIX}"

    def index_path(self, library: str) -> Path:
        return self.docs_dir / f"{self.key_for(library)}{INDEX_SUFFIX}"

    # ------------------------------------------------------------------
    # Writing

    def write(self, record: CachedArtifactRecord) -> None:
        """Persist both views for ``record``, replacing any previous files.

        The index view is written first: the summary view carries the version
        used for staleness checks, so a failure part-way leaves the library stale.
        """
        summary = self.summary_view(record)
        index = self.index_view(record)
        try:
            atomic_write_json(self.index_path(record.name), index.model_dump(mode="json", by_alias=True))
            atomic_write_json(self.summary_path(record.name), summary.model_dump(mode="json"))
        except OSError as exc:
            raise PersistWriteFailure(record.name, f"could not write artifacts: {exc}") from exc
        self.logger.debug("Wrote artifacts for %s@%s to %s", record.name, record.version, self.docs_dir)

    @staticmethod
    def summary_view(record: CachedArtifactRecord) -> SummaryView:
        return SummaryView(
            name=record.name,
            version=record.version,
            summary=record.summary,
            functions=[
                FunctionSummary(name=fn.name, params=list(fn.params), start=fn.start, end=fn.end)
                for fn in record.functions
            ],
        )

    @staticmethod
    def index_view(record: CachedArtifactRecord) -> IndexView:
        details = record.details or [
            FunctionDetail(name=fn.name, params=list(fn.params)) for fn in record.functions
        ]
        return IndexView(
            functions=[
                FunctionIndexEntry(
                    name=detail.name,
                    params=list(detail.params),
                    description=detail.description,
                    code_example=detail.code_example,
                )
                for detail in details
            ]
        )

    # ------------------------------------------------------------------
    # Reading

    def read_summary(self, library: str) -> Optional[SummaryView]:
        return self._read_view(library, self.summary_path(library), SummaryView)

    def read_index(self, library: str) -> Optional[IndexView]:
        return self._read_view(library, self.index_path(library), IndexView)

    def cached_version(self, library: str) -> Optional[str]:
        """Return the version recorded for ``library`` or None when nothing is cached."""
        summary = self.read_summary(library)
        return summary.version if summary is not None else None

    def read_record(self, library: str) -> Optional[CachedArtifactRecord]:
        summary = self.read_summary(library)
        if summary is None:
            return None
        index = self.read_index(library)
        details = []
        if index is not None:
            details = [
                FunctionDetail(
                    name=entry.name,
                    params=list(entry.params),
                    description=entry.description,
                    code_example=entry.code_example,
                )
                for entry in index.functions
            ]
        return CachedArtifactRecord(
            name=summary.name,
            version=summary.version,
            summary=summary.summary,
            functions=[
                FunctionSignature(name=fn.name, params=list(fn.params), start=fn.start, end=fn.end)
                for fn in summary.functions
            ],
            details=details,
        )

    def keys(self) -> List[str]:
        """File keys of every summary view on disk, sorted."""
        if not self.docs_dir.is_dir():
            return []
        keys = []
        for path in sorted(self.docs_dir.glob(f"*{SUMMARY_SUFFIX}")):
            key = path.name[: -len(SUMMARY_SUFFIX)]
            if key:
                keys.append(key)
        return keys

    def library_names(self) -> List[str]:
        """Names of every library with a summary view on disk, sorted by file key."""
        return [self.library_for(key) for key in self.keys()]

    def remove(self, library: str) -> bool:
        """Delete both views for ``library``; returns True when anything was removed."""
        return self.remove_key(self.key_for(library))

    def remove_key(self, key: str) -> bool:
        removed = False
        for path in (self.docs_dir / f"{key}{SUMMARY_SUFFIX}", self.docs_dir / f"{key}{INDEX_SUFFIX}"):
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            removed = True
        return removed

    def _read_view(self, library: str, path: Path, model: Type[_ModelT]) -> Optional[_ModelT]:
        try:
            raw = path.read_bytes().decode("utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise CachedArtifactUnreadable(library, f"cannot read {path.name}: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise CachedArtifactUnreadable(library, f"{path.name} is not valid UTF-8") from exc
        try:
            return model.model_validate_json(raw)
        except ValidationError as exc:
            raise CachedArtifactUnreadable(
                library, f"{path.name} is not a valid {model.__name__}: {exc.error_count()} error(s)"
            ) from exc


__all__ = ["ArtifactStore", "INDEX_SUFFIX", "SUMMARY_SUFFIX", "atomic_write_json"]
