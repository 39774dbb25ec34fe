"""End-to-end tests for the documentation sync pipeline."""

from __future__ import annotations

import json
from typing import Dict, List, Set, Tuple

import pytest

from aidocs.errors import ManifestMissing, PersistWriteFailure, SummarizationFailure
from aidocs.models import CachedArtifactRecord, EntryState
from aidocs.orchestrator import Orchestrator
from aidocs.stores import ArtifactStore
from tests._fixtures.project_builder import ProjectBuilder

LODASH_SOURCE = """
function chunk(array, size) {
  return [];
}

const helper = () => 1;

function compact(array) {
  function inner() {}
  return array.filter(Boolean);
}
"""


class RecordingSummarizer:
    """Stands in for the remote summarizer and records every call."""

    def __init__(self, fail_for: Set[str] | None = None) -> None:
        self.fail_for = fail_for or set()
        self.calls: List[Tuple[str, str, str | None]] = []

    async def summarize(self, library: str, description: str, *, version: str | None = None) -> str:
        self.calls.append((library, description, version))
        if library in self.fail_for:
            raise SummarizationFailure(library, "summarization endpoint returned status 500: boom")
        return f"{library} summary"

    @property
    def libraries(self) -> List[str]:
        return [library for library, _, _ in self.calls]


class UnwritableStore(ArtifactStore):
    """Artifact store that refuses to persist the named libraries."""

    def __init__(self, docs_dir, refuse: Set[str]) -> None:
        super().__init__(docs_dir)
        self.refuse = refuse

    def write(self, record: CachedArtifactRecord) -> None:
        if record.name in self.refuse:
            raise PersistWriteFailure(record.name, "could not write artifacts: disk full")
        super().write(record)


def _orchestrator(project: ProjectBuilder, summarizer: RecordingSummarizer) -> Orchestrator:
    return Orchestrator(project.paths(), summarizer=summarizer)


def _read(path) -> Dict[str, object]:
    return json.loads(path.read_text(encoding="utf-8"))


def test_run_documents_new_library(project: ProjectBuilder) -> None:
    project.manifest({"lodash": "4.17.21"})
    project.install("lodash", readme="# lodash\nModern utilities.\n", files={"index.js": LODASH_SOURCE})
    summarizer = RecordingSummarizer()

    report = _orchestrator(project, summarizer).run()

    assert [outcome.state for outcome in report.outcomes] == [EntryState.DONE]
    assert summarizer.calls == [("lodash", "# lodash\nModern utilities.\n", "4.17.21")]

    summary = _read(project.docs_dir / "lodash_summary.json")
    assert summary["name"] == "lodash"
    assert summary["version"] == "4.17.21"
    assert summary["summary"] == "lodash summary"
    assert [fn["name"] for fn in summary["functions"]] == ["chunk", "compact"]
    assert summary["functions"][0]["params"] == ["array", "size"]

    index = _read(project.docs_dir / "lodash_index.json")
    assert [fn["name"] for fn in index["functions"]] == ["chunk", "compact"]


def test_second_run_is_a_no_op(project: ProjectBuilder) -> None:
    project.manifest({"lodash": "4.17.21"})
    project.install("lodash", readme="# lodash", files={"index.js": LODASH_SOURCE})
    summarizer = RecordingSummarizer()
    orchestrator = _orchestrator(project, summarizer)

    orchestrator.run()
    before = (project.docs_dir / "lodash_summary.json").read_text(encoding="utf-8")
    second = orchestrator.run()

    assert second.pending == []
    assert second.outcomes == []
    assert summarizer.libraries == ["lodash"]
    assert (project.docs_dir / "lodash_summary.json").read_text(encoding="utf-8") == before


def test_version_change_makes_library_stale(project: ProjectBuilder) -> None:
    project.manifest({"lodash": "4.17.20", "axios": "1.6.0"})
    project.install("lodash", readme="# lodash")
    project.install("axios", readme="# axios")
    summarizer = RecordingSummarizer()
    _orchestrator(project, summarizer).run()

    project.manifest({"lodash": "4.17.21", "axios": "1.6.0"})
    report = _orchestrator(project, summarizer).run()

    assert [entry.name for entry in report.pending] == ["lodash"]
    assert _read(project.docs_dir / "lodash_summary.json")["version"] == "4.17.21"


def test_failure_is_isolated_to_one_library(project: ProjectBuilder) -> None:
    project.manifest({"broken": "1.0.0", "lodash": "4.17.21"})
    project.install("broken", readme="# broken")
    project.install("lodash", readme="# lodash")
    summarizer = RecordingSummarizer(fail_for={"broken"})

    report = _orchestrator(project, summarizer).run()

    assert [outcome.entry.name for outcome in report.succeeded] == ["lodash"]
    assert [outcome.entry.name for outcome in report.failed] == ["broken"]
    assert report.failed[0].reason.startswith("summarizing: ")
    assert not (project.docs_dir / "broken_summary.json").exists()
    assert (project.docs_dir / "lodash_summary.json").exists()

    retry = _orchestrator(project, RecordingSummarizer()).run()
    assert [entry.name for entry in retry.pending] == ["broken"]


def test_dev_dependencies_are_included(project: ProjectBuilder) -> None:
    project.manifest({"lodash": "4.17.21"}, dev_dependencies={"jest": "29.0.0"})
    summarizer = RecordingSummarizer()

    _orchestrator(project, summarizer).run()

    assert sorted(summarizer.libraries) == ["jest", "lodash"]


def test_missing_package_is_summarized_with_empty_inputs(project: ProjectBuilder) -> None:
    project.manifest({"ghost": "0.0.1"})
    summarizer = RecordingSummarizer()

    report = _orchestrator(project, summarizer).run()

    assert report.outcomes[0].succeeded
    assert summarizer.calls == [("ghost", "", "0.0.1")]
    assert _read(project.docs_dir / "ghost_summary.json")["functions"] == []


def test_unparseable_entry_file_yields_no_functions(project: ProjectBuilder) -> None:
    project.manifest({"weird": "1.0.0"})
    project.install("weird", readme="# weird", files={"index.js": "function (( {"})

    report = _orchestrator(project, RecordingSummarizer()).run()

    assert report.outcomes[0].succeeded
    assert _read(project.docs_dir / "weird_summary.json")["functions"] == []


def test_additional_libraries_are_always_processed(project: ProjectBuilder) -> None:
    project.manifest({"lodash": "4.17.21"})
    project.config({"additionalLibraries": [{"name": "react", "version": "18.2.0"}]})
    summarizer = RecordingSummarizer()

    _orchestrator(project, summarizer).run()
    _orchestrator(project, summarizer).run()

    assert summarizer.libraries == ["lodash", "react", "react"]
    assert _read(project.docs_dir / "react_summary.json")["version"] == "18.2.0"


def test_additional_library_overrides_declared_version(project: ProjectBuilder) -> None:
    project.manifest({"react": "17.0.0"})
    project.config({"additionalLibraries": [{"name": "react", "version": "18.2.0"}]})

    pending = _orchestrator(project, RecordingSummarizer()).pending()

    assert [(entry.name, entry.version) for entry in pending.entries] == [("react", "18.2.0")]
    assert pending.forced == ["react"]


def test_dry_run_writes_nothing(project: ProjectBuilder) -> None:
    project.manifest({"lodash": "4.17.21"})
    summarizer = RecordingSummarizer()

    report = _orchestrator(project, summarizer).run(dry_run=True, consolidate=True)

    assert report.dry_run
    assert [entry.name for entry in report.pending] == ["lodash"]
    assert summarizer.calls == []
    assert report.consolidated_path is None
    assert not project.docs_dir.exists()


def test_force_reprocesses_fresh_libraries(project: ProjectBuilder) -> None:
    project.manifest({"lodash": "4.17.21"})
    summarizer = RecordingSummarizer()
    orchestrator = _orchestrator(project, summarizer)
    orchestrator.run()

    report = orchestrator.run(force=True)

    assert [entry.name for entry in report.pending] == ["lodash"]
    assert summarizer.libraries == ["lodash", "lodash"]


def test_unreadable_cache_is_skipped(project: ProjectBuilder) -> None:
    project.manifest({"lodash": "4.17.21"})
    project.docs_dir.mkdir()
    (project.docs_dir / "lodash_summary.json").write_text("{oops", encoding="utf-8")
    summarizer = RecordingSummarizer()

    report = _orchestrator(project, summarizer).run()

    assert report.skipped == ["lodash"]
    assert summarizer.calls == []


def test_missing_manifest_raises(project: ProjectBuilder) -> None:
    with pytest.raises(ManifestMissing):
        _orchestrator(project, RecordingSummarizer()).run()


def test_consolidate_flag_writes_consolidated_index(project: ProjectBuilder) -> None:
    project.manifest({"lodash": "4.17.21"})
    project.install("lodash", readme="# lodash", files={"index.js": LODASH_SOURCE})

    report = _orchestrator(project, RecordingSummarizer()).run(consolidate=True)

    assert report.consolidated_path == str(project.docs_dir / "consolidated_index.json")
    consolidated = _read(project.docs_dir / "consolidated_index.json")
    assert consolidated["lodash"]["summary"] == "lodash summary"
    assert consolidated["lodash"]["functions"][0] == {
        "name": "chunk",
        "params": ["array", "size"],
        "description": None,
        "codeExample": None,
    }


def test_run_without_consolidate_leaves_index_untouched(project: ProjectBuilder) -> None:
    project.manifest({"lodash": "4.17.21"})

    _orchestrator(project, RecordingSummarizer()).run()

    assert not (project.docs_dir / "consolidated_index.json").exists()


def test_prune_removes_undeclared_libraries(project: ProjectBuilder) -> None:
    project.manifest({"lodash": "4.17.21", "left-pad": "1.3.0"})
    _orchestrator(project, RecordingSummarizer()).run()
    project.manifest({"lodash": "4.17.21"})
    orchestrator = _orchestrator(project, RecordingSummarizer())

    assert orchestrator.prune(dry_run=True) == ["left-pad"]
    assert (project.docs_dir / "left-pad_summary.json").exists()

    assert orchestrator.prune() == ["left-pad"]
    assert not (project.docs_dir / "left-pad_summary.json").exists()
    assert not (project.docs_dir / "left-pad_index.json").exists()
    assert (project.docs_dir / "lodash_summary.json").exists()


def test_scoped_package_round_trips(project: ProjectBuilder) -> None:
    project.manifest({"@scope/tool": "2.0.0"})
    project.install("@scope/tool", readme="# tool", files={"index.js": "export function run(argv) {}\n"})
    orchestrator = _orchestrator(project, RecordingSummarizer())

    orchestrator.run()

    summary = _read(project.docs_dir / "@scope%2Ftool_summary.json")
    assert summary["name"] == "@scope/tool"
    assert summary["functions"][0]["name"] == "run"
    assert orchestrator.pending().entries == []


def test_docs_dir_from_config(project: ProjectBuilder) -> None:
    project.manifest({"lodash": "4.17.21"})
    project.config({"docsDir": "docs/ai"})

    _orchestrator(project, RecordingSummarizer()).run()

    assert (project.root / "docs" / "ai" / "lodash_summary.json").exists()
    assert not project.docs_dir.exists()


def test_for_root_prefers_explicit_docs_dir(project: ProjectBuilder) -> None:
    project.config({"docsDir": "docs/ai"})

    orchestrator = Orchestrator.for_root(project.root, docs_dir="elsewhere")

    assert orchestrator.paths.docs_dir == (project.root / "elsewhere").resolve()


def test_non_utf8_cache_is_skipped_without_aborting(project: ProjectBuilder) -> None:
    project.manifest({"lodash": "4.17.21", "axios": "1.6.0"})
    project.docs_dir.mkdir()
    (project.docs_dir / "lodash_summary.json").write_bytes(b'{"name": "lodash", "version": "\xff\xfe"}')
    summarizer = RecordingSummarizer()

    report = _orchestrator(project, summarizer).run()

    assert report.skipped == ["lodash"]
    assert summarizer.libraries == ["axios"]
    assert [outcome.entry.name for outcome in report.succeeded] == ["axios"]


def test_write_failure_is_isolated_and_library_stays_stale(project: ProjectBuilder) -> None:
    project.manifest({"broken": "1.0.0", "lodash": "4.17.21"})
    store = UnwritableStore(project.paths().docs_dir, refuse={"broken"})

    report = Orchestrator(project.paths(), store=store, summarizer=RecordingSummarizer()).run()

    assert [outcome.entry.name for outcome in report.succeeded] == ["lodash"]
    assert [outcome.entry.name for outcome in report.failed] == ["broken"]
    assert report.failed[0].reason == "writing: could not write artifacts: disk full"

    retry = _orchestrator(project, RecordingSummarizer()).pending()
    assert [entry.name for entry in retry.entries] == ["broken"]


def test_prune_keeps_names_that_look_like_scoped_keys(project: ProjectBuilder) -> None:
    project.manifest({"foo__bar": "1.0.0", "@scope/tool": "2.0.0"})
    orchestrator = _orchestrator(project, RecordingSummarizer())
    orchestrator.run()

    assert orchestrator.prune(dry_run=True) == []
    assert orchestrator.prune() == []
    assert sorted(orchestrator.store.library_names()) == ["@scope/tool", "foo__bar"]
