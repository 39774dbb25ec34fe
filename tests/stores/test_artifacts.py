"""Tests for the per-library artifact store."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from aidocs.errors import CachedArtifactUnreadable, PersistWriteFailure
from aidocs.models import CachedArtifactRecord, FunctionDetail, FunctionSignature
from aidocs.stores import ArtifactStore


def _record(name: str = "sample-library", version: str = "1.0.0") -> CachedArtifactRecord:
    return CachedArtifactRecord(
        name=name,
        version=version,
        summary="This is a sample library.",
        functions=[FunctionSignature(name="testFunc", params=["param1", "param2"], start=10, end=20)],
        details=[
            FunctionDetail(
                name="testFunc",
                params=["param1", "param2"],
                description="A test function.",
                code_example='testFunc("value1", "value2");',
            )
        ],
    )


def test_write_produces_summary_and_index_views(tmp_path: Path) -> None:
    store = ArtifactStore(tmp_path / "ai_docs")
    store.write(_record())

    summary = json.loads((tmp_path / "ai_docs" / "sample-library_summary.json").read_text(encoding="utf-8"))
    index = json.loads((tmp_path / "ai_docs" / "sample-library_index.json").read_text(encoding="utf-8"))

    assert summary == {
        "name": "sample-library",
        "version": "1.0.0",
        "summary": "This is a sample library.",
        "functions": [{"name": "testFunc", "params": ["param1", "param2"], "start": 10, "end": 20}],
    }
    assert index == {
        "functions": [
            {
                "name": "testFunc",
                "params": ["param1", "param2"],
                "description": "A test function.",
                "codeExample": 'testFunc("value1", "value2");',
            }
        ]
    }


def test_round_trip_returns_equal_record(tmp_path: Path) -> None:
    store = ArtifactStore(tmp_path)
    record = _record()
    store.write(record)

    assert store.read_record("sample-library") == record


def test_index_view_defaults_to_bare_function_rows(tmp_path: Path) -> None:
    store = ArtifactStore(tmp_path)
    record = _record()
    record.details = []
    store.write(record)

    loaded = store.read_record("sample-library")

    assert loaded is not None
    assert loaded.functions == record.functions
    assert loaded.details == [FunctionDetail(name="testFunc", params=["param1", "param2"])]


def test_write_replaces_previous_files(tmp_path: Path) -> None:
    store = ArtifactStore(tmp_path)
    store.write(_record(version="1.0.0"))
    replacement = CachedArtifactRecord(name="sample-library", version="2.0.0", summary="v2")
    store.write(replacement)

    loaded = store.read_record("sample-library")
    assert loaded is not None
    assert loaded.version == "2.0.0"
    assert loaded.functions == []
    assert [p.name for p in tmp_path.iterdir() if p.name.endswith(".tmp")] == []


def test_scoped_package_names_are_flattened(tmp_path: Path) -> None:
    store = ArtifactStore(tmp_path)
    store.write(CachedArtifactRecord(name="@babel/core", version="7.24.0", summary="Babel"))

    assert (tmp_path / "@babel%2Fcore_summary.json").exists()
    assert store.library_names() == ["@babel/core"]
    assert store.cached_version("@babel/core") == "7.24.0"


def test_keys_are_distinct_for_lookalike_names(tmp_path: Path) -> None:
    store = ArtifactStore(tmp_path)
    for name in ("@a/b", "@a__b", "foo__bar"):
        store.write(CachedArtifactRecord(name=name, version="1.0.0", summary=name))

    assert len({store.key_for(name) for name in ("@a/b", "@a__b", "foo__bar")}) == 3
    assert sorted(store.library_names()) == ["@a/b", "@a__b", "foo__bar"]
    assert store.cached_version("@a__b") == "1.0.0"
    assert store.read_record("@a/b").summary == "@a/b"


def test_missing_record_returns_none(tmp_path: Path) -> None:
    store = ArtifactStore(tmp_path / "absent")

    assert store.read_record("nothing") is None
    assert store.cached_version("nothing") is None
    assert store.library_names() == []


@pytest.mark.parametrize(
    "content",
    ["{not json", '{"name": "broken"}', '{"name": "broken", "version": 3, "functions": "nope"}'],
)
def test_malformed_summary_is_unreadable(tmp_path: Path, content: str) -> None:
    (tmp_path / "broken_summary.json").write_text(content, encoding="utf-8")
    store = ArtifactStore(tmp_path)

    with pytest.raises(CachedArtifactUnreadable) as excinfo:
        store.cached_version("broken")
    assert excinfo.value.library == "broken"


def test_remove_deletes_both_views(tmp_path: Path) -> None:
    store = ArtifactStore(tmp_path)
    store.write(_record())

    assert store.remove("sample-library") is True
    assert store.remove("sample-library") is False
    assert list(tmp_path.iterdir()) == []


def test_write_failure_raises_persist_error(tmp_path: Path) -> None:
    blocker = tmp_path / "ai_docs"
    blocker.write_text("not a directory", encoding="utf-8")
    store = ArtifactStore(blocker)

    with pytest.raises(PersistWriteFailure):
        store.write(_record())


def test_non_utf8_summary_is_unreadable(tmp_path: Path) -> None:
    (tmp_path / "lodash_summary.json").write_bytes(b'{"name": "lodash", "version": "\xff\xfe"}')

    with pytest.raises(CachedArtifactUnreadable) as excinfo:
        ArtifactStore(tmp_path).read_summary("lodash")
    assert "UTF-8" in excinfo.value.reason
