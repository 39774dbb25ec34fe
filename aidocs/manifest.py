"""Reads the project's declared dependencies from package.json."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List

from .errors import ManifestInvalid, ManifestMissing
from .logging import get_logger
from .models import DependencyEntry

# Later sections win when a name is declared twice.
DEPENDENCY_SECTIONS = ("dependencies", "devDependencies")

_logger = get_logger("manifest")


def load_dependencies(manifest_path: Path) -> List[DependencyEntry]:
    """Return the merged dependency set declared in ``manifest_path``.

    Raises ManifestMissing when the file does not exist.
    """
    if not manifest_path.exists():
        raise ManifestMissing(manifest_path)

    try:
        data = json.loads(manifest_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ManifestInvalid(f"Unable to read {manifest_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ManifestInvalid(f"{manifest_path} must contain a JSON object")

    merged: Dict[str, str] = {}
    for section in DEPENDENCY_SECTIONS:
        deps = data.get(section)
        if deps is None:
            continue
        if not isinstance(deps, dict):
            _logger.warning("Ignoring %s in %s: expected an object", section, manifest_path.name)
            continue
        for name, version in deps.items():
            if not isinstance(version, str):
                _logger.warning("Ignoring %s in %s: version is not a string", name, section)
                continue
            if name in merged and merged[name] != version:
                _logger.debug(
                    "%s declared as %s and %s; using %s from %s",
                    name,
                    merged[name],
                    version,
                    version,
                    section,
                )
            merged[name] = version

    return [DependencyEntry(name=name, version=version) for name, version in merged.items()]


__all__ = ["DEPENDENCY_SECTIONS", "load_dependencies"]
