"""Pulls README text and entry-point source out of installed packages."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from .logging import get_logger
from .models import RawDocs

README_CANDIDATES = ("README.md", "readme.md", "Readme.md")
DEFAULT_ENTRY = "index.js"

_logger = get_logger("extractor")


class RawExtractor:
    """Reads documentation inputs for a library from ``node_modules``."""

    def __init__(self, modules_dir: Path) -> None:
        self.modules_dir = modules_dir

    def package_dir(self, library: str) -> Path:
        return self.modules_dir / library

    def extract(self, library: str) -> RawDocs:
        """Return README and entry source for ``library``; missing files yield empty text."""
        package_dir = self.package_dir(library)
        if not package_dir.is_dir():
            _logger.warning("%s is not installed under %s", library, self.modules_dir)
            return RawDocs()

        readme = find_readme(package_dir)
        description = _read_text(readme) if readme else ""
        if not readme:
            _logger.debug("No README found for %s", library)

        entry = resolve_entry(package_dir)
        source = _read_text(entry) if entry.is_file() else ""
        if not source:
            _logger.debug("Entry file %s for %s is missing or empty", entry, library)

        return RawDocs(
            description=description,
            source=source,
            entry_path=_display_path(entry, package_dir) if source else None,
        )


def find_readme(package_dir: Path) -> Optional[Path]:
    """Return the first README variant present in ``package_dir``."""
    for candidate in README_CANDIDATES:
        path = package_dir / candidate
        if path.is_file():
            return path
    return None


def resolve_entry(package_dir: Path) -> Path:
    """Resolve the library entry file from its package.json ``main`` field.

    Falls back to ``index.js`` when the manifest or field is absent. Follows
    Node's extension and directory-index lookups for ``main``.
    """
    main = _read_main_field(package_dir / "package.json") or DEFAULT_ENTRY
    candidate = package_dir / main
    if candidate.is_file():
        return candidate
    with_ext = candidate.with_name(candidate.name + ".js")
    if with_ext.is_file():
        return with_ext
    if candidate.is_dir():
        return candidate / DEFAULT_ENTRY
    return candidate


def _read_main_field(package_json: Path) -> Optional[str]:
    if not package_json.is_file():
        return None
    try:
        data = json.loads(package_json.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        _logger.debug("Unable to read %s: %s", package_json, exc)
        return None
    if not isinstance(data, dict):
        return None
    main = data.get("main")
    if isinstance(main, str) and main.strip():
        return main.strip()
    return None


def _display_path(entry: Path, package_dir: Path) -> str:
    # an absolute `main` may point outside the package
    try:
        return str(entry.relative_to(package_dir))
    except ValueError:
        return str(entry)


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        _logger.warning("Unable to read %s: %s", path, exc)
        return ""


__all__ = ["DEFAULT_ENTRY", "README_CANDIDATES", "RawExtractor", "find_readme", "resolve_entry"]
