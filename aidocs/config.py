"""Configuration loading for ai-docs (ai-docs_config.json)."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import ConfigError
from .logging import get_logger
from .models import DependencyEntry

CONFIG_FILENAME = "ai-docs_config.json"
MANIFEST_FILENAME = "package.json"
DEFAULT_DOCS_DIRNAME = "ai_docs"
ENV_SENTINEL_PREFIX = "process.env."
DEFAULT_ADDITIONAL_VERSION = "latest"

_logger = get_logger("config")


@dataclass(frozen=True)
class AiDocsPaths:
    """Filesystem locations used by a run, resolved once up front."""

    root: Path
    manifest_path: Path
    config_path: Path
    docs_dir: Path
    modules_dir: Path

    @classmethod
    def for_root(
        cls,
        root: Path | str,
        *,
        docs_dir: Path | str | None = None,
        config_path: Path | str | None = None,
    ) -> "AiDocsPaths":
        base = Path(root).expanduser().resolve()
        resolved_docs = _resolve_under(base, docs_dir) if docs_dir else base / DEFAULT_DOCS_DIRNAME
        resolved_config = _resolve_under(base, config_path) if config_path else base / CONFIG_FILENAME
        return cls(
            root=base,
            manifest_path=base / MANIFEST_FILENAME,
            config_path=resolved_config,
            docs_dir=resolved_docs,
            modules_dir=base / "node_modules",
        )

    def with_docs_dir(self, docs_dir: Path | str) -> "AiDocsPaths":
        return AiDocsPaths(
            root=self.root,
            manifest_path=self.manifest_path,
            config_path=self.config_path,
            docs_dir=_resolve_under(self.root, docs_dir),
            modules_dir=self.modules_dir,
        )


@dataclass
class LLMSettings:
    """Summarization endpoint settings."""

    api_key: Optional[str] = None
    model: Optional[str] = None
    base_url: Optional[str] = None
    request_timeout: Optional[float] = None
    max_readme_chars: Optional[int] = None


@dataclass
class ToolConfig:
    """Represents the settings defined in ai-docs_config.json."""

    llm: LLMSettings = field(default_factory=LLMSettings)
    additional_libraries: List[DependencyEntry] = field(default_factory=list)
    docs_dir: Optional[str] = None
    source: Optional[Path] = None

    @property
    def api_key(self) -> Optional[str]:
        return self.llm.api_key


def load_config(config_path: Path) -> ToolConfig:
    """Load the tool configuration, resolving environment indirections once.

    A missing file is not an error: an empty configuration is returned.
    """
    if not config_path.exists():
        _logger.debug("No configuration at %s; using defaults", config_path)
        return ToolConfig()

    data = _read_config(config_path)
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path.name} must contain a JSON object at the root")

    llm = LLMSettings(
        api_key=_resolve_env_reference(_as_str(data.get("apiKey"))),
        model=_as_str(data.get("model")),
        base_url=_as_str(data.get("baseUrl")),
        request_timeout=_as_float(data.get("requestTimeout")),
        max_readme_chars=_as_int(data.get("maxReadmeChars")),
    )

    return ToolConfig(
        llm=llm,
        additional_libraries=_parse_additional_libraries(data.get("additionalLibraries")),
        docs_dir=_as_str(data.get("docsDir")),
        source=config_path,
    )


def _read_config(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Unable to read {path}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc


def _resolve_env_reference(value: Optional[str]) -> Optional[str]:
    if value is None or not value.startswith(ENV_SENTINEL_PREFIX):
        return value
    variable = value[len(ENV_SENTINEL_PREFIX):]
    resolved = os.environ.get(variable)
    if not resolved:
        _logger.warning("apiKey references %s but that environment variable is not set", variable)
        return None
    return resolved


def _parse_additional_libraries(value: Any) -> List[DependencyEntry]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError("additionalLibraries must be a list of {name, version} objects")
    entries: Dict[str, DependencyEntry] = {}
    for item in value:
        if not isinstance(item, dict):
            _logger.warning("Ignoring additionalLibraries item %r: expected an object", item)
            continue
        name = _as_str(item.get("name"))
        if not name:
            _logger.warning("Ignoring additionalLibraries item without a name: %r", item)
            continue
        version = _as_str(item.get("version")) or DEFAULT_ADDITIONAL_VERSION
        entries[name] = DependencyEntry(name=name, version=version)
    return list(entries.values())


def _resolve_under(root: Path, value: Path | str) -> Path:
    candidate = Path(value).expanduser()
    if not candidate.is_absolute():
        candidate = root / candidate
    return candidate.resolve()


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    return str(value) if isinstance(value, (str, int, float)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


__all__ = [
    "AiDocsPaths",
    "CONFIG_FILENAME",
    "DEFAULT_DOCS_DIRNAME",
    "LLMSettings",
    "MANIFEST_FILENAME",
    "ToolConfig",
    "load_config",
]
