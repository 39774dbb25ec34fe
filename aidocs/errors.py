"""Exception hierarchy shared across ai-docs components."""

from __future__ import annotations

from pathlib import Path


class AiDocsError(RuntimeError):
    """Base class for all ai-docs failures."""


class ConfigError(AiDocsError):
    """Raised when the tool configuration file exists but cannot be parsed."""


class ManifestMissing(AiDocsError):
    """Raised when the project manifest (package.json) does not exist."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"package.json not found at {path}")
        self.path = path


class ManifestInvalid(AiDocsError):
    """Raised when package.json exists but is not a JSON object."""


class LibraryError(AiDocsError):
    """A failure scoped to a single library; never aborts the batch."""

    def __init__(self, library: str, message: str) -> None:
        super().__init__(f"{library}: {message}")
        self.library = library
        self.reason = message


class CachedArtifactUnreadable(LibraryError):
    """A cached summary/index file exists but is not valid JSON or fails validation."""


class SummarizationFailure(LibraryError):
    """The remote summarization call failed, timed out, or returned garbage."""


class ParseFailure(LibraryError):
    """The library entry source could not be parsed."""


class PersistWriteFailure(LibraryError):
    """Writing a library artifact to the docs directory failed."""


__all__ = [
    "AiDocsError",
    "CachedArtifactUnreadable",
    "ConfigError",
    "LibraryError",
    "ManifestInvalid",
    "ManifestMissing",
    "ParseFailure",
    "PersistWriteFailure",
    "SummarizationFailure",
]
