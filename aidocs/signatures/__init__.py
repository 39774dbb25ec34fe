"""Signature extractor implementations and lookup by dialect."""

from __future__ import annotations

from typing import Callable, Dict, List

from .base import SignatureExtractor
from .javascript import JavaScriptSignatureExtractor

_BUILTIN_FACTORIES: Dict[str, Callable[[], SignatureExtractor]] = {
    "javascript": JavaScriptSignatureExtractor,
}


def available_dialects() -> List[str]:
    return sorted(_BUILTIN_FACTORIES)


def get_extractor(dialect: str = "javascript") -> SignatureExtractor:
    """Return a fresh extractor for ``dialect``."""
    key = dialect.lower()
    factory = _BUILTIN_FACTORIES.get(key)
    if factory is None:
        raise ValueError(
            f"No signature extractor for '{dialect}'. Available: {', '.join(available_dialects())}"
        )
    extractor = factory()
    if not isinstance(extractor, SignatureExtractor):
        raise TypeError(f"Extractor factory for '{dialect}' did not return a SignatureExtractor")
    return extractor


__all__ = [
    "JavaScriptSignatureExtractor",
    "SignatureExtractor",
    "available_dialects",
    "get_extractor",
]
