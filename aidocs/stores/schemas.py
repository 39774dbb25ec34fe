"""Validated on-disk shapes for the per-library summary and index views."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class FunctionSummary(BaseModel):
    """Lightweight function row stored in the summary view."""

    name: str
    params: List[str] = Field(default_factory=list)
    start: int
    end: int


class SummaryView(BaseModel):
    """``<library>_summary.json``; its ``version`` drives staleness checks."""

    name: str
    version: str
    summary: str = ""
    functions: List[FunctionSummary] = Field(default_factory=list)


class FunctionIndexEntry(BaseModel):
    """Richer function row stored in the index view."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    params: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    code_example: Optional[str] = Field(default=None, alias="codeExample")


class IndexView(BaseModel):
    """``<library>_index.json``."""

    functions: List[FunctionIndexEntry] = Field(default_factory=list)


__all__ = ["FunctionIndexEntry", "FunctionSummary", "IndexView", "SummaryView"]
