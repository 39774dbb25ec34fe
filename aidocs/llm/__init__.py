"""Remote summarization adapters."""

from .summarizer import Summarizer, SummaryRequest

__all__ = ["Summarizer", "SummaryRequest"]
