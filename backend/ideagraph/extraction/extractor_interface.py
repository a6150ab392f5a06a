"""Extractor interface for pluggable analysis implementations."""

from abc import ABC, abstractmethod

from ideagraph.extraction.types import ExtractionResult


class ExtractorInterface(ABC):
    """Abstract extractor interface."""

    @abstractmethod
    def extract(self, text: str) -> ExtractionResult:
        """Turn raw post text into problem/idea/product candidates."""
