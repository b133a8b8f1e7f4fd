"""Text extraction port interface.

Turns a stored document's bytes into plain text. Core code depends only on
this abstraction, not on specific implementations like PyMuPDF.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class ExtractedText:
    """Plain text pulled from a document binary."""
    text: str
    page_count: int = 0


class TextExtractionPort(ABC):
    """Abstract interface for document text extraction.

    Implementations: PyMuPDFTextExtractor
    """

    @abstractmethod
    def extract(self, content: bytes, mime_type: str) -> ExtractedText:
        """Extract text from document bytes.

        Args:
            content: Raw document bytes
            mime_type: Document MIME type (e.g., "application/pdf")

        Returns:
            ExtractedText with full text and page count

        Raises:
            ExtractionError: If the document cannot be read
        """
        pass
