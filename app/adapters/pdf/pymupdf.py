"""PyMuPDF adapter.

Implements TextExtractionPort using fitz (PyMuPDF). PDFs are read page by
page; plain text documents pass through decoded. Other binary formats
yield empty text.
"""
import logging

import fitz

from app.core.exceptions import ExtractionError
from app.core.ports.text_extraction import ExtractedText, TextExtractionPort

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
PAGE_SEPARATOR = "\n\n"


class PyMuPDFTextExtractor(TextExtractionPort):
    """PyMuPDF implementation of TextExtractionPort.

    Directly uses fitz library for PDF text.
    """

    def extract(self, content: bytes, mime_type: str) -> ExtractedText:
        """Extract text from document bytes.

        Args:
            content: Raw document bytes
            mime_type: Document MIME type

        Returns:
            ExtractedText; pages are joined with a blank line so chunk
            boundaries can fall between pages

        Raises:
            ExtractionError: If a PDF cannot be opened or read
        """
        if mime_type == PDF_MIME_TYPE:
            return self._extract_pdf(content)

        if mime_type.startswith("text/"):
            return ExtractedText(text=content.decode("utf-8", errors="replace"), page_count=1)

        if mime_type.startswith("image/"):
            # No OCR here: scanned images carry no text layer
            logger.warning(f"No text layer for image document ({mime_type})")
            return ExtractedText(text="", page_count=1)

        logger.warning(f"Unsupported MIME type for text extraction: {mime_type}")
        return ExtractedText(text="", page_count=0)

    def _extract_pdf(self, content: bytes) -> ExtractedText:
        try:
            with fitz.open(stream=content, filetype="pdf") as doc:
                pages = [(page.get_text() or "").strip() for page in doc]
                page_count = len(doc)
        except Exception as e:
            raise ExtractionError(f"Failed to extract text from PDF: {e}") from e

        text = PAGE_SEPARATOR.join(p for p in pages if p)
        if page_count and not text:
            logger.warning(f"PDF has {page_count} pages but no extractable text (scanned?)")
        return ExtractedText(text=text, page_count=page_count)
