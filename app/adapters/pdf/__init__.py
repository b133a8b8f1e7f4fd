"""Document text extraction adapters."""
from app.adapters.pdf.pymupdf import PyMuPDFTextExtractor

__all__ = ["PyMuPDFTextExtractor"]
