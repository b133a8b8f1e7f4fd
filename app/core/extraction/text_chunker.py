"""
TextChunker - Split large document text into oracle-sized chunks.

Chunks are contiguous and non-overlapping: concatenating every chunk's
text reproduces the input exactly. Boundaries prefer paragraph breaks,
then sentence breaks, and fall back to a hard cut.
"""
import logging
from dataclasses import dataclass
from typing import List

from app.config.pipeline_limits import CHUNK_BREAK_MIN_RATIO, STRUCTURED_CHUNK_SIZE

logger = logging.getLogger(__name__)


@dataclass
class TextChunk:
    """A chunk of text with metadata for processing."""
    text: str
    chunk_index: int
    total_chunks: int
    start_char: int
    end_char: int
    is_continuation: bool = False

    @property
    def char_count(self) -> int:
        return len(self.text)


class TextChunker:
    """
    Split large text into processable chunks for oracle extraction.

    Strategy:
    1. If text is at or under max_chars, return it as a single chunk
    2. Otherwise slide a max_chars window over the text
    3. Cut before the last paragraph break ("\\n\\n") in the window
    4. Else cut after the period of the last sentence break (". ")
    5. A natural break is only used at or beyond min_break_ratio of the window

    Usage:
        chunker = TextChunker(max_chars=50000)
        chunks = chunker.chunk_text(document.extracted_text)
        for chunk in chunks:
            result = await llm.generate(prompt + chunk.text, model="haiku")
    """

    def __init__(
        self,
        max_chars: int = STRUCTURED_CHUNK_SIZE,
        min_break_ratio: float = CHUNK_BREAK_MIN_RATIO,
    ):
        """
        Initialize text chunker.

        Args:
            max_chars: Maximum characters per chunk
            min_break_ratio: Earliest position (fraction of window) a natural break may fall
        """
        if max_chars <= 0:
            raise ValueError(f"max_chars must be positive, got {max_chars}")
        self.max_chars = max_chars
        self.min_break_ratio = min_break_ratio

    def needs_chunking(self, text: str) -> bool:
        """Check if text exceeds chunking threshold."""
        return len(text) > self.max_chars

    def chunk_text(self, text: str) -> List[TextChunk]:
        """
        Split text into contiguous chunks.

        Args:
            text: Full text to chunk

        Returns:
            List of TextChunk objects (empty for empty text)
        """
        if not text:
            return []

        if not self.needs_chunking(text):
            return [TextChunk(
                text=text,
                chunk_index=0,
                total_chunks=1,
                start_char=0,
                end_char=len(text),
                is_continuation=False,
            )]

        chunks = []
        start = 0
        chunk_index = 0

        while start < len(text):
            end = min(start + self.max_chars, len(text))

            # Only look for a natural break when the window ends inside the text
            if end < len(text):
                end = self._find_break_point(text, start, end)

            chunks.append(TextChunk(
                text=text[start:end],
                chunk_index=chunk_index,
                total_chunks=0,  # Set after all chunks created
                start_char=start,
                end_char=end,
                is_continuation=chunk_index > 0,
            ))

            start = end
            chunk_index += 1

        total = len(chunks)
        for chunk in chunks:
            chunk.total_chunks = total

        logger.info(f"Chunked {len(text):,} chars into {total} chunks: {[c.char_count for c in chunks]}")
        return chunks

    def _find_break_point(self, text: str, start: int, end: int) -> int:
        """
        Find the chunk end for the window text[start:end].

        Priority:
        1. Paragraph boundary: cut before the last "\\n\\n"
        2. Sentence boundary: cut right after the period of the last ". "
        3. Hard cut at end
        """
        min_end = start + int(self.max_chars * self.min_break_ratio)

        para = text.rfind("\n\n", start, end)
        if para != -1 and para >= min_end and para > start:
            return para

        sentence = text.rfind(". ", start, end)
        if sentence != -1 and sentence + 1 >= min_end:
            return sentence + 1

        return end
