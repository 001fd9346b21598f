"""Document ingestion stages: **extract -> clean -> chunk**.

1. **Extract** (extractor.py / TextExtractor) -- PDF, DOCX or plain-text
   bytes to a single text string.
2. **Clean** (chunker.py / TextChunker.clean) -- collapse whitespace and
   drop characters outside letters, digits and basic punctuation.
3. **Chunk** (chunker.py / TextChunker.split) -- whole sentences packed
   into ~500-token chunks.

Embedding and storage happen in :mod:`ragassist.pipeline.orchestrator`.
"""

from ragassist.services.ingestion.chunker import TextChunker, estimate_tokens
from ragassist.services.ingestion.extractor import TextExtractor, file_extension, is_supported_type

__all__ = ["TextChunker", "TextExtractor", "estimate_tokens", "file_extension", "is_supported_type"]
