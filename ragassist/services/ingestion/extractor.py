"""Plain-text extraction from uploaded document bytes.

Supported content types:

    application/pdf                                                          -> PyMuPDF text layer
    application/vnd.openxmlformats-officedocument.wordprocessingml.document  -> python-docx paragraphs
    text/plain                                                               -> UTF-8 decode

DOCX extraction is best-effort.  Bytes that python-docx cannot open as a
package are scanned for ``<w:t>`` text runs instead, which recovers text
from bare WordprocessingML but ignores tables, headers and footnotes.
"""

from __future__ import annotations

import asyncio
import io
import re
import zipfile

import docx
import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog
from docx.opc.exceptions import PackageNotFoundError

from ragassist.utils.errors import EmptyContentError, ExtractionError, UnsupportedTypeError

logger = structlog.get_logger(logger_name=__name__)

PDF_TYPE = "application/pdf"
DOCX_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT_TYPE = "text/plain"

_EXTENSIONS: dict[str, str] = {
    PDF_TYPE: "pdf",
    DOCX_TYPE: "docx",
    TEXT_TYPE: "txt",
}

_DOCX_RUN_PATTERN = re.compile(r"<w:t[^>]*>([^<]*)</w:t>")


def _base_type(content_type: str) -> str:
    """Drop parameters such as ``; charset=utf-8`` and normalise case."""
    return content_type.split(";", 1)[0].strip().lower()


def is_supported_type(content_type: str) -> bool:
    return _base_type(content_type) in _EXTENSIONS


def file_extension(content_type: str) -> str:
    """Map a supported content type to its file extension, else ``"unknown"``."""
    return _EXTENSIONS.get(_base_type(content_type), "unknown")


class TextExtractor:
    """Turns document bytes into plain text according to their content type."""

    async def extract(self, data: bytes, content_type: str) -> str:
        """Extract plain text from *data*.

        Raises
        ------
        UnsupportedTypeError
            If *content_type* is not supported.
        EmptyContentError
            If *data* is empty or yields only whitespace.
        ExtractionError
            If the document cannot be read.
        """
        kind = _base_type(content_type)
        if kind not in _EXTENSIONS:
            raise UnsupportedTypeError(message=f"Unsupported file type: {content_type}")
        if not data:
            raise EmptyContentError(message="Document is empty")

        if kind == PDF_TYPE:
            text = await asyncio.to_thread(self._extract_pdf, data)
        elif kind == DOCX_TYPE:
            text = await asyncio.to_thread(self._extract_docx, data)
        else:
            text = self._extract_text(data)

        if not text.strip():
            raise EmptyContentError()

        logger.info("text_extracted", content_type=kind, bytes=len(data), chars=len(text))
        return text

    # ------------------------------------------------------------------
    # Format readers
    # ------------------------------------------------------------------

    @staticmethod
    def _extract_pdf(data: bytes) -> str:
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as exc:
            raise ExtractionError(message=f"Failed to extract text from PDF: {exc}") from exc

        try:
            pages = [doc[page_num].get_text("text") for page_num in range(len(doc))]
        except Exception as exc:
            raise ExtractionError(message=f"Failed to extract text from PDF: {exc}") from exc
        finally:
            doc.close()
        return "\n\n".join(page.strip() for page in pages if page.strip())

    @staticmethod
    def _extract_docx(data: bytes) -> str:
        try:
            document = docx.Document(io.BytesIO(data))
        except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError):
            logger.info("docx_package_unreadable_scanning_runs", bytes=len(data))
            return TextExtractor._scan_docx_runs(data.decode("utf-8", errors="replace"))
        except Exception as exc:
            raise ExtractionError(message=f"Failed to extract text from DOCX: {exc}") from exc

        try:
            paragraphs = [p.text for p in document.paragraphs]
        except Exception as exc:
            raise ExtractionError(message=f"Failed to extract text from DOCX: {exc}") from exc
        return "\n\n".join(text for text in paragraphs if text.strip())

    @staticmethod
    def _scan_docx_runs(xml: str) -> str:
        return " ".join(_DOCX_RUN_PATTERN.findall(xml)).strip()

    @staticmethod
    def _extract_text(data: bytes) -> str:
        return data.decode("utf-8-sig", errors="replace")
