"""Text extraction for uploaded PDFs.

Input arrives base64-encoded, sometimes as a full data URL. Text is pulled
page by page with PyMuPDF. No OCR is attempted: scanned documents come back
with a placeholder text that points the caller at image upload instead.
"""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import fitz  # PyMuPDF

from agent_router.errors import DocumentParseError

logger = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 50
PAGE_SEPARATOR = "\n\n"

SCANNED_PLACEHOLDER = (
    "[This PDF appears to be a scan or contains only images. Please use a PDF with "
    "selectable text, or try uploading the image directly using the vision model "
    "(GPT-4o Mini or Qwen 2.5 VL).]"
)
NO_TEXT_MESSAGE = "PDF contains no selectable text. Try using vision model with image upload instead."


@dataclass
class PdfExtractionResult:
    text: str
    pages: int
    info: Dict[str, Any] = field(default_factory=dict)
    usedOCR: bool = False
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "text": self.text,
            "pages": self.pages,
            "info": self.info,
            "usedOCR": self.usedOCR,
        }
        if self.message is not None:
            out["message"] = self.message
        return out


def strip_data_url(encoded: str) -> str:
    """Drop a ``data:application/pdf;base64,`` style header if present."""
    _, sep, tail = encoded.partition(",")
    return tail if sep and tail else encoded


def decode_pdf(encoded: str) -> bytes:
    try:
        return base64.b64decode(strip_data_url(encoded.strip()))
    except (binascii.Error, ValueError) as exc:
        raise DocumentParseError(f"Invalid base64 data: {exc}") from exc


def _document_info(metadata: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    return {k: v for k, v in (metadata or {}).items() if v}


def extract_pdf_text(encoded: str) -> PdfExtractionResult:
    data = decode_pdf(encoded)
    logger.info("Extracting PDF text (%d bytes)", len(data))

    try:
        with fitz.open(stream=data, filetype="pdf") as doc:
            pages = doc.page_count
            info = _document_info(doc.metadata)
            text = PAGE_SEPARATOR.join(page.get_text() for page in doc)
    except Exception as exc:
        logger.error("PDF extraction error: %s", exc)
        raise DocumentParseError(str(exc)) from exc

    text = text.strip()
    message = None
    if len(text) < MIN_TEXT_LENGTH:
        logger.info("No usable text found in PDF (%d characters)", len(text))
        text = SCANNED_PLACEHOLDER
        message = NO_TEXT_MESSAGE

    logger.info("PDF extraction completed: %d pages, %d characters", pages, len(text))
    return PdfExtractionResult(text=text, pages=pages, info=info, message=message)


__all__ = [
    "PdfExtractionResult",
    "extract_pdf_text",
    "decode_pdf",
    "strip_data_url",
    "SCANNED_PLACEHOLDER",
    "NO_TEXT_MESSAGE",
    "MIN_TEXT_LENGTH",
]
