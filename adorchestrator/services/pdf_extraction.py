"""AdOrchestrator — PDF Text Extraction."""

from io import BytesIO

from pypdf import PdfReader

from adorchestrator.core.logging import get_logger

logger = get_logger("services.pdf")


class PDFExtractionError(Exception):
    """Raised when a document cannot be read as a PDF."""


def extract_text_from_pdf(data: bytes) -> str:
    """Concatenate the text of every page, one page per line block."""
    try:
        reader = PdfReader(BytesIO(data))
        pages = [page.extract_text() or "" for page in reader.pages]
    except Exception as e:
        # pypdf raises a wide range of types for malformed files.
        raise PDFExtractionError(f"Could not read PDF: {e}") from e

    logger.info(f"Extracted text from {len(pages)} PDF page(s)")
    return "\n".join(pages)
