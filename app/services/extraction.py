import io
import logging
import os

import PyPDF2
import docx

logger = logging.getLogger(__name__)

PDF_EXTRACTION_FAILED = "PDF text extraction failed. Please try uploading a different file format."


def _extension(filename: str) -> str:
    return os.path.splitext(filename or "")[1].lower()


def extract_from_pdf(content: bytes) -> str:
    """PDF → text. Never raises; a readable failure marker is returned instead."""
    try:
        reader = PyPDF2.PdfReader(io.BytesIO(content))
        pages = [page.extract_text() or "" for page in reader.pages]
        return "\n".join(pages).strip()
    except Exception as e:
        logger.error(f"PDF extraction error: {e}")
        return PDF_EXTRACTION_FAILED


def extract_from_docx(content: bytes) -> str:
    document = docx.Document(io.BytesIO(content))
    return "\n".join(paragraph.text for paragraph in document.paragraphs).strip()


def extract_text(content: bytes, filename: str) -> str:
    """Extract plain text from an uploaded file, dispatching on its extension."""
    ext = _extension(filename)

    if ext == ".pdf":
        return extract_from_pdf(content)
    if ext in (".doc", ".docx"):
        return extract_from_docx(content)

    return content.decode("utf-8", errors="replace")
