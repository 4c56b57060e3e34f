import io
import logging

import pdfplumber

logger = logging.getLogger(__name__)


def parse_pdf_text(data: bytes) -> str:
    """Extract the text layer of an uploaded PDF; scanned pages yield nothing."""
    with pdfplumber.open(io.BytesIO(data)) as pdf:
        pages = [page.extract_text() or "" for page in pdf.pages]
    logger.debug("Extracted text from %d PDF page(s)", len(pages))
    return "\n".join(p for p in pages if p.strip()).strip()
