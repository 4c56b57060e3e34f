import base64
import logging
import os
from typing import Optional

from domain.errors import ValidationError
from domain.schemas import JobInput
from infra.pdf.parser import parse_pdf_text

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 10 * 1024 * 1024


def job_input_from_upload(filename: Optional[str], content_type: Optional[str], data: bytes) -> JobInput:
    """Turn an uploaded screenshot or document into a job analysis input."""
    name = filename or "upload"
    if not data:
        raise ValidationError("Uploaded file is empty", ["file"])
    if len(data) > MAX_UPLOAD_BYTES:
        raise ValidationError("Uploaded file is larger than 10 MB", ["file"])

    content_type = (content_type or "").lower()
    ext = os.path.splitext(name)[1].lower()

    if content_type.startswith("image/"):
        logger.info("Upload %s treated as screenshot (%s)", name, content_type)
        encoded = base64.b64encode(data).decode("ascii")
        return JobInput(
            title="Visual Job Offer",
            company="Analyzing Visuals...",
            salary="N/A",
            location="N/A",
            email="N/A",
            website="N/A",
            description="Image-based analysis requested.",
            source_type="screenshot",
            screenshot=f"data:{content_type};base64,{encoded}",
        )

    if ext == ".pdf" or content_type == "application/pdf":
        try:
            text = parse_pdf_text(data)
        except Exception as exc:
            logger.error("PDF extraction failed for %s: %s", name, exc)
            raise ValidationError(f"Could not read PDF file: {name}", ["file"]) from exc
    else:
        text = data.decode("utf-8", errors="replace").strip()

    return JobInput(
        title=name,
        company="Extracted from Document",
        salary="N/A",
        location="N/A",
        email="N/A",
        website="N/A",
        description=text or f"Analysis request for file: {name}",
        source_type="file",
    )
