"""Document classification and size limits for document challenges."""

from pathlib import PurePath
from typing import Literal

from character_chat.models import DocumentUpload

DocumentKind = Literal["pdf", "image", "text"]

MB = 1024 * 1024
SIZE_LIMITS: dict[str, int] = {"pdf": 100 * MB, "image": 10 * MB, "text": 10 * MB}


class DocumentError(ValueError):
    """The upload cannot be used as a challenge source."""


def classify_document(doc: DocumentUpload) -> DocumentKind:
    mime = doc.mime_type.lower()
    if mime == "application/pdf":
        return "pdf"
    if mime.startswith("image/"):
        return "image"
    if mime == "text/plain" or PurePath(doc.filename).suffix.lower() == ".txt":
        return "text"
    raise DocumentError("Please upload an image, PDF, or text file only.")


def check_document(doc: DocumentUpload) -> DocumentKind:
    """Classify and enforce the per-kind size limit."""
    kind = classify_document(doc)
    limit = SIZE_LIMITS[kind]
    if doc.size > limit:
        raise DocumentError(f"Please upload a file smaller than {limit // MB}MB.")
    return kind


def document_text(doc: DocumentUpload) -> str:
    return doc.data.decode("utf-8", errors="replace")
