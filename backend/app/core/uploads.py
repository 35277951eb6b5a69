from __future__ import annotations

import time
from pathlib import Path
from uuid import uuid4

from fastapi import UploadFile

from app.core.errors import UnsupportedFileType

OCTET_STREAM_MIME_TYPES = {"application/octet-stream", "binary/octet-stream"}

CV_EXTENSIONS = {".doc", ".docx", ".pdf"}
CV_MIME_TYPES = {
    "application/x-pdf",
    "application/msword",
    "application/pdf",
    "application/vnd.ms-word",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}


def file_extension(raw: str | None) -> str:
    # Only the last path component counts; Windows clients may send backslashes.
    name = (raw or "").strip().replace("\\", "/").rsplit("/", 1)[-1]
    return Path(name).suffix.lower()


def has_upload(upload: UploadFile | None) -> bool:
    # Browsers post an empty part with no filename when the file input is left blank.
    return upload is not None and bool((upload.filename or "").strip())


def validate_upload(
    upload: UploadFile,
    *,
    allowed_extensions: set[str],
    allowed_mime_types: set[str],
) -> str:
    """Checks extension and content type; returns the lower-cased extension."""
    ext = file_extension(upload.filename)
    if ext not in allowed_extensions:
        shown = ext or "(no extension)"
        raise UnsupportedFileType(
            f"Invalid file type '{shown}'. Only PDF, DOC and DOCX files are allowed."
        )

    content_type = (upload.content_type or "").strip().lower()
    if ";" in content_type:
        content_type = content_type.split(";", 1)[0].strip()
    if content_type and content_type not in allowed_mime_types and content_type not in OCTET_STREAM_MIME_TYPES:
        raise UnsupportedFileType(
            f"Invalid file content type '{content_type}'. Only PDF, DOC and DOCX files are allowed."
        )
    return ext


def generate_storage_name(ext: str, *, prefix: str = "cv") -> str:
    millis = int(time.time() * 1000)
    return f"{prefix}-{millis}-{uuid4().hex[:12]}{ext}"

