from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import anyio
from fastapi import UploadFile

from app.core.config import Settings
from app.core.errors import FileTooLarge
from app.core.paths import resolve_repo_path
from app.core.uploads import CV_EXTENSIONS, CV_MIME_TYPES, generate_storage_name, validate_upload

logger = logging.getLogger("lti.storage")

CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class StoredFile:
    name: str
    path: Path
    url: str


class CvStorage:
    """Writes uploaded CVs to a local directory under generated names."""

    def __init__(self, directory: Path, *, url_prefix: str = "/uploads", max_bytes: int = 5 * 1024 * 1024) -> None:
        self.directory = Path(directory)
        self.url_prefix = "/" + url_prefix.strip("/")
        self.max_bytes = max_bytes

    @classmethod
    def from_settings(cls, settings: Settings) -> "CvStorage":
        return cls(
            resolve_repo_path(settings.upload_dir),
            url_prefix=settings.upload_url_prefix,
            max_bytes=settings.cv_max_bytes,
        )

    def public_url(self, name: str) -> str:
        return f"{self.url_prefix}/{name}"

    def _too_large(self) -> FileTooLarge:
        return FileTooLarge(f"CV file too large. Max allowed is {self.max_bytes // (1024 * 1024)}MB.")

    async def _read_limited(self, upload: UploadFile) -> bytes:
        if upload.size is not None and upload.size > self.max_bytes:
            raise self._too_large()

        chunks: list[bytes] = []
        total = 0
        while True:
            chunk = await upload.read(CHUNK_SIZE)
            if not chunk:
                break
            total += len(chunk)
            if total > self.max_bytes:
                raise self._too_large()
            chunks.append(chunk)
        return b"".join(chunks)

    def _write(self, target: Path, data: bytes) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)

    async def store(self, upload: UploadFile) -> StoredFile:
        ext = validate_upload(upload, allowed_extensions=CV_EXTENSIONS, allowed_mime_types=CV_MIME_TYPES)
        data = await self._read_limited(upload)

        name = generate_storage_name(ext)
        target = self.directory / name
        await anyio.to_thread.run_sync(self._write, target, data)
        logger.info(
            "cv_stored",
            extra={"stored_name": name, "original_filename": upload.filename, "size_bytes": len(data)},
        )
        return StoredFile(name=name, path=target, url=self.public_url(name))
