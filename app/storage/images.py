"""
Listing image storage - the upload collaborator behind listing creation.
Design: narrow interface (save an upload, get back a URL); local disk by default,
served by the app under /uploads. A CDN-backed store only has to implement save().
"""

import logging
import uuid
from pathlib import Path

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from app.core.errors import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp"}
PUBLIC_PREFIX = "/uploads"


class ImageStorage:
    async def save(self, upload: UploadFile, folder: str) -> str:
        """Persist the upload and return its public URL."""
        raise NotImplementedError


class LocalImageStorage(ImageStorage):
    def __init__(self, root: str | Path):
        self.root = Path(root)

    @staticmethod
    def _write(path: Path, content: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)

    async def save(self, upload: UploadFile, folder: str) -> str:
        ext = Path(upload.filename or "").suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                f"Unsupported image type {ext or '(none)'}; allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
            )
        name = f"{uuid.uuid4().hex}{ext}"
        content = await upload.read()
        await run_in_threadpool(self._write, self.root / folder / name, content)
        logger.info("Stored image %s/%s (%d bytes)", folder, name, len(content))
        return f"{PUBLIC_PREFIX}/{folder}/{name}"
