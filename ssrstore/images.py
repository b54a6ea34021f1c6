import os
import shutil
import time
import uuid
from typing import Optional

import structlog
from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from .errors import ValidationError

logger = structlog.get_logger(__name__)

UPLOAD_FIELD = "product"


class ImageStore:
    """Writes uploaded product images to disk; they are served under /images."""

    def __init__(self, directory: str, public_base_url: str):
        self.directory = directory
        self.public_base_url = public_base_url.rstrip("/")
        os.makedirs(self.directory, exist_ok=True)

    def _filename(self, original: Optional[str]) -> str:
        ext = os.path.splitext(original or "")[1]
        return f"{UPLOAD_FIELD}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}{ext}"

    def _write(self, upload: UploadFile, filename: str) -> None:
        with open(os.path.join(self.directory, filename), "xb") as fh:
            shutil.copyfileobj(upload.file, fh)

    async def save(self, upload: Optional[UploadFile]) -> str:
        if upload is None or not upload.filename:
            raise ValidationError("No image uploaded")
        filename = self._filename(upload.filename)
        await run_in_threadpool(self._write, upload, filename)
        logger.info("Image uploaded", filename=filename)
        return f"{self.public_base_url}/images/{filename}"
