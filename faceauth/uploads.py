"""
Uploaded image handling

Uploads are validated, written to a temporary file for the extractor and
removed again on every exit path.
"""
import os
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional, Union
import logging

from fastapi import UploadFile

from faceauth.config import SUPPORTED_FORMATS, UPLOAD_DIR
from faceauth.exceptions import InvalidInput

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


def validate_image_file(file: UploadFile) -> str:
    """Validate uploaded image file and return its extension."""
    if not file.filename:
        raise InvalidInput("No filename provided")

    ext = "." + file.filename.lower().split(".")[-1] if "." in file.filename else ""
    if ext not in SUPPORTED_FORMATS:
        raise InvalidInput(f"Unsupported file format. Supported: {', '.join(sorted(SUPPORTED_FORMATS))}")

    if file.content_type and not file.content_type.startswith("image/"):
        raise InvalidInput("File must be an image")

    return ext


@asynccontextmanager
async def staged_upload(file: UploadFile, upload_dir: Optional[Union[str, Path]] = None) -> AsyncIterator[Path]:
    """
    Write an uploaded image to a temporary file.

    Usage:
        async with staged_upload(image) as path:
            descriptor = extractor.extract(path)

    The file is deleted when the block exits, including on errors.
    """
    ext = validate_image_file(file)

    upload_dir = Path(upload_dir or UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)

    fd, name = tempfile.mkstemp(suffix=ext, dir=upload_dir)
    path = Path(name)
    try:
        size = 0
        with os.fdopen(fd, "wb") as out:
            while True:
                chunk = await file.read(CHUNK_SIZE)
                if not chunk:
                    break
                out.write(chunk)
                size += len(chunk)

        if size == 0:
            raise InvalidInput("Empty image file")

        logger.debug(f"Staged upload '{file.filename}' ({size} bytes) at {path}")
        yield path
    finally:
        path.unlink(missing_ok=True)
