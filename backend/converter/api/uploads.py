"""Multipart upload receiver: streams the uploaded file into transient storage."""
import asyncio
import logging
import os
import uuid
from pathlib import Path, PurePath
from typing import Optional

from fastapi import Request
from starlette.datastructures import UploadFile

from converter import config as app_config
from converter.conversion.events import PipelineEvent, PipelineObserver
from converter.conversion.models import ReceivedUpload, TaskStatus
from converter.errors import ClientError, UploadError

logger = logging.getLogger("converter.api")


def _sync_to_disk(f) -> None:
    f.flush()
    os.fsync(f.fileno())


def transient_name(filename: str) -> str:
    """Unique on-disk name for an upload; keeps the client's basename for readability."""
    base = PurePath(filename.replace("\\", "/")).name or "upload"
    return f"{uuid.uuid4().hex}_{base}"


async def receive_upload(
    request: Request,
    upload_dir: Optional[Path] = None,
    observer: Optional[PipelineObserver] = None,
    chunk_size: Optional[int] = None,
) -> ReceivedUpload:
    """Write the request's file part to upload_dir and return its path and original filename.

    Every part must carry a filename. Starlette spools parts to temporary files while parsing,
    and the copy below moves at most chunk_size bytes at a time.
    """
    upload_dir = Path(upload_dir or app_config.UPLOAD_DIR)
    chunk_size = chunk_size or app_config.UPLOAD_CHUNK_SIZE

    async with request.form() as form:
        file: Optional[UploadFile] = None
        for field, value in form.multi_items():
            if not isinstance(value, UploadFile) or not value.filename:
                logger.warning("Rejected upload: part %r has no filename", field)
                raise ClientError("No filename provided in the request")
            if file is None:
                file = value
            else:
                logger.info("Ignoring extra file part %r (%s)", field, value.filename)
        if file is None:
            raise ClientError("No file uploaded")

        filename = file.filename
        if observer:
            observer(PipelineEvent(TaskStatus.CREATED, filename))
            observer(PipelineEvent(TaskStatus.UPLOADING, filename))
        dest = upload_dir / transient_name(filename)
        total = 0
        try:
            with open(dest, "wb") as f:
                while chunk := await file.read(chunk_size):
                    total += len(chunk)
                    f.write(chunk)
                await asyncio.to_thread(_sync_to_disk, f)
        except Exception as e:
            logger.exception("Upload failed for %s: %s", filename, e)
            dest.unlink(missing_ok=True)
            error = UploadError("Upload failed", e)
            if observer:
                observer(PipelineEvent(TaskStatus.FAILED, filename, None, str(error)))
            raise error from e
    logger.info("Received %s (%s bytes) -> %s", filename, total, dest.name)
    return ReceivedUpload(dest, filename)
