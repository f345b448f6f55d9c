"""API routes for upload, conversion and download."""
import asyncio
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import FileResponse

from converter import config as app_config
from converter.api.uploads import receive_upload
from converter.conversion.allocator import TaskAllocator, get_task_allocator
from converter.conversion.events import PipelineEvent, PipelineObserver, get_pipeline_observer
from converter.conversion.models import SUPPORTED_FORMATS, Task, TaskStatus, parse_format
from converter.conversion.naming import output_name
from converter.conversion.service import ConversionEngine, get_conversion_engine
from converter.errors import ClientError, ConverterError
from converter.storage import media_type_for, resolve_artifact

router = APIRouter(tags=["converter"])


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/formats")
def get_formats():
    return {"output": SUPPORTED_FORMATS}


@router.post("/convert")
async def convert_upload(
    request: Request,
    output_format: Optional[str] = Query(None, description="One of: " + ", ".join(SUPPORTED_FORMATS)),
    allocator: TaskAllocator = Depends(get_task_allocator),
    engine: ConversionEngine = Depends(get_conversion_engine),
    observer: PipelineObserver = Depends(get_pipeline_observer),
):
    """Upload a single image (multipart) and convert it to output_format."""
    if not output_format:
        raise ClientError("Missing output_format query parameter")
    # Rejected before the body is read, so a bad format never consumes a task id
    fmt = parse_format(output_format)
    upload = await receive_upload(request, app_config.UPLOAD_DIR, observer)

    task = Task(allocator.next_id(), upload.filename, fmt)
    observer(PipelineEvent(TaskStatus.CONVERTING, task.filename, task.task_id))
    try:
        name = output_name(task.filename, task.task_id, fmt)
        dest = Path(app_config.OUTPUT_DIR) / name
        await asyncio.to_thread(engine.convert, upload.path, fmt, dest)
    except ConverterError as e:
        observer(PipelineEvent(TaskStatus.FAILED, task.filename, task.task_id, str(e)))
        raise
    finally:
        if app_config.CLEANUP_UPLOADS:
            engine.cleanup_upload(upload.path)

    observer(PipelineEvent(TaskStatus.READY, task.filename, task.task_id, name))
    return {
        "task_id": task.task_id,
        "converted_file": f"/download/{name}",
    }


@router.get("/download/{filename}")
def download_artifact(filename: str):
    """Download a converted file by name."""
    path = resolve_artifact(filename, app_config.OUTPUT_DIR)
    return FileResponse(path, media_type=media_type_for(path), filename=path.name, content_disposition_type="inline")
