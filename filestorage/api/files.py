"""
Files API endpoint implementation.

This module exposes the storage façade over HTTP: upload, download,
delete and stat of files, plus the list of configured disks.
"""

import logging
import mimetypes
from typing import Optional

from fastapi import APIRouter, File, Query, Request, UploadFile
from fastapi.responses import JSONResponse, StreamingResponse

from ..models.responses import DiskListResponse, DiskSummary, ErrorResponse, SuccessResponse
from ..models.results import FileStat
from ..storage.errors import (
    DiskNotDefinedError,
    InvalidPathError,
    StorageError,
    StorageFileNotFoundError,
    UnauthenticatedError,
)
from ..storage.resolver import resolve_disk_configs
from ..storage.service import Storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Files"])

STREAM_CHUNK_SIZE = 64 * 1024

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Path outside of the disk root"},
    403: {"model": ErrorResponse, "description": "Access rejected by the backend"},
    404: {"model": ErrorResponse, "description": "File or disk not found"},
    500: {"model": ErrorResponse, "description": "Internal server error"}
}


def error_status(error: Exception) -> int:
    """HTTP status code of a storage error."""
    if isinstance(error, (StorageFileNotFoundError, DiskNotDefinedError)):
        return 404
    if isinstance(error, UnauthenticatedError):
        return 403
    if isinstance(error, InvalidPathError):
        return 400
    return 500


def error_response(error: Exception) -> JSONResponse:
    status_code = error_status(error)
    code = getattr(error, "code", error.__class__.__name__)
    body = ErrorResponse(error=code, message=str(error))
    if status_code == 500:
        logger.error(f"Storage operation failed: {error}", exc_info=True)
    else:
        logger.info(f"Storage operation rejected ({status_code}): {error}")
    return JSONResponse(status_code=status_code, content=body.model_dump())


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


@router.get(
    "/disks",
    response_model=DiskListResponse,
    summary="List configured disks",
    description="Names and drivers of the configured disks with the active default"
)
async def list_disks(request: Request):
    storage = get_storage(request)
    disk_configs, _ = resolve_disk_configs(storage.settings)
    return DiskListResponse(
        default_disk=storage.name,
        disks=[
            DiskSummary(
                name=config.name,
                driver=config.driver_identifier,
                is_default=config.name == storage.name
            )
            for config in disk_configs
        ]
    )


@router.put(
    "/files/{path:path}",
    responses=ERROR_RESPONSES,
    summary="Upload a file",
    description="Store the uploaded file under the given path, optionally on another disk"
)
async def upload_file(
    request: Request,
    path: str,
    file: UploadFile = File(..., description="File content"),
    disk: Optional[str] = Query(None, description="Disk to store the file on (default disk when omitted)")
):
    """
    Upload a file through the put pipeline.

    Returns:
        The put result, including plugin outputs such as image formats
    """
    storage = get_storage(request)
    target = None
    try:
        target = storage.disk(disk) if disk else storage
        logger.info(f"Uploading {file.filename} to {target.name}:{path}")
        result = await target.put(file.file, path)
        return result.model_dump(mode="json")
    except StorageError as e:
        return error_response(e)
    finally:
        await file.close()
        if target is not None and target is not storage:
            await target.close()


@router.get(
    "/files/{path:path}",
    response_class=StreamingResponse,
    responses=ERROR_RESPONSES,
    summary="Download a file",
    description="Stream the content of a stored file"
)
async def download_file(request: Request, path: str):
    storage = get_storage(request)
    try:
        stream = await storage.get(path)
    except StorageError as e:
        return error_response(e)

    def iter_content():
        try:
            yield from iter(lambda: stream.read(STREAM_CHUNK_SIZE), b"")
        finally:
            stream.close()

    media_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
    return StreamingResponse(iter_content(), media_type=media_type)


@router.delete(
    "/files/{path:path}",
    response_model=SuccessResponse,
    responses=ERROR_RESPONSES,
    summary="Delete a file"
)
async def delete_file(request: Request, path: str):
    storage = get_storage(request)
    try:
        await storage.delete(path)
    except StorageError as e:
        return error_response(e)
    logger.info(f"Deleted {storage.name}:{path}")
    return SuccessResponse(message="File deleted", data={"path": path})


@router.get(
    "/stat/{path:path}",
    response_model=FileStat,
    responses=ERROR_RESPONSES,
    summary="Get file metadata",
    description="Existence, size in bytes, last modification time (epoch ms) and URL of a file"
)
async def stat_file(request: Request, path: str):
    storage = get_storage(request)
    try:
        if not await storage.exists(path):
            return FileStat(path=path, exists=False, url=storage.url(path))
        return FileStat(
            path=path,
            exists=True,
            size=await storage.size(path),
            last_modified=await storage.last_modified(path),
            url=storage.url(path)
        )
    except StorageError as e:
        return error_response(e)
