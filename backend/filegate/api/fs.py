from __future__ import annotations

import asyncio
import tempfile
from typing import BinaryIO, Iterator

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel
from starlette.background import BackgroundTask

from filegate.fs.router import fs_delete, fs_list, fs_read, fs_stat, fs_write
from filegate.storage.base import Storage


router = APIRouter()

READ_CHUNK_SIZE = 64 * 1024
# Uploads above this are spooled to a temp file instead of memory.
SPOOL_MEMORY_LIMIT = 1024 * 1024


class MessageResponse(BaseModel):
    message: str


def _storage(request: Request) -> Storage:
    return request.app.state.storage


def _require_path(path: str) -> str:
    if not path:
        raise HTTPException(status_code=400, detail="path is required")
    return path


def _iter_chunks(handle: BinaryIO) -> Iterator[bytes]:
    # Closing here covers client disconnects, where the background task is skipped.
    try:
        while chunk := handle.read(READ_CHUNK_SIZE):
            yield chunk
    finally:
        handle.close()


@router.get("/api/fs/list")
async def api_fs_list(request: Request, path: str = Query("")) -> dict:
    return await asyncio.to_thread(fs_list, _storage(request), path)


@router.get("/api/fs/stat")
async def api_fs_stat(request: Request, path: str = Query("")) -> dict:
    entry = await asyncio.to_thread(fs_stat, _storage(request), _require_path(path))
    return entry.to_dict()


@router.get("/api/fs/read")
async def api_fs_read(request: Request, path: str = Query("")) -> StreamingResponse:
    handle = await asyncio.to_thread(fs_read, _storage(request), _require_path(path))
    return StreamingResponse(
        _iter_chunks(handle),
        media_type="application/octet-stream",
        background=BackgroundTask(handle.close),
    )


@router.put("/api/fs/write", status_code=201)
async def api_fs_write(request: Request, path: str = Query("")) -> MessageResponse:
    path = _require_path(path)
    limit: int = request.app.state.config.max_upload_size

    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > limit:
        raise HTTPException(status_code=413, detail="file too large")

    with tempfile.SpooledTemporaryFile(max_size=SPOOL_MEMORY_LIMIT) as spool:
        size = 0
        async for chunk in request.stream():
            size += len(chunk)
            if size > limit:
                raise HTTPException(status_code=413, detail="file too large")
            spool.write(chunk)
        spool.seek(0)
        await asyncio.to_thread(fs_write, _storage(request), path, spool, size=size)
    return MessageResponse(message="file written")


@router.delete("/api/fs/delete")
async def api_fs_delete(request: Request, path: str = Query("")) -> MessageResponse:
    await asyncio.to_thread(fs_delete, _storage(request), _require_path(path))
    return MessageResponse(message="file deleted")
