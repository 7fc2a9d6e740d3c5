"""API routes for loading, converting and downloading an image."""
import logging
from urllib.parse import quote

from fastapi import APIRouter, Body, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import FileResponse, Response

from pixelshift.config import (
    ACCEPTED_MEDIA_TYPES,
    DEFAULT_TARGET_FORMAT,
    MAX_IMAGE_SIZE_BYTES,
    TARGET_FORMATS,
)
from pixelshift.conversion.errors import (
    ConversionError,
    DecodeError,
    EncodeError,
    NoFileLoaded,
    UnsupportedFormat,
    UnsupportedType,
)
from pixelshift.conversion.workflow import ConversionWorkflow, get_workflow

logger = logging.getLogger("pixelshift.api")
router = APIRouter(prefix="/api", tags=["pixelshift"])


def _status_code_for(error: ConversionError) -> int:
    if isinstance(error, UnsupportedType):
        return 415
    if isinstance(error, NoFileLoaded):
        return 409
    if isinstance(error, (UnsupportedFormat, DecodeError, EncodeError)):
        return 422
    return 500


def _state_to_dict(workflow: ConversionWorkflow) -> dict:
    state = workflow.state
    out = {
        "status": state.status.value,
        "is_converting": workflow.is_converting,
        "target": state.target.value,
        "error": state.error,
        "file": None,
        "artifact": None,
    }
    if state.file is not None:
        out["file"] = {
            "filename": state.file.filename,
            "media_type": state.file.media_type,
            "size": state.file.size,
            "size_kb": state.file.size_kb,
            "preview_url": f"/api/file/preview/{state.file.handle.handle_id}",
        }
    if state.artifact is not None:
        out["artifact"] = {
            "format": state.artifact.format.value,
            "mime_type": state.artifact.mime_type,
            "filename": state.artifact.filename,
            "width": state.artifact.width,
            "height": state.artifact.height,
            "size": state.artifact.size,
            "download_url": "/api/artifact",
        }
    return out


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/formats")
def get_formats():
    return {
        "input": list(ACCEPTED_MEDIA_TYPES),
        "output": list(TARGET_FORMATS),
        "default_output": DEFAULT_TARGET_FORMAT,
    }


@router.get("/state")
def get_state(workflow: ConversionWorkflow = Depends(get_workflow)):
    return _state_to_dict(workflow)


@router.post("/file")
async def upload_file(
    file: UploadFile = File(...),
    workflow: ConversionWorkflow = Depends(get_workflow),
):
    """Load a single image, replacing any previous one."""
    max_mb = MAX_IMAGE_SIZE_BYTES // (1024 * 1024)
    chunks: list[bytes] = []
    total = 0
    try:
        while chunk := await file.read(1024 * 1024):
            total += len(chunk)
            if total > MAX_IMAGE_SIZE_BYTES:
                raise HTTPException(413, f"File too large (max {max_mb} MB)")
            chunks.append(chunk)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Upload failed: %s", e)
        raise HTTPException(500, "Upload failed")

    try:
        workflow.select_file(file.filename or "", file.content_type, b"".join(chunks))
    except ConversionError as e:
        raise HTTPException(_status_code_for(e), e.message)
    return _state_to_dict(workflow)


@router.get("/file/preview/{handle_id}")
def preview_file(handle_id: str, workflow: ConversionWorkflow = Depends(get_workflow)):
    """Serve the raw bytes of the loaded file while its handle is live."""
    handle = workflow.handles.resolve(handle_id)
    if handle is None or not handle.path.is_file():
        raise HTTPException(404, "Preview not found")
    return FileResponse(handle.path, media_type=handle.media_type)


@router.put("/target")
def set_target(
    format: str = Body(..., embed=True),
    workflow: ConversionWorkflow = Depends(get_workflow),
):
    try:
        workflow.select_target(format)
    except ConversionError as e:
        raise HTTPException(_status_code_for(e), e.message)
    return _state_to_dict(workflow)


@router.post("/convert")
async def convert(workflow: ConversionWorkflow = Depends(get_workflow)):
    """
    Convert the loaded file to the selected format. A second request while one
    runs is ignored; a result made stale by a newer file or target is discarded.
    """
    if workflow.is_converting:
        return {"started": False, "discarded": False, **_state_to_dict(workflow)}
    try:
        artifact = await workflow.convert()
    except ConversionError as e:
        raise HTTPException(_status_code_for(e), e.message)
    return {"started": True, "discarded": artifact is None, **_state_to_dict(workflow)}


@router.get("/artifact")
def download_artifact(
    inline: bool = Query(False, description="Serve for display instead of as an attachment"),
    workflow: ConversionWorkflow = Depends(get_workflow),
):
    artifact = workflow.state.artifact
    if artifact is None:
        raise HTTPException(404, "Nothing converted yet")
    disposition = "inline" if inline else "attachment"
    quoted = quote(artifact.filename)
    if quoted != artifact.filename:
        disposition = f"{disposition}; filename*=utf-8''{quoted}"
    else:
        disposition = f'{disposition}; filename="{artifact.filename}"'
    return Response(
        content=artifact.data,
        media_type=artifact.mime_type,
        headers={"Content-Disposition": disposition},
    )


@router.post("/reset")
def reset(workflow: ConversionWorkflow = Depends(get_workflow)):
    workflow.reset()
    return _state_to_dict(workflow)
