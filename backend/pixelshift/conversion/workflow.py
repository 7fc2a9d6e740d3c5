"""Single-file conversion workflow: intake, convert, delivery and reset."""
import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

from pixelshift.conversion.codec import ImageCodec, PillowCodec, quality_for
from pixelshift.conversion.delivery import download_filename
from pixelshift.conversion.errors import (
    ConversionError,
    NoFileLoaded,
    ReadError,
    UnsupportedFormat,
    UnsupportedType,
)
from pixelshift.conversion.handles import PreviewHandleRegistry
from pixelshift.conversion.models import (
    ConvertedArtifact,
    ImageFormat,
    UploadedFile,
    WorkflowState,
    WorkflowStatus,
    is_accepted_media_type,
    normalize_media_type,
)

logger = logging.getLogger("pixelshift.workflow")


class ConversionWorkflow:
    """
    Holds one WorkflowState and moves it through
    idle -> ready -> converting -> converted, back to ready on failure and to
    idle on reset. Errors are recorded in state.error and raised.
    """

    def __init__(
        self,
        codec: Optional[ImageCodec] = None,
        handles: Optional[PreviewHandleRegistry] = None,
        preview_dir: Optional[Path] = None,
    ):
        self.codec: ImageCodec = codec or PillowCodec()
        self.handles = handles or PreviewHandleRegistry(preview_dir)
        self.state = WorkflowState()
        self._in_flight = False

    @property
    def is_converting(self) -> bool:
        return self._in_flight

    def _record(self, error: ConversionError) -> ConversionError:
        self.state.error = error.message
        return error

    def _inputs_changed(self) -> None:
        self.state.revision += 1
        self.state.artifact = None

    def select_file(self, filename: str, media_type: Optional[str], data: bytes) -> UploadedFile:
        """Load a new file, replacing the current one. Unsupported types leave state as it was."""
        state = self.state
        if not is_accepted_media_type(media_type):
            logger.warning("Rejected %s: unsupported type %r", filename, media_type)
            raise self._record(UnsupportedType((media_type or "").strip()))
        normalized = normalize_media_type(media_type)
        try:
            handle = self.handles.create(data, normalized)
        except OSError as e:
            logger.exception("Could not store upload %s: %s", filename, e)
            raise self._record(ReadError()) from e
        if state.file is not None:
            self.handles.release(state.file.handle)
        state.file = UploadedFile(filename=filename, media_type=normalized, size=len(data), handle=handle)
        self._inputs_changed()
        state.error = None
        state.status = WorkflowStatus.READY
        logger.info("Loaded %s (%s, %s bytes)", filename, normalized, len(data))
        return state.file

    def select_target(self, fmt: Union[str, ImageFormat]) -> ImageFormat:
        """Choose the output format. Any existing artifact is dropped when it changes."""
        state = self.state
        target = fmt if isinstance(fmt, ImageFormat) else ImageFormat.parse(fmt)
        if target is None:
            raise self._record(UnsupportedFormat(str(fmt)))
        if target == state.target:
            return target
        state.target = target
        self._inputs_changed()
        if state.status in (WorkflowStatus.CONVERTING, WorkflowStatus.CONVERTED):
            state.status = WorkflowStatus.READY
        logger.info("Target format set to %s", target.value)
        return target

    @staticmethod
    def _read(upload: UploadedFile) -> bytes:
        try:
            return upload.handle.path.read_bytes()
        except OSError as e:
            logger.error("Could not read %s from %s: %s", upload.filename, upload.handle.path, e)
            raise ReadError() from e

    async def convert(self) -> Optional[ConvertedArtifact]:
        """
        Convert the loaded file to the selected target.

        Returns None without doing anything if a conversion is already running,
        and None if the file or target changed before this one finished.
        """
        state = self.state
        if self._in_flight:
            logger.info("Conversion already in progress; ignoring request")
            return None
        if state.file is None:
            raise self._record(NoFileLoaded())

        upload = state.file
        target = state.target
        revision = state.revision
        self._in_flight = True
        state.status = WorkflowStatus.CONVERTING
        state.error = None
        state.artifact = None
        try:
            data = await asyncio.to_thread(self._read, upload)
            bitmap = await asyncio.to_thread(self.codec.decode, data, upload.media_type)
            surface = await asyncio.to_thread(self.codec.render, bitmap)
            encoded = await asyncio.to_thread(self.codec.encode, surface, target, quality_for(target))
        except asyncio.CancelledError:
            if state.revision == revision and state.status == WorkflowStatus.CONVERTING:
                state.status = WorkflowStatus.READY
            logger.warning("Conversion of %s cancelled", upload.filename)
            raise
        except Exception as e:
            if state.revision != revision:
                logger.info("Discarding failed conversion of %s; inputs changed", upload.filename)
                return None
            error = e if isinstance(e, ConversionError) else ConversionError()
            state.status = WorkflowStatus.READY
            self._record(error)
            logger.warning("Conversion of %s to %s failed: %s", upload.filename, target.value, e)
            if error is e:
                raise
            raise error from e
        finally:
            self._in_flight = False

        if state.revision != revision:
            logger.info("Discarding conversion of %s; inputs changed", upload.filename)
            return None
        artifact = ConvertedArtifact(
            format=target,
            data=encoded,
            width=surface.width,
            height=surface.height,
            filename=download_filename(upload.filename, target),
        )
        state.artifact = artifact
        state.status = WorkflowStatus.CONVERTED
        logger.info(
            "Converted %s -> %s (%sx%s, %s bytes)",
            upload.filename, artifact.filename, artifact.width, artifact.height, artifact.size,
        )
        return artifact

    def reset(self) -> None:
        """Release the preview handle and return to idle. Safe to call in any state."""
        state = self.state
        if state.file is not None:
            self.handles.release(state.file.handle)
        state.file = None
        self._inputs_changed()
        state.error = None
        state.status = WorkflowStatus.IDLE

    def close(self) -> None:
        self.reset()
        self.handles.release_all()


# Singleton
_workflow: Optional[ConversionWorkflow] = None


def get_workflow() -> ConversionWorkflow:
    global _workflow
    if _workflow is None:
        _workflow = ConversionWorkflow()
    return _workflow
