"""Preview handles: scoped on-disk copies of uploaded bytes, released explicitly."""
import logging
import uuid
from pathlib import Path
from typing import Optional

from pixelshift.config import PREVIEW_DIR
from pixelshift.conversion.models import PreviewHandle

logger = logging.getLogger("pixelshift.handles")


class PreviewHandleRegistry:
    """Creates, resolves and releases preview handles. Each live handle owns one file."""

    def __init__(self, directory: Optional[Path] = None):
        self.directory = Path(directory or PREVIEW_DIR)
        self.directory.mkdir(parents=True, exist_ok=True)
        self._handles: dict[str, PreviewHandle] = {}

    def __len__(self) -> int:
        return len(self._handles)

    def __contains__(self, handle: PreviewHandle) -> bool:
        return self._handles.get(handle.handle_id) is handle

    def create(self, data: bytes, media_type: str) -> PreviewHandle:
        handle_id = uuid.uuid4().hex
        path = self.directory / handle_id
        path.write_bytes(data)
        handle = PreviewHandle(handle_id=handle_id, path=path, media_type=media_type)
        self._handles[handle_id] = handle
        logger.debug("Created preview handle %s (%s bytes)", handle_id, len(data))
        return handle

    def resolve(self, handle_id: str) -> Optional[PreviewHandle]:
        return self._handles.get(handle_id)

    def release(self, handle: Optional[PreviewHandle]) -> None:
        """Drop the handle and remove its file. Releasing twice is a no-op."""
        if handle is None or self._handles.pop(handle.handle_id, None) is None:
            return
        try:
            handle.path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove preview %s: %s", handle.path, e)
        logger.debug("Released preview handle %s", handle.handle_id)

    def release_all(self) -> None:
        for handle in list(self._handles.values()):
            self.release(handle)
