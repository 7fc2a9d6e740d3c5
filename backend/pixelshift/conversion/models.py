"""Workflow state and conversion models."""
import base64
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pixelshift.config import ACCEPTED_MEDIA_TYPES, DEFAULT_TARGET_FORMAT


class WorkflowStatus(str, Enum):
    IDLE = "idle"
    READY = "ready"
    CONVERTING = "converting"
    CONVERTED = "converted"


class ImageFormat(str, Enum):
    PNG = "png"
    JPEG = "jpeg"
    WEBP = "webp"
    GIF = "gif"

    @property
    def extension(self) -> str:
        return self.value

    @property
    def mime_type(self) -> str:
        return f"image/{self.value}"

    @property
    def pil_format(self) -> str:
        return self.value.upper()

    @classmethod
    def parse(cls, value: str) -> Optional["ImageFormat"]:
        """Lookup by name, case-insensitive. None for anything that is not a target."""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return None


# Declared media type -> Pillow plugin allowed to decode it
INPUT_PIL_FORMATS = {
    "image/png": "PNG",
    "image/jpeg": "JPEG",
    "image/webp": "WEBP",
    "image/gif": "GIF",
    "image/bmp": "BMP",
}


def normalize_media_type(media_type: Optional[str]) -> str:
    """'Image/PNG; charset=binary' -> 'image/png'."""
    return (media_type or "").split(";", 1)[0].strip().lower()


def is_accepted_media_type(media_type: Optional[str]) -> bool:
    return normalize_media_type(media_type) in ACCEPTED_MEDIA_TYPES


@dataclass(frozen=True)
class PreviewHandle:
    handle_id: str
    path: Path
    media_type: str


@dataclass(frozen=True)
class UploadedFile:
    filename: str
    media_type: str
    size: int  # bytes
    handle: PreviewHandle

    @property
    def size_kb(self) -> int:
        return round(self.size / 1024)


@dataclass
class DecodedBitmap:
    width: int
    height: int
    pixels: Any  # codec-specific surface (PIL.Image.Image for PillowCodec)

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)


@dataclass(frozen=True)
class ConvertedArtifact:
    format: ImageFormat
    data: bytes
    width: int
    height: int
    filename: str

    @property
    def mime_type(self) -> str:
        return self.format.mime_type

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def data_url(self) -> str:
        b64 = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{b64}"


class WorkflowState:
    """The single loaded file, its target and at most one artifact."""

    def __init__(self, target: ImageFormat = ImageFormat(DEFAULT_TARGET_FORMAT)):
        self.status = WorkflowStatus.IDLE
        self.file: Optional[UploadedFile] = None
        self.target = target
        self.artifact: Optional[ConvertedArtifact] = None
        self.error: Optional[str] = None
        self.revision = 0  # bumped on every input change
