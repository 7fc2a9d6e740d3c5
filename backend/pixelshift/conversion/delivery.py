"""Download naming for converted images."""
from typing import Optional

from pixelshift.conversion.models import ImageFormat


def download_filename(original: Optional[str], fmt: ImageFormat) -> str:
    """
    Swap the last extension of original for the target's extension.

    'vacation.photo.tiff' -> 'vacation.photo.webp'. A name with no extension
    ('noext', '.bashrc') is kept whole as the base. Any directory part sent by
    the client is dropped.
    """
    name = (original or "").replace("\\", "/").rsplit("/", 1)[-1].strip()
    if not name:
        return f"download.{fmt.extension}"
    base, dot, _ = name.rpartition(".")
    if not dot or not base:
        base = name
    return f"{base}.{fmt.extension}"
