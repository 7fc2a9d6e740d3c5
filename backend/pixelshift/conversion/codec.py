"""Decode / render / encode boundary. PillowCodec is the default implementation."""
import io
import logging
from typing import Optional, Protocol

from PIL import Image, UnidentifiedImageError

from pixelshift.config import JPEG_QUALITY
from pixelshift.conversion.errors import DecodeError, EncodeError, RenderingUnavailable
from pixelshift.conversion.models import INPUT_PIL_FORMATS, DecodedBitmap, ImageFormat, normalize_media_type

logger = logging.getLogger("pixelshift.codec")


class ImageCodec(Protocol):
    """Pluggable imaging backend used by the workflow."""

    def decode(self, data: bytes, media_type: Optional[str] = None) -> DecodedBitmap: ...

    def render(self, bitmap: DecodedBitmap) -> DecodedBitmap: ...

    def encode(self, bitmap: DecodedBitmap, fmt: ImageFormat, quality: Optional[int] = None) -> bytes: ...


def quality_for(fmt: ImageFormat) -> Optional[int]:
    """JPEG gets the fixed quality; every other target uses its encoder default."""
    return JPEG_QUALITY if fmt == ImageFormat.JPEG else None


class PillowCodec:
    """Decode and re-encode with Pillow, mirroring what a browser canvas does."""

    def decode(self, data: bytes, media_type: Optional[str] = None) -> DecodedBitmap:
        """
        Decode bytes into a bitmap. When media_type is given only the matching
        Pillow plugin may decode it, so a PNG declared as image/jpeg fails.
        Animated images yield their first frame.
        """
        formats = None
        if media_type:
            pil_format = INPUT_PIL_FORMATS.get(normalize_media_type(media_type))
            if pil_format:
                formats = [pil_format]
        try:
            img = Image.open(io.BytesIO(data), formats=formats)
            img.load()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
            logger.warning("Decode failed (declared %s, %s bytes): %s", media_type, len(data), e)
            raise DecodeError() from e
        return DecodedBitmap(width=img.width, height=img.height, pixels=img)

    def render(self, bitmap: DecodedBitmap) -> DecodedBitmap:
        """Draw the bitmap at native size onto a fresh transparent RGBA surface."""
        try:
            surface = Image.new("RGBA", (bitmap.width, bitmap.height), (0, 0, 0, 0))
        except (MemoryError, ValueError) as e:
            logger.error("Could not allocate %sx%s surface: %s", bitmap.width, bitmap.height, e)
            raise RenderingUnavailable() from e
        src = bitmap.pixels
        if src.mode != "RGBA":
            src = src.convert("RGBA")
        surface.paste(src, (0, 0))
        return DecodedBitmap(width=surface.width, height=surface.height, pixels=surface)

    def encode(self, bitmap: DecodedBitmap, fmt: ImageFormat, quality: Optional[int] = None) -> bytes:
        out_img = bitmap.pixels
        save_kw: dict = {"format": fmt.pil_format}
        if fmt == ImageFormat.JPEG:
            # No alpha in JPEG: transparent pixels end up black, as with canvas export
            if out_img.mode in ("RGBA", "LA", "P"):
                rgba = out_img.convert("RGBA")
                flat = Image.new("RGB", rgba.size, (0, 0, 0))
                flat.paste(rgba, mask=rgba.getchannel("A"))
                out_img = flat
            elif out_img.mode != "RGB":
                out_img = out_img.convert("RGB")
            save_kw["quality"] = quality if quality is not None else JPEG_QUALITY
        elif fmt == ImageFormat.WEBP and quality is not None:
            save_kw["quality"] = quality
        buf = io.BytesIO()
        try:
            out_img.save(buf, **save_kw)
        except (OSError, ValueError, KeyError) as e:
            logger.exception("Encode to %s failed: %s", fmt.value, e)
            raise EncodeError() from e
        return buf.getvalue()
