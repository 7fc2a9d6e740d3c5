"""Conversion errors. Each carries the message shown to the user."""
from typing import Optional


class ConversionError(Exception):
    kind = "conversion_error"
    default_message = "The image could not be converted."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class UnsupportedType(ConversionError):
    kind = "unsupported_type"

    def __init__(self, media_type: str):
        self.media_type = media_type
        super().__init__(f"Unsupported file type: {media_type or 'unknown'}. Please upload a standard image file.")


class UnsupportedFormat(ConversionError):
    kind = "unsupported_format"

    def __init__(self, fmt: str):
        self.format = fmt
        super().__init__(f"Unsupported target format: {fmt or 'unknown'}.")


class NoFileLoaded(ConversionError):
    kind = "no_file_loaded"
    default_message = "No image loaded. Please upload an image first."


class ReadError(ConversionError):
    kind = "read_error"
    default_message = "Failed to read the file."


class DecodeError(ConversionError):
    kind = "decode_error"
    default_message = "The selected file could not be loaded as an image."


class RenderingUnavailable(ConversionError):
    kind = "rendering_unavailable"
    default_message = "Could not process the image. The drawing surface is not available."


class EncodeError(ConversionError):
    kind = "encode_error"
    default_message = "The image could not be encoded in the selected format."
