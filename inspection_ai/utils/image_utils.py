"""
Image helpers
"""
import base64
import binascii
import io
from typing import List, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from inspection_ai.core.exceptions import ImageValidationError
from inspection_ai.core.enums import ImageFormat


def decode_base64_image(base64_string: str) -> bytes:
    """
    Decode a base64 string (optionally a data URL) into bytes

    Args:
        base64_string: Image as base64

    Returns:
        Decoded image bytes

    Raises:
        ImageValidationError: If the string cannot be decoded
    """
    if "base64," in base64_string:
        base64_string = base64_string.split("base64,", 1)[1]

    try:
        image_bytes = base64.b64decode(base64_string, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageValidationError(
            f"Failed to decode base64 image: {str(e)}",
            details={"error": str(e)}
        )

    if not image_bytes:
        raise ImageValidationError("Decoded image is empty")

    return image_bytes


def encode_image_base64(image_bytes: bytes) -> str:
    """Encode raw image bytes for the inference payload"""
    return base64.b64encode(image_bytes).decode("ascii")


def validate_image_format(
    image_bytes: bytes,
    allowed_formats: Optional[List[str]] = None
) -> ImageFormat:
    """
    Check that the image is in a supported format

    Args:
        image_bytes: Image bytes
        allowed_formats: Further restrict the accepted formats (lower-case names)

    Returns:
        Detected image format

    Raises:
        ImageValidationError: If the format is not supported
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            format_lower = img.format.lower() if img.format else "unknown"
    except (UnidentifiedImageError, OSError) as e:
        raise ImageValidationError(
            f"Failed to validate image format: {str(e)}",
            details={"error": str(e)}
        )

    supported = [f.value for f in ImageFormat]
    if allowed_formats is not None:
        supported = [f for f in supported if f in allowed_formats]

    if format_lower not in supported:
        raise ImageValidationError(
            f"Unsupported image format: {format_lower}",
            details={
                "format": format_lower,
                "supported_formats": supported
            }
        )

    return ImageFormat(format_lower)


def validate_image_size(image_bytes: bytes, max_size_mb: int = 10) -> None:
    """
    Check the image size

    Args:
        image_bytes: Image bytes
        max_size_mb: Maximum size in megabytes

    Raises:
        ImageValidationError: If the size is exceeded
    """
    size_mb = len(image_bytes) / (1024 * 1024)

    if size_mb > max_size_mb:
        raise ImageValidationError(
            f"Image size {size_mb:.2f}MB exceeds maximum {max_size_mb}MB",
            details={
                "size_mb": round(size_mb, 2),
                "max_size_mb": max_size_mb
            }
        )


def get_image_dimensions(image_bytes: bytes) -> Tuple[int, int]:
    """
    Read the image dimensions without decoding pixel data

    Args:
        image_bytes: Image bytes

    Returns:
        Tuple (width, height), (0, 0) if the image cannot be read
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            return img.size
    except (UnidentifiedImageError, OSError):
        return (0, 0)
