import struct
from pathlib import Path
from typing import Iterable, NamedTuple

from loguru import logger
from PIL import Image

from imagehost.errors import InvalidImage, UnsupportedType


class ImageInfo(NamedTuple):
    width: int
    height: int
    format: str | None


def normalize_mime_type(content_type: str | None) -> str:
    """Bare lowercase type/subtype: parameters such as ``; charset=binary`` are dropped."""
    return (content_type or "").split(";", 1)[0].strip().lower()


def validate_mime_type(content_type: str | None, allowed: Iterable[str]) -> None:
    if normalize_mime_type(content_type) not in {normalize_mime_type(t) for t in allowed}:
        raise UnsupportedType()


def inspect_image(path: Path) -> ImageInfo:
    """Decode the file at ``path`` and return its basic metadata.

    ``verify`` leaves the image unusable, so the file is opened a second time
    to read size and format. Blocking; run it off the event loop.
    """
    try:
        with Image.open(path) as image:
            image.verify()
        with Image.open(path) as image:
            return ImageInfo(width=image.width, height=image.height, format=image.format)
    except (OSError, SyntaxError, ValueError, struct.error, Image.DecompressionBombError) as exc:
        logger.debug("Image decode failed path={} error={}", str(path), repr(exc))
        raise InvalidImage() from exc
