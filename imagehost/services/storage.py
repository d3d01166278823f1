from pathlib import Path
from typing import BinaryIO
from uuid import uuid4

from loguru import logger

CHUNK_SIZE = 64 * 1024


class SizeLimitExceeded(Exception):
    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"File exceeds {limit} bytes")


def generate_id() -> str:
    return uuid4().hex


def extension_of(original_name: str | None) -> str:
    """Final suffix of the client filename, case preserved; empty when there is none."""
    return Path(original_name or "").suffix


def stored_filename(original_name: str | None, file_id: str | None = None) -> str:
    return f"{file_id or generate_id()}{extension_of(original_name)}"


class ImageStore:
    """Flat directory of uploaded files addressed by their stored filename."""

    def __init__(self, root: Path):
        self.root = root

    def path_for(self, filename: str) -> Path:
        return self.root / filename

    def write(self, source: BinaryIO, filename: str, max_size: int) -> int:
        """Copy ``source`` into the store in chunks.

        Stops as soon as more than ``max_size`` bytes have been read; the
        partial file is removed before ``SizeLimitExceeded`` is raised.
        """
        destination = self.path_for(filename)
        written = 0
        target = destination.open("xb")
        try:
            with target:
                while chunk := source.read(CHUNK_SIZE):
                    written += len(chunk)
                    if written > max_size:
                        raise SizeLimitExceeded(max_size)
                    target.write(chunk)
        except BaseException:
            destination.unlink(missing_ok=True)
            raise
        logger.debug(
            "File saved filename={} destination={} size_bytes={}",
            filename,
            str(destination),
            written,
        )
        return written

    def delete(self, filename: str) -> None:
        path = self.path_for(filename)
        path.unlink()
        logger.debug("File deleted filename={} path={}", filename, str(path))
