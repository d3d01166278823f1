from urllib.parse import quote

from loguru import logger
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from imagehost.config import Settings
from imagehost.errors import InternalFailure, InvalidImage, MissingFile, PayloadTooLarge
from imagehost.models.upload import UploadedImage
from imagehost.services.storage import ImageStore, SizeLimitExceeded, extension_of, generate_id, stored_filename
from imagehost.services.validation import inspect_image, validate_mime_type

SUCCESS_MESSAGE = "Image uploaded successfully"
PUBLIC_PREFIX = "/images"


class UploadHandler:
    """Validates one uploaded file, stores it and confirms it decodes as an image.

    Only files that pass every check remain in the store. A file rejected
    after it was written is deleted before the error propagates.
    """

    def __init__(self, settings: Settings, store: ImageStore | None = None):
        self.settings = settings
        self.store = store or ImageStore(settings.upload_path)

    async def accept(self, upload: UploadFile | None) -> UploadedImage:
        if upload is None:
            raise MissingFile()

        validate_mime_type(upload.content_type, self.settings.allowed_mime_types)

        file_id = generate_id()
        extension = extension_of(upload.filename)
        filename = stored_filename(upload.filename, file_id)

        try:
            size_bytes = await run_in_threadpool(
                self.store.write, upload.file, filename, self.settings.max_file_size
            )
        except SizeLimitExceeded as exc:
            raise PayloadTooLarge.for_limit(self.settings.max_file_size_mb) from exc

        path = self.store.path_for(filename)
        try:
            info = await run_in_threadpool(inspect_image, path)
        except InvalidImage:
            await self._discard(filename)
            raise
        except Exception as exc:
            await self._discard(filename)
            raise InternalFailure(detail=str(exc)) from exc

        return UploadedImage(
            id=file_id,
            extension=extension,
            filename=filename,
            original_filename=upload.filename or filename,
            stored_path=str(path),
            mime_type=upload.content_type or "application/octet-stream",
            size_bytes=size_bytes,
            width=info.width,
            height=info.height,
            format=info.format,
        )

    async def _discard(self, filename: str) -> None:
        try:
            await run_in_threadpool(self.store.delete, filename)
        except OSError as exc:
            logger.exception("Failed to delete rejected upload filename={}", filename)
            raise InternalFailure(detail=f"Could not remove rejected file: {exc}") from exc


def public_url(filename: str) -> str:
    return f"{PUBLIC_PREFIX}/{quote(filename)}"
