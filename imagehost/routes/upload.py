from fastapi import APIRouter, Request
from loguru import logger
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException

from imagehost.errors import InternalFailure, UploadError
from imagehost.models.upload import ErrorResponse, UploadResponse
from imagehost.services.uploads import SUCCESS_MESSAGE, UploadHandler, public_url

router = APIRouter(prefix="/upload", tags=["upload"])

FILE_FIELD = "image"


@router.post(
    "",
    response_model=UploadResponse,
    responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def upload_image(request: Request) -> UploadResponse:
    """Accept a single file in the ``image`` field of a multipart form.

    The form is parsed here rather than through a ``File`` parameter so that
    malformed bodies and non-file ``image`` fields get the upload error body.
    """
    handler: UploadHandler = request.app.state.upload_handler
    try:
        form = await request.form(max_files=1)
    except Exception as exc:
        detail = exc.detail if isinstance(exc, HTTPException) else str(exc)
        logger.warning("Upload form unreadable error={}", detail)
        raise InternalFailure(detail=detail) from exc

    image = None
    try:
        field = form.get(FILE_FIELD)
        image = field if isinstance(field, UploadFile) else None
        logger.info(
            "Upload request filename={} content_type={}",
            image.filename if image else None,
            image.content_type if image else None,
        )
        saved = await handler.accept(image)
    except UploadError as exc:
        logger.warning(
            "Upload rejected kind={} status={} error={}",
            type(exc).__name__,
            exc.status_code,
            exc.message,
        )
        raise
    except Exception as exc:
        logger.exception("Upload failed filename={}", image.filename if image else None)
        raise InternalFailure(detail=str(exc)) from exc
    finally:
        await form.close()

    logger.info(
        "Upload stored file_id={} filename={} content_type={} size_bytes={} width={} height={} format={}",
        saved.id,
        saved.filename,
        saved.mime_type,
        saved.size_bytes,
        saved.width,
        saved.height,
        saved.format,
    )
    return UploadResponse(message=SUCCESS_MESSAGE, url=public_url(saved.filename))
