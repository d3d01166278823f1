import time
from uuid import uuid4

from fastapi import Request
from fastapi.responses import JSONResponse, Response
from loguru import logger
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from imagehost.errors import PayloadTooLarge


async def add_request_context(request: Request, call_next) -> Response:
    request_id = request.headers.get("x-request-id", str(uuid4()))
    bound_logger = logger.bind(request_id=request_id)
    start = time.perf_counter()
    bound_logger.info("Request start method={} path={}", request.method, request.url.path)
    with logger.contextualize(request_id=request_id):
        try:
            response = await call_next(request)
        except Exception:
            bound_logger.exception("Request failed method={} path={}", request.method, request.url.path)
            raise
    duration_ms = (time.perf_counter() - start) * 1000
    bound_logger.info(
        "Request finish method={} path={} status={} duration_ms={:.2f}",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
    )
    response.headers["X-Request-ID"] = request_id
    return response


class BodySizeLimitMiddleware:
    """Rejects upload bodies larger than ``max_body_size`` while they stream in.

    A declared ``Content-Length`` over the limit is answered with 413 before
    any body is read. Otherwise bytes are counted as they arrive; once the
    limit is crossed the app sees a disconnect and its response is replaced
    by the 413 error.
    """

    def __init__(self, app: ASGIApp, max_body_size: int, error: PayloadTooLarge, paths: tuple[str, ...] = ("/upload",)):
        self.app = app
        self.max_body_size = max_body_size
        self.error = error
        self.paths = paths

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["method"] != "POST" or scope["path"] not in self.paths:
            await self.app(scope, receive, send)
            return

        content_length = _content_length(scope)
        if content_length is not None and content_length > self.max_body_size:
            logger.warning(
                "Upload rejected at transport content_length={} limit={}",
                content_length,
                self.max_body_size,
            )
            await self._reject(scope, receive, send)
            return

        received = 0
        exceeded = False
        response_started = False

        async def limited_receive() -> Message:
            nonlocal received, exceeded
            if exceeded:
                return {"type": "http.disconnect"}
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_size:
                    exceeded = True
                    logger.warning(
                        "Upload rejected while streaming received={} limit={}",
                        received,
                        self.max_body_size,
                    )
                    return {"type": "http.disconnect"}
            return message

        async def guarded_send(message: Message) -> None:
            nonlocal response_started
            if exceeded:
                return
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, limited_receive, guarded_send)
        except Exception:
            if not exceeded:
                raise
        if exceeded and not response_started:
            await self._reject(scope, receive, send)

    async def _reject(self, scope: Scope, receive: Receive, send: Send) -> None:
        response = JSONResponse(status_code=self.error.status_code, content=self.error.to_body())
        await response(scope, receive, send)


def _content_length(scope: Scope) -> int | None:
    for name, value in scope["headers"]:
        if name == b"content-length":
            try:
                return int(value)
            except ValueError:
                return None
    return None
