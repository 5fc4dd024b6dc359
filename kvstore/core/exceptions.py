import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("kvstore")


def register_exception_handlers(app: FastAPI) -> None:
    """Answer verbs a route does not accept with a 405 and count them as errors."""

    @app.exception_handler(405)
    async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException):
        request.app.state.store.increment_error()
        logger.info(
            "event=request_rejected reason=method_not_allowed method=%s path=%s",
            request.method,
            request.url.path,
        )
        return JSONResponse(
            {"detail": "Method not allowed"},
            status_code=405,
            headers=getattr(exc, "headers", None),
        )
