from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import structlog

logger = structlog.get_logger(__name__)


class StorefrontError(Exception):
    """Base error carrying the HTTP status and JSON envelope of a failed request."""

    status_code = 500

    def __init__(self, message: str, **extra):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self) -> dict:
        return {"error": self.message, **self.extra}


class InvalidRequest(StorefrontError):
    status_code = 400


class NotFound(StorefrontError):
    status_code = 404


class Expired(StorefrontError):
    status_code = 410

    def __init__(self, message: str, expired_at: str):
        super().__init__(message, expired_at=expired_at)


class InvalidSignature(StorefrontError):
    status_code = 400


class UpstreamError(StorefrontError):
    status_code = 500

    def __init__(self, message: str, details: str = ""):
        super().__init__(message, details=details)


class ProcessingFailed(StorefrontError):
    status_code = 500


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StorefrontError)
    async def storefront_error_handler(request: Request, exc: StorefrontError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning("request_validation_failed", path=request.url.path)
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request", "details": jsonable_errors(exc)},
        )

    # Anything not translated above still leaves as a JSON envelope
    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception):
        logger.exception("unhandled_request_error", path=request.url.path)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "details": str(exc)},
        )


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may hold exception instances that JSONResponse cannot serialise
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
