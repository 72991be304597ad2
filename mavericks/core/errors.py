from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class MavericksError(Exception):
    """Base class for platform errors"""
    status_code = 500


class NotFoundError(MavericksError):
    status_code = 404


class PermissionDeniedError(MavericksError):
    status_code = 403


class ContentGenerationError(MavericksError):
    """Content provider failed or returned output we could not parse"""
    status_code = 502


class StoreError(MavericksError):
    """Document store failure"""
    status_code = 503


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(MavericksError)
    async def handle_mavericks_error(request: Request, exc: MavericksError):
        return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})
