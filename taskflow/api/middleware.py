"""
Application-wide middleware and exception handlers.

Every failure leaves the API as ``{"success": false, "message": ...}``.
"""

import logging
import time
import traceback

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskflow.database.connection import SessionLocal
from taskflow.models.log import ErrorLog, LogLevel

logger = logging.getLogger(__name__)

def format_validation_errors(errors) -> str:
    """Join field-level validation errors into a single message"""
    error_details = []
    for error in errors:
        field = error["loc"][-1] if error["loc"] else "body"
        if error["type"] == "value_error":
            error_details.append(str(error.get("ctx", {}).get("error", error["msg"])))
        elif error["type"] == "missing":
            error_details.append(f"{field} is required")
        else:
            error_details.append(f"{field}: {error['msg']}")
    return ", ".join(error_details)

def record_error(request: Request, exc: Exception):
    """Persist an unhandled error; failures here are only logged"""
    identity = getattr(request.state, "identity", None)
    db = SessionLocal()
    try:
        db.add(ErrorLog(
            level=LogLevel.ERROR,
            message=str(exc) or exc.__class__.__name__,
            stack="".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
            user_id=identity.user_id if identity else None
        ))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to record error log: {str(e)}")
    finally:
        db.close()

def register_middleware(app: FastAPI) -> None:
    """Attach request logging and the JSON error handlers"""

    @app.middleware("http")
    async def request_logger(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = (time.perf_counter() - start) * 1000
        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(level, "%s %s %s - %.0fms", request.method, request.url.path, response.status_code, elapsed)
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": exc.detail},
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "message": format_validation_errors(exc.errors())}
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        await run_in_threadpool(record_error, request, exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "message": "Internal Server Error"}
        )
