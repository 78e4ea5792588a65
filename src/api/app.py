from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import SQLModel
from .error import ClientError, ServerError
from .utils.http import NO_CACHE_HEADERS
import logging

logger = logging.getLogger(__name__)


async def handle_client_error(request: Request, exc: ClientError):
    error_dict = {"code": exc.base_error.code, "message": exc.base_error.message}
    logger.warning(f"Client error: {error_dict}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": error_dict, **exc.extra},
        headers={**NO_CACHE_HEADERS, **exc.headers},
    )


async def handle_server_error(request: Request, exc: ServerError):
    error_dict = {"code": exc.base_error.code, "message": "Internal server error"}
    logger.error(f"Server error: {exc.base_error.code}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": error_dict},
        headers=NO_CACHE_HEADERS,
    )


async def handle_validation_error(request: Request, exc: RequestValidationError):
    message = "Invalid request body"
    for error in exc.errors():
        if error.get("type") == "value_error":
            message = str(error.get("msg", message)).removeprefix("Value error, ")
            break
    error_dict = {"code": "VALIDATION_ERROR", "message": message}
    logger.warning(f"Validation error: {error_dict}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": error_dict},
        headers=NO_CACHE_HEADERS,
    )


async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": {"code": "INTERNAL_ERROR", "message": "Internal server error"}},
        headers=NO_CACHE_HEADERS,
    )


def create_app(ApplicationConfig) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        from src.depends import engine, notification_sender

        if ApplicationConfig.ENVIRONMENT == "development":
            async with engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)
        yield
        if hasattr(notification_sender, "aclose"):
            await notification_sender.aclose()
        await engine.dispose()

    app = FastAPI(title="Password Reset API", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ApplicationConfig.CORS_ORIGINS,
        allow_credentials=ApplicationConfig.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from src.api.routes import health_check, password_reset

    app.include_router(health_check.router, tags=["Health"])
    app.include_router(password_reset.router, tags=["Password Reset"])

    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(ServerError, handle_server_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    return app
