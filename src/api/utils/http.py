"""
HTTP Request Guards and Response Headers

Strict JSON body checks and no-cache headers for credential endpoints.
Bodies are read here rather than by FastAPI's body parameters, so the
CSRF check and the size cap run before any payload is buffered or parsed.
"""

from typing import Type, TypeVar

from fastapi import Depends, Request, Response, status
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError
from src.libs.result import Error
from src.api.error import ClientError
from config import ApplicationConfig

ModelT = TypeVar("ModelT", bound=BaseModel)

NO_CACHE_HEADERS = {
    "Cache-Control": "private, no-store, no-cache, must-revalidate",
    "Pragma": "no-cache",
    "Vary": "Cookie, Authorization, Origin",
    "X-Content-Type-Options": "nosniff",
    "Cross-Origin-Resource-Policy": "same-origin",
}

PAYLOAD_TOO_LARGE = Error("PAYLOAD_TOO_LARGE", "Payload too large")


async def no_cache(response: Response):
    """Mark a successful response as uncacheable"""
    response.headers.update(NO_CACHE_HEADERS)


def _too_large() -> ClientError:
    return ClientError(PAYLOAD_TOO_LARGE, status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE)


async def require_json_body(request: Request) -> bytes:
    """
    Read a JSON body of at most MAX_BODY_BYTES.

    The stream is consumed chunk by chunk and abandoned as soon as the cap
    is crossed, so oversized bodies are never held in full.

    Raises:
        ClientError: 415 for a non-JSON content type, 413 for an oversized body
    """
    content_type = request.headers.get("content-type", "")
    if "application/json" not in content_type.lower():
        raise ClientError(
            Error("UNSUPPORTED_MEDIA_TYPE", "Unsupported media type"),
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
        )

    max_bytes = ApplicationConfig.MAX_BODY_BYTES
    content_length = request.headers.get("content-length")
    if content_length is not None:
        try:
            declared = int(content_length)
        except ValueError:
            raise ClientError(Error("INVALID_REQUEST", "Invalid request body"))
        if declared > max_bytes:
            raise _too_large()

    # Chunked bodies carry no content-length
    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > max_bytes:
            raise _too_large()
    return bytes(body)


def json_body(model: Type[ModelT]):
    """
    Build a dependency that validates the guarded body against ``model``.

    Malformed JSON and field errors surface as RequestValidationError, so
    they share the 400 VALIDATION_ERROR response with every other route.
    """

    async def parse(body: bytes = Depends(require_json_body)) -> ModelT:
        try:
            return model.model_validate_json(body)
        except ValidationError as exc:
            raise RequestValidationError(exc.errors(include_url=False))

    return parse
