"""Render domain errors as ``{"detail": ..., "error": ...}``."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from marketplace.domain.errors import DomainError


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.kind},
        headers=headers,
    )


def register(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
