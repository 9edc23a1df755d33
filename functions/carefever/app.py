"""
FastAPI application entry point for the CareFever backend.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from carefever.config import Settings, get_settings
from carefever.errors import CareFeverError
from carefever.routes import ai_router, router, user_router

logger = logging.getLogger(__name__)


async def _handle_carefever_error(
    request: Request, exc: CareFeverError
) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.as_dict())


async def _handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    logger.info("Rejected %s %s: %s", request.method, request.url.path, errors)
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Invalid request", "error": errors},
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="CareFever API", version="1.0.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins(),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(CareFeverError, _handle_carefever_error)
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.include_router(user_router)
    app.include_router(ai_router)
    app.include_router(router)
    return app


app = create_app()
