"""
FastAPI app entry point aggregating per-domain routers under user_api/routes.
Keep as `uvicorn user_api.api:app`.
"""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .db import get_db_path
from .models import Envelope
from .services.user_svc import UserService

from .routes import base as base_routes
from .routes import users as users_routes
from .routes import logs as logs_routes

logger = logging.getLogger(__name__)


def create_app(db_path: str | None = None) -> FastAPI:
    app = FastAPI(title="user-crud-api", version=base_routes.APP_VERSION)
    app.state.user_service = UserService(db_path or get_db_path())

    @app.on_event("startup")
    def on_startup():
        # schema failure propagates and aborts startup
        svc: UserService = app.state.user_service
        logger.info("opening store at %s", svc.db_path)
        svc.ensure_schema()

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        headers = dict(exc.headers or {})
        message = str(exc.detail)
        path = request.url.path
        if path == users_routes.PREFIX or path.startswith(users_routes.PREFIX + "/"):
            # methods the users route never sees still answer like it
            headers.update(users_routes.CORS_HEADERS)
            if exc.status_code == 405:
                message = "method not allowed"
        env = Envelope(code=exc.status_code, message=message)
        return JSONResponse(status_code=exc.status_code, content=env.to_json(), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        env = Envelope(code=400, message="invalid request parameters")
        return JSONResponse(status_code=400, content=env.to_json())

    app.include_router(base_routes.router)
    app.include_router(users_routes.router)
    app.include_router(logs_routes.router)
    return app


app = create_app()
