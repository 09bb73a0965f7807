from __future__ import annotations

import logging
import re

from fastapi import APIRouter, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

from ..errors import InvalidInput, UserApiError
from ..models import MAX_SQLITE_INT, Envelope, Payload, UserCandidate
from ..services.user_svc import UserService

logger = logging.getLogger(__name__)

router = APIRouter()

PREFIX = "/api/users"
ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

_ID_RE = re.compile(r"[0-9]+")


def send_json(code: int, message: str, data: Payload = None) -> JSONResponse:
    env = Envelope(code=code, message=message, data=data)
    return JSONResponse(status_code=code, content=env.to_json(), headers=CORS_HEADERS)


def parse_id(path: str) -> int | None:
    """None for the collection, the id for `/{id}`; anything else is InvalidInput."""
    rest = path[len(PREFIX):] if path.startswith(PREFIX) else path
    if rest in ("", "/"):
        return None
    seg = rest[1:] if rest.startswith("/") else rest
    if not _ID_RE.fullmatch(seg):
        raise InvalidInput("invalid user id")
    user_id = int(seg)
    if user_id <= 0 or user_id > MAX_SQLITE_INT:
        raise InvalidInput("invalid user id")
    return user_id


async def read_candidate(request: Request) -> UserCandidate:
    raw = await request.body()
    try:
        candidate = UserCandidate.model_validate_json(raw)
    except ValidationError as e:
        raise InvalidInput("invalid request body") from e
    if candidate.problems():
        raise InvalidInput("name and email must not be empty and age must be greater than 0")
    return candidate


@router.api_route(PREFIX, methods=ALL_METHODS)
@router.api_route(PREFIX + "/{rest:path}", methods=ALL_METHODS)
async def api_users(request: Request):
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)

    svc: UserService = request.app.state.user_service
    try:
        return await _dispatch(request, svc)
    except UserApiError as e:
        return send_json(e.status_code, e.message)
    except Exception:
        logger.exception("unhandled error: %s %s", request.method, request.url.path)
        return send_json(500, "internal error")


async def _dispatch(request: Request, svc: UserService) -> Response:
    method = request.method
    if method not in ("GET", "POST", "PUT", "DELETE"):
        return send_json(405, "method not allowed")

    # raw scope path; request.url drops control characters such as %0A
    user_id = parse_id(request.scope["path"])

    if method == "GET":
        if user_id is None:
            return send_json(200, "list users ok", await run_in_threadpool(svc.list_users))
        return send_json(200, "get user ok", await run_in_threadpool(svc.get_user, user_id))

    if method == "POST":
        if user_id is not None:
            return send_json(405, "method not allowed")
        candidate = await read_candidate(request)
        user = await run_in_threadpool(svc.create_user, candidate, svc.new_log("CREATE_USER"))
        return send_json(201, "create user ok", user)

    # PUT and DELETE address a single user
    if user_id is None:
        raise InvalidInput("invalid user id")

    if method == "PUT":
        candidate = await read_candidate(request)
        user = await run_in_threadpool(svc.update_user, user_id, candidate, svc.new_log("UPDATE_USER"))
        return send_json(200, "update user ok", user)

    await run_in_threadpool(svc.delete_user, user_id, svc.new_log("DELETE_USER"))
    return send_json(200, "delete user ok")
