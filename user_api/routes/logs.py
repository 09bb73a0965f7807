from __future__ import annotations

from fastapi import APIRouter, Query, Request

from ..logs import search_logs

router = APIRouter()


@router.get("/api/logs/search")
def api_logs_search(
    request: Request,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=200),
    action: str | None = None,
    query: str | None = None,
):
    db_path = request.app.state.user_service.db_path
    total, items = search_logs(query, action, page, size, db_path=db_path)
    return {"total": total, "items": items}
