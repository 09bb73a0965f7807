from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import HTMLResponse, JSONResponse

from ..models import Envelope, HealthStatus

router = APIRouter()

APP_NAME = "user-crud-api"
APP_VERSION = "0.1.0"

LANDING_PAGE = """<!DOCTYPE html>
<html>
<head>
    <title>User CRUD API Server</title>
    <meta charset="UTF-8">
</head>
<body>
    <h1>User CRUD API Server</h1>
    <h2>Endpoints:</h2>
    <ul>
        <li><strong>GET</strong> /api/users - list all users</li>
        <li><strong>GET</strong> /api/users/{id} - get one user</li>
        <li><strong>POST</strong> /api/users - create a user</li>
        <li><strong>PUT</strong> /api/users/{id} - update a user</li>
        <li><strong>DELETE</strong> /api/users/{id} - delete a user</li>
        <li><strong>GET</strong> /health - health check</li>
    </ul>
    <h2>User body:</h2>
    <pre>{
  "name": "Zhang San",
  "email": "zhangsan@example.com",
  "age": 25
}</pre>
</body>
</html>
"""


@router.get("/health")
def health():
    env = Envelope(code=200, message="service is running", data=HealthStatus.now())
    return JSONResponse(status_code=200, content=env.to_json())


@router.get("/version")
def version():
    return {"app": APP_NAME, "version": APP_VERSION}


@router.get("/", response_class=HTMLResponse)
def index():
    return LANDING_PAGE
