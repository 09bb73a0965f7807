from __future__ import annotations

import logging
import sqlite3
from typing import Optional

from ..db import get_conn
from ..errors import StorageError, UserApiError
from ..logs import LogContext, ensure_log_schema
from ..models import User, UserCandidate
from ..repository import user_repo

logger = logging.getLogger(__name__)


class UserService:
    """User operations against one SQLite file, a connection per call."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    def ensure_schema(self):
        try:
            with get_conn(self.db_path) as conn:
                user_repo.ensure_schema(conn)
            ensure_log_schema(self.db_path)
        except sqlite3.Error as e:
            raise StorageError("failed to open store") from e
        logger.info("schema ready: %s", self.db_path)

    def new_log(self, action: str) -> LogContext:
        return LogContext(action, self.db_path)

    def list_users(self) -> list[User]:
        with get_conn(self.db_path) as conn:
            return user_repo.list_all(conn)

    def get_user(self, user_id: int) -> User:
        with get_conn(self.db_path) as conn:
            return user_repo.get_by_id(conn, user_id)

    def create_user(self, candidate: UserCandidate, log: Optional[LogContext] = None) -> User:
        if log:
            log.set_payload(candidate.model_dump())
        try:
            with get_conn(self.db_path) as conn:
                user = user_repo.create(conn, candidate)
        except UserApiError as e:
            _fail(log, e)
            raise
        if log:
            log.set_entity("user", user.id)
            log.set_after(user.model_dump(mode="json"))
            log.write("OK")
        return user

    def update_user(self, user_id: int, candidate: UserCandidate, log: Optional[LogContext] = None) -> User:
        if log:
            log.set_entity("user", user_id)
            log.set_payload(candidate.model_dump())
        try:
            with get_conn(self.db_path) as conn:
                user = user_repo.update(conn, user_id, candidate)
        except UserApiError as e:
            _fail(log, e)
            raise
        if log:
            log.set_after(user.model_dump(mode="json"))
            log.write("OK")
        return user

    def delete_user(self, user_id: int, log: Optional[LogContext] = None):
        if log:
            log.set_entity("user", user_id)
        try:
            with get_conn(self.db_path) as conn:
                user_repo.delete(conn, user_id)
        except UserApiError as e:
            _fail(log, e)
            raise
        if log:
            log.write("OK")


def _fail(log: Optional[LogContext], e: UserApiError):
    if e.__cause__ is not None:
        logger.warning("store failure: %s (%s)", e.message, e.__cause__)
    if log:
        log.write("ERROR", e.message)
