from datetime import datetime, timezone
from typing import Optional

from fastapi import Cookie, Depends, Header, Request
from pydantic import BaseModel, Field, model_validator

from .db import Database, get_db
from .errors import ForbiddenError, UnauthorizedError
from .logs import json_log
from .permissions import Role, permissions_for
from .security import hash_session_token


SESSION_COOKIE_NAME = "erp_session"


class Actor(BaseModel):
    id: str
    email: Optional[str] = None
    role: Role
    permissions: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _derive_permissions(self):
        # Permissions always follow the role; callers cannot widen them.
        self.permissions = sorted(permissions_for(self.role))
        return self


def extract_session_token(authorization: Optional[str], cookie_token: Optional[str]) -> Optional[str]:
    if authorization:
        parts = authorization.split(" ", 1)
        if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
            raise UnauthorizedError("invalid token format")
        return parts[1].strip()
    if cookie_token:
        return cookie_token
    return None


def load_actor(db: Database, token: str) -> Actor:
    row = db.fetch_one(
        """
        SELECT s.id AS session_id, s.expires_at, s.activo AS session_active,
               u.id AS user_id, u.email, u.rol, u.activo AS user_active
        FROM sesiones s
        JOIN usuarios u ON u.id = s.usuario_id
        WHERE s.token_hash = %s
        """,
        (hash_session_token(token),),
    )
    now = datetime.now(timezone.utc)
    if not row or not row["session_active"] or not row["user_active"] or row["expires_at"] < now:
        raise UnauthorizedError("invalid or expired token")
    return Actor(id=str(row["user_id"]), email=row["email"], role=row["rol"])


def get_optional_actor(
    authorization: Optional[str] = Header(None),
    cookie_token: Optional[str] = Cookie(None, alias=SESSION_COOKIE_NAME),
    db: Database = Depends(get_db),
) -> Optional[Actor]:
    token = extract_session_token(authorization, cookie_token)
    if token is None:
        return None
    return load_actor(db, token)


def get_actor(actor: Optional[Actor] = Depends(get_optional_actor)) -> Actor:
    if actor is None:
        raise UnauthorizedError("token not provided")
    return actor


def authorize(actor: Optional[Actor], permission: str) -> Actor:
    if actor is None:
        raise UnauthorizedError("user not authenticated")
    if permission not in actor.permissions:
        raise ForbiddenError("missing permission for this action")
    return actor


def require_permission(code: str):
    def _dep(actor: Optional[Actor] = Depends(get_optional_actor)) -> Actor:
        return authorize(actor, code)

    return _dep


def audit_trail(action: str):
    def _dep(request: Request, actor: Optional[Actor] = Depends(get_optional_actor)):
        json_log(
            "info",
            "audit",
            action=action,
            actor_id=actor.id if actor else "anon",
            actor_role=actor.role.value if actor else "anon",
            method=request.method,
            path=request.url.path,
            path_params=dict(request.path_params),
            query=dict(request.query_params),
        )

    return _dep
