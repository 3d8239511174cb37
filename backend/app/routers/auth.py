from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Cookie, Depends, Header, Response
from pydantic import BaseModel, Field
from typing import Optional

from ..config import settings
from ..db import Database, get_db
from ..deps import SESSION_COOKIE_NAME, Actor, extract_session_token, audit_trail, get_actor
from ..errors import UnauthorizedError
from ..security import hash_password, hash_session_token, needs_rehash, new_session_token, verify_password

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginIn(BaseModel):
    email: str = Field(min_length=3, max_length=254)
    password: str = Field(min_length=8)


@router.post("/login", dependencies=[Depends(audit_trail("auth.login"))])
def login(data: LoginIn, response: Response, db: Database = Depends(get_db)):
    email = data.email.strip().lower()
    with db.transaction() as cur:
        cur.execute(
            """
            SELECT id, email, password_hash, rol, activo
            FROM usuarios
            WHERE lower(email) = %s
            """,
            (email,),
        )
        user = cur.fetchone()
        if not user or not user["activo"]:
            raise UnauthorizedError("invalid credentials")
        if not verify_password(data.password, user["password_hash"]):
            raise UnauthorizedError("invalid credentials")

        if needs_rehash(user["password_hash"]):
            cur.execute(
                "UPDATE usuarios SET password_hash = %s WHERE id = %s",
                (hash_password(data.password), user["id"]),
            )

        token = new_session_token()
        expires_at = datetime.now(timezone.utc) + timedelta(hours=settings.session_ttl_hours)
        cur.execute(
            """
            INSERT INTO sesiones (usuario_id, token_hash, expires_at, activo)
            VALUES (%s, %s, %s, true)
            """,
            (user["id"], hash_session_token(token), expires_at),
        )

    actor = Actor(id=str(user["id"]), email=user["email"], role=user["rol"])
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        httponly=True,
        samesite="lax",
        secure=not settings.expose_errors,
        max_age=settings.session_ttl_hours * 3600,
    )
    return {"token": token, "expires_at": expires_at, "user": actor.model_dump()}


@router.post("/logout")
def logout(
    response: Response,
    authorization: Optional[str] = Header(None),
    cookie_token: Optional[str] = Cookie(None, alias=SESSION_COOKIE_NAME),
    actor: Actor = Depends(get_actor),
    db: Database = Depends(get_db),
):
    token = extract_session_token(authorization, cookie_token)
    if token:
        with db.transaction() as cur:
            cur.execute(
                "UPDATE sesiones SET activo = false WHERE token_hash = %s AND usuario_id = %s",
                (hash_session_token(token), actor.id),
            )
    response.delete_cookie(SESSION_COOKIE_NAME)
    return {"ok": True}


@router.get("/me")
def me(actor: Actor = Depends(get_actor)):
    return {"user": actor.model_dump()}
