from __future__ import annotations
"""Operator login: a single configured account, token handed out as a cookie."""

import secrets

from fastapi import APIRouter, Request, Response

from pocketrot.api.deps import SESSION_COOKIE, is_operator
from pocketrot.config import get_settings
from pocketrot.errors import ConfigurationError, Unauthorized
from pocketrot.schemas.auth import LoginRequest, LoginResponse, SessionStatus

router = APIRouter()
settings = get_settings()


def _check(given: str, expected: str) -> bool:
    return secrets.compare_digest(given.encode(), expected.encode())


@router.post("/login", response_model=LoginResponse)
async def login(data: LoginRequest, response: Response):
    if not (settings.OPERATOR_EMAIL and settings.OPERATOR_PASSWORD and settings.OPERATOR_TOKEN):
        raise ConfigurationError("Operator credentials are not configured")

    # Evaluate both comparisons so timing doesn't reveal which one failed
    email_ok = _check(data.email.strip().lower(), settings.OPERATOR_EMAIL.strip().lower())
    password_ok = _check(data.password, settings.OPERATOR_PASSWORD)
    if not (email_ok and password_ok):
        raise Unauthorized("Invalid credentials")

    response.set_cookie(
        SESSION_COOKIE,
        settings.OPERATOR_TOKEN,
        httponly=True,
        samesite="lax",
        secure=not settings.DEBUG,
        max_age=60 * 60 * 24 * 30,
    )
    return LoginResponse(success=True, token=settings.OPERATOR_TOKEN)


@router.post("/logout")
async def logout(response: Response):
    response.delete_cookie(SESSION_COOKIE)
    return {"success": True}


@router.get("/session", response_model=SessionStatus)
async def session(request: Request):
    return SessionStatus(authenticated=is_operator(request))
