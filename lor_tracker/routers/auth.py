from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from lor_tracker.core.deps import Principal, get_current_principal, log_auth_event
from lor_tracker.core.errors import BadRequestError, ForbiddenError
from lor_tracker.core.security import issue_access_token
from lor_tracker.core.settings import settings
from lor_tracker.db.session import get_db
from lor_tracker.schemas.auth import LoginRequest, LoginResponse, MeResponse
from lor_tracker.services import users as user_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
) -> LoginResponse:
    user = user_service.authenticate(db, email=payload.email, password=payload.password)
    if not user:
        log_auth_event("login_failed", request=request, email=payload.email)
        raise BadRequestError("Invalid credentials", code="INVALID_CREDENTIALS")
    if not user.is_active:
        log_auth_event("login_inactive", request=request, user_id=user.id)
        raise ForbiddenError("Account is not active")

    user_service.record_login(db, user)
    db.commit()

    token = issue_access_token(user_id=user.id, role=user.role)
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        httponly=True,
        secure=settings.cookie_secure or settings.is_production,
        samesite="lax",
        max_age=settings.access_token_expire_minutes * 60,
    )
    log_auth_event("login_success", request=request, user_id=user.id)
    return LoginResponse(user_id=user.id, role=user.role, access_token=token)


@router.post("/logout", response_model=dict)
def logout(response: Response) -> dict:
    response.delete_cookie(settings.auth_cookie_name)
    return {"message": "Logged out"}


@router.get("/me", response_model=MeResponse)
def me(principal: Principal = Depends(get_current_principal)) -> MeResponse:
    return MeResponse(user_id=principal.user_id, email=principal.email, role=principal.role)
