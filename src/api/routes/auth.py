import logging
from datetime import timedelta
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel

from src.adapters.sqlite.repos import SQLiteUserRepo
from src.api.auth_utils import (
    COOKIE_NAME,
    create_access_token,
    set_session_cookie,
    verify_password,
)
from src.api.deps import (
    client_ip,
    get_clock,
    get_current_user,
    get_policy,
    get_rate_limiter,
    get_rules,
    get_user_repo,
)
from src.app_shell.rate_limit import RateLimiter
from src.core.ports.email import mask_email
from src.domain.entities import User
from src.domain.policy import PolicyEngine
from src.rules.models import Rules

logger = logging.getLogger(__name__)

router = APIRouter()


class Token(BaseModel):
    access_token: str
    token_type: str


@router.post("/login", response_model=Token)
async def login_for_access_token(
    request: Request,
    response: Response,
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    rules: Rules = Depends(get_rules),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> Token:
    """Authenticate an admin user and return an access token."""
    ip = client_ip(request)
    if not limiter.check_login(ip):
        wait = limiter.retry_after(f"login:{ip}", rules.rate_limits.login.window_seconds)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many login attempts. Try again later.",
            headers={"Retry-After": str(wait)},
        )

    email = form_data.username
    user = user_repo.get_by_email(email)
    if not user or not verify_password(form_data.password, user.password_hash):
        logger.warning(f"Failed admin login for {mask_email(email)}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if user.status != "active":
        raise HTTPException(status_code=400, detail="User account is inactive")

    sessions = rules.auth.sessions
    access_token = create_access_token(
        data={"sub": str(user.id)},
        expires_delta=timedelta(minutes=sessions.ttl_minutes),
        now_utc=get_clock().now_utc(),
    )

    set_session_cookie(
        response, COOKIE_NAME, access_token, sessions.cookie, sessions.ttl_minutes * 60
    )
    logger.info(f"Admin login {mask_email(user.email)}")

    return Token(access_token=access_token, token_type="bearer")


@router.post("/logout")
def logout(response: Response) -> dict[str, str]:
    """Log out user by clearing cookie."""
    response.delete_cookie(key=COOKIE_NAME)
    return {"status": "success"}


@router.get("/me")
def read_users_me(
    current_user: User = Depends(get_current_user),
    policy: PolicyEngine = Depends(get_policy),
) -> dict[str, Any]:
    """Get current user info."""
    return {
        "id": str(current_user.id),
        "email": current_user.email,
        "display_name": current_user.display_name,
        "roles": current_user.roles,
        "permissions": policy.permissions_for(current_user.roles),
    }
