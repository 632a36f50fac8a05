# tutorbill/api/routers/auth.py - Admin login
from fastapi import APIRouter, Depends, HTTPException, status
from typing import Dict, Any
import logging

from tutorbill.core.config import settings
from tutorbill.core.security import authenticate_admin, token_manager
from tutorbill.api.deps.auth import require_admin
from tutorbill.schemas.auth import LoginIn, LoginOut, MeOut

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/login", response_model=LoginOut)
async def login(credentials: LoginIn):
    """Authenticate the administrator and return an access token"""

    if not settings.ADMIN_PASSWORD_HASH:
        logger.error("Login attempted but ADMIN_PASSWORD_HASH is not configured")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin login is not configured"
        )

    if not authenticate_admin(credentials.email, credentials.password):
        logger.warning(f"Failed login attempt for {credentials.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password"
        )

    access_token = token_manager.create_access_token(subject=str(settings.ADMIN_EMAIL).lower())
    logger.info(f"Admin logged in: {credentials.email}")

    return LoginOut(
        access_token=access_token,
        token_type="bearer",
        expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60
    )


@router.get("/me", response_model=MeOut)
async def me(ctx: Dict[str, Any] = Depends(require_admin)):
    return MeOut(email=ctx["email"])
