"""
Authentication API endpoints.

Exchanges an email and password for a signed bearer token.
"""

import logging
import re
from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from jobportal.api.deps import get_db, get_token_service
from jobportal.core.errors import Unauthenticated
from jobportal.core.security import TokenService
from jobportal.services import users as credential_store

logger = logging.getLogger(__name__)

router = APIRouter()

EMAIL_PATTERN = r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$"


# ============== Pydantic Schemas ==============


class LoginRequest(BaseModel):
    """Schema for login credentials."""

    email: str
    password: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Validate email format."""
        if not re.match(EMAIL_PATTERN, v.strip()):
            raise ValueError("Invalid email format")
        return v.strip().lower()


class Token(BaseModel):
    """Schema for JWT token response."""

    token: str
    token_type: str = "bearer"
    expires_at: datetime


# ============== API Endpoints ==============


@router.post("/login", response_model=Token)
def login(
    credentials: LoginRequest,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    """
    Login and get a JWT access token.

    The token carries the user's id, name, email and role and expires
    after the configured lifetime.
    """
    user = credential_store.authenticate(db, credentials.email, credentials.password)
    if not user:
        logger.warning(f"Login: invalid login attempt for {credentials.email}")
        raise Unauthenticated("Invalid login attempt.")

    issued = tokens.issue(user.id, user.username, user.email, user.role)
    logger.info(f"Login: user {user.id} authenticated with role {user.role.value}")

    return Token(token=issued.token, expires_at=issued.expires_at)
