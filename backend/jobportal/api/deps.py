"""
Shared FastAPI dependencies: database session, token service and the
authenticated principal.
"""

from functools import lru_cache
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from jobportal.core.authorization import authorize
from jobportal.core.config import settings
from jobportal.core.security import Principal, TokenService
from jobportal.db.session import get_db
from jobportal.models.user import Role

__all__ = ["get_db", "get_token_service", "get_current_principal", "require_roles"]

# auto_error is off so a missing header reaches the validator and gets the
# same 401 envelope as a bad token
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_PREFIX}/auth/login",
    auto_error=False,
)


@lru_cache
def get_token_service() -> TokenService:
    return TokenService.from_settings()


def get_current_principal(
    token: Optional[str] = Depends(oauth2_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> Principal:
    """
    Dependency to get the caller's principal from the bearer token.

    Raises Unauthenticated if the token is missing or invalid.
    """
    return tokens.validate(token)


def require_roles(*roles: Role):
    """Build a dependency that admits only the given roles."""
    allowed = frozenset(roles)

    def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        authorize(principal, allowed)
        return principal

    return dependency
