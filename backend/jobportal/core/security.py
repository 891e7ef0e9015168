"""
Security utilities for authentication.

Provides password hashing (bcrypt) and the JWT credential issuer/validator.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt
from jwt.exceptions import InvalidTokenError
from passlib.context import CryptContext

from jobportal.core.config import Settings, settings
from jobportal.core.errors import ConfigurationError, Unauthenticated
from jobportal.models.user import Role

logger = logging.getLogger(__name__)

# HS256 keys shorter than the digest size are rejected at startup
MIN_KEY_BYTES = 32

REQUIRED_CLAIMS = ["sub", "role", "iss", "aud", "iat", "exp"]

# Password hashing context using bcrypt
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a hashed password.

    Args:
        plain_password: The plain text password to verify
        hashed_password: The hashed password to compare against

    Returns:
        True if password matches, False otherwise
    """
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: The plain text password to hash

    Returns:
        The hashed password string
    """
    return pwd_context.hash(password)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Principal:
    """Identity and role extracted from a validated token."""

    user_id: int
    name: Optional[str]
    email: Optional[str]
    role: Role


@dataclass(frozen=True)
class IssuedToken:
    token: str
    issued_at: datetime
    expires_at: datetime


class TokenService:
    """
    Issues and validates signed, time-bounded credentials.

    Both directions are pure computation over the signing key and the
    injected clock; nothing here touches the database.
    """

    def __init__(
        self,
        secret_key: str,
        issuer: str,
        audience: str,
        ttl: timedelta = timedelta(hours=1),
        algorithm: str = "HS256",
        clock: Callable[[], datetime] = utcnow,
    ):
        if not secret_key or not secret_key.strip():
            raise ConfigurationError("JWT signing key is not configured.")
        if len(secret_key.encode("utf-8")) < MIN_KEY_BYTES:
            raise ConfigurationError(
                f"JWT signing key must be at least {MIN_KEY_BYTES} bytes long."
            )
        if not issuer or not audience:
            raise ConfigurationError("JWT issuer and audience must be configured.")
        if ttl <= timedelta(0):
            raise ConfigurationError("Token expiration must be positive.")

        self.secret_key = secret_key
        self.issuer = issuer
        self.audience = audience
        self.ttl = ttl
        self.algorithm = algorithm
        self.clock = clock

    @classmethod
    def from_settings(cls, config: Settings = settings, **kwargs) -> "TokenService":
        return cls(
            secret_key=config.JWT_SECRET_KEY,
            issuer=config.JWT_ISSUER,
            audience=config.JWT_AUDIENCE,
            ttl=timedelta(hours=config.TOKEN_EXPIRATION_HOURS or 1),
            algorithm=config.JWT_ALGORITHM,
            **kwargs,
        )

    def issue(
        self,
        user_id: int,
        name: Optional[str],
        email: Optional[str],
        role: Role,
    ) -> IssuedToken:
        """
        Create a signed access token for an already-verified user.

        Args:
            user_id: Subject identifier
            name: Display/user name claim
            email: Email claim
            role: Role claim, serialized as its string value

        Returns:
            The encoded token with its issue and expiry instants
        """
        issued_at = self.clock().replace(microsecond=0)
        expires_at = issued_at + self.ttl

        claims = {
            "sub": str(user_id),
            "name": name,
            "email": email,
            "role": Role(role).value,
            "iss": self.issuer,
            "aud": self.audience,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }

        token = jwt.encode(claims, self.secret_key, algorithm=self.algorithm)
        return IssuedToken(token=token, issued_at=issued_at, expires_at=expires_at)

    def decode(self, token: str) -> dict:
        """
        Verify signature, issuer, audience and lifetime, returning the claims.

        Raises:
            InvalidTokenError: for every kind of rejection
        """
        payload = jwt.decode(
            token,
            self.secret_key,
            algorithms=[self.algorithm],
            audience=self.audience,
            issuer=self.issuer,
            options={
                "require": REQUIRED_CLAIMS,
                # Lifetime is checked below against the injected clock
                "verify_exp": False,
                "verify_iat": False,
                "verify_nbf": False,
            },
        )

        now = self.clock().timestamp()
        if now > payload["exp"]:
            raise jwt.ExpiredSignatureError("Signature has expired")
        if now < payload["iat"]:
            raise jwt.ImmatureSignatureError("The token is not yet valid (iat)")
        return payload

    def validate(self, token: Optional[str]) -> Principal:
        """
        Validate a raw bearer token and extract the caller's principal.

        Every failure is reported as the same Unauthenticated outcome; the
        specific reason is only logged.
        """
        if not token:
            raise Unauthenticated("Not authenticated")

        try:
            payload = self.decode(token)
            principal = Principal(
                user_id=int(payload["sub"]),
                name=payload.get("name"),
                email=payload.get("email"),
                role=Role(payload["role"]),
            )
        except InvalidTokenError as e:
            logger.warning(f"Token rejected: {type(e).__name__}: {e}")
            raise Unauthenticated()
        except (TypeError, ValueError) as e:
            logger.warning(f"Token rejected: malformed claims: {e}")
            raise Unauthenticated()

        return principal
