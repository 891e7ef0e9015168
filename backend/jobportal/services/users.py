"""
Credential store.

Creates, finds, updates and deletes users and assigns their role. Admin-only
operations and self-service profile updates both pass through the shared
authorization policy.
"""

import logging
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from jobportal.core.authorization import ADMIN_ONLY, ANY_ROLE, authorize
from jobportal.core.errors import FieldError, NotFound, ValidationFailed
from jobportal.core.security import Principal, get_password_hash, verify_password
from jobportal.models import Role, User

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("name", "surname", "address", "birthdate", "gender", "phone_number")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """Get a user by email address."""
    return db.query(User).filter(User.email == normalize_email(email)).first()


def get_user_by_username(db: Session, username: str) -> Optional[User]:
    return db.query(User).filter(User.username == username).first()


def find_user(db: Session, user_id: int) -> Optional[User]:
    return db.get(User, user_id)


def authenticate(db: Session, email: str, password: str) -> Optional[User]:
    """Authenticate a user by email and password."""
    user = get_user_by_email(db, email)
    if not user:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


def _uniqueness_errors(
    db: Session,
    email: Optional[str],
    username: Optional[str],
    exclude_id: Optional[int] = None,
) -> list[FieldError]:
    errors = []

    if email:
        existing = get_user_by_email(db, email)
        if existing and existing.id != exclude_id:
            errors.append(FieldError("email", f"Email '{email}' is already taken."))

    if username:
        existing = get_user_by_username(db, username)
        if existing and existing.id != exclude_id:
            errors.append(FieldError("username", f"Username '{username}' is already taken."))

    return errors


def _commit_user(db: Session, user: User) -> User:
    try:
        db.commit()
    except IntegrityError:
        # A concurrent request claimed the email or username first
        db.rollback()
        raise ValidationFailed(
            _uniqueness_errors(db, user.email, user.username, exclude_id=user.id)
            or [FieldError("email", "Email or username is already taken.")]
        )
    db.refresh(user)
    return user


def create_user(
    db: Session,
    *,
    email: str,
    username: str,
    password: str,
    role: Role,
    **profile: Any,
) -> User:
    """
    Persist a new user with a hashed password and an explicit role.

    Raises:
        ValidationFailed: If the email or username is already taken
    """
    errors = _uniqueness_errors(db, email, username)
    if errors:
        raise ValidationFailed(errors)

    user = User(
        email=normalize_email(email),
        username=username,
        hashed_password=get_password_hash(password),
        role=Role(role),
        **{key: profile.get(key) for key in PROFILE_FIELDS},
    )
    db.add(user)
    return _commit_user(db, user)


def register_user(db: Session, fields: dict[str, Any]) -> User:
    """Self-registration. Always assigns the Applicant role."""
    errors = []
    if fields.get("password") != fields.get("confirm_password"):
        errors.append(
            FieldError(
                "confirm_password",
                "The password and confirmation password do not match.",
            )
        )
    errors.extend(_uniqueness_errors(db, fields.get("email"), fields.get("username")))
    if errors:
        logger.warning(f"Register: rejected fields {[e.field for e in errors]}")
        raise ValidationFailed(errors)

    user = create_user(
        db,
        email=fields["email"],
        username=fields["username"],
        password=fields["password"],
        role=Role.APPLICANT,
        **{key: fields.get(key) for key in PROFILE_FIELDS},
    )
    logger.info(f"Register: user {user.id} registered with role {Role.APPLICANT.value}")
    return user


def provision_user(db: Session, principal: Principal, fields: dict[str, Any]) -> User:
    """Admin creates a user with an explicit role."""
    authorize(principal, ADMIN_ONLY)

    user = create_user(
        db,
        email=fields["email"],
        username=fields["username"],
        password=fields["password"],
        role=fields["role"],
        **{key: fields.get(key) for key in PROFILE_FIELDS},
    )
    logger.info(
        f"AddUser: admin {principal.user_id} created user {user.id} "
        f"with role {user.role.value}"
    )
    return user


def list_users(db: Session, principal: Principal) -> list[User]:
    authorize(principal, ADMIN_ONLY)
    return db.query(User).order_by(User.id).all()


def get_user(db: Session, principal: Principal, user_id: int) -> User:
    authorize(principal, ADMIN_ONLY)
    user = find_user(db, user_id)
    if user is None:
        logger.warning(f"GetUser: user {user_id} not found")
        raise NotFound("User not found.")
    return user


def _apply_changes(db: Session, user: User, fields: dict[str, Any]) -> None:
    errors = _uniqueness_errors(
        db, fields.get("email"), fields.get("username"), exclude_id=user.id
    )
    if errors:
        raise ValidationFailed(errors)

    if fields.get("email"):
        user.email = normalize_email(fields["email"])
    if fields.get("username"):
        user.username = fields["username"]
    for key in PROFILE_FIELDS:
        if key in fields:
            setattr(user, key, fields[key])


def update_user(
    db: Session, principal: Principal, user_id: int, fields: dict[str, Any]
) -> User:
    """Admin update, including role reassignment."""
    user = get_user(db, principal, user_id)

    _apply_changes(db, user, fields)
    if fields.get("role") is not None:
        user.role = Role(fields["role"])

    user = _commit_user(db, user)
    logger.info(f"UpdateUser: admin {principal.user_id} updated user {user_id}")
    return user


def get_profile(db: Session, principal: Principal) -> User:
    authorize(principal, ANY_ROLE)
    user = find_user(db, principal.user_id)
    if user is None:
        logger.error(f"GetMyProfile: authenticated user {principal.user_id} not found")
        raise NotFound("Authenticated user not found.")
    return user


def update_profile(db: Session, principal: Principal, fields: dict[str, Any]) -> User:
    """Self-service update. The role is never changed here."""
    user = get_profile(db, principal)
    authorize(principal, ANY_ROLE, owner_id=user.id)

    _apply_changes(db, user, fields)
    if "image" in fields:
        user.image = fields["image"]

    user = _commit_user(db, user)
    logger.info(f"UpdateMyProfile: user {user.id} updated their profile")
    return user


def delete_user(db: Session, principal: Principal, user_id: int) -> None:
    """Admin delete. Jobs, applications and notifications cascade in the store."""
    user = get_user(db, principal, user_id)
    db.delete(user)
    db.commit()
    logger.info(f"DeleteUser: admin {principal.user_id} deleted user {user_id}")


def ensure_admin(db: Session, email: Optional[str], password: Optional[str]) -> Optional[User]:
    """Create the configured administrator account if it does not exist yet."""
    if not email or not password:
        return None

    existing = get_user_by_email(db, email)
    if existing:
        return existing

    user = create_user(
        db,
        email=email,
        username=normalize_email(email),
        password=password,
        role=Role.ADMIN,
        name="Admin",
        surname="admin",
    )
    logger.info(f"Seeded administrator account {user.id}")
    return user
