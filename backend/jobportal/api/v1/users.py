"""
User API endpoints.

Self-registration, self-service profile management and the Admin-only
user administration screens.
"""

import re
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, ValidationInfo, field_validator
from sqlalchemy.orm import Session

from jobportal.api.deps import get_current_principal, get_db
from jobportal.core.security import Principal
from jobportal.models.user import Role
from jobportal.services import users as credential_store

router = APIRouter()

EMAIL_PATTERN = r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$"
PHONE_PATTERN = r"^\+?\d{1,3}[- ]?\d{3,14}$"


def _check_email(v: str) -> str:
    if not re.match(EMAIL_PATTERN, v.strip()):
        raise ValueError("Invalid email format")
    return v.strip().lower()


def _check_phone(v: Optional[str]) -> Optional[str]:
    if v and not re.match(PHONE_PATTERN, v):
        raise ValueError("Invalid phone number format.")
    return v


# ============== Pydantic Schemas ==============


class ProfileFields(BaseModel):
    name: Optional[str] = Field(default=None, max_length=20)
    surname: Optional[str] = Field(default=None, max_length=20)
    address: Optional[str] = Field(default=None, max_length=100)
    birthdate: Optional[date] = None
    gender: Optional[str] = Field(default=None, max_length=20)
    phone_number: Optional[str] = Field(default=None, max_length=20)

    @field_validator("phone_number")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return _check_phone(v)


class UserRegister(ProfileFields):
    """Schema for self-registration. The role is always Applicant."""

    email: str = Field(max_length=256)
    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=6, max_length=100)
    confirm_password: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Validate email format."""
        return _check_email(v)

    @field_validator("confirm_password")
    @classmethod
    def validate_confirmation(cls, v: str, info: ValidationInfo) -> str:
        password = info.data.get("password")
        if password is not None and v != password:
            raise ValueError("The password and confirmation password do not match.")
        return v


class UserCreate(ProfileFields):
    """Schema for an Admin creating a user with an explicit role."""

    email: str = Field(max_length=256)
    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=6, max_length=100)
    role: Role

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _check_email(v)


class ProfileUpdate(ProfileFields):
    """Schema for a user updating their own profile."""

    email: Optional[str] = Field(default=None, max_length=256)
    username: Optional[str] = Field(default=None, min_length=3, max_length=50)
    image: Optional[str] = Field(default=None, max_length=500)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        return _check_email(v) if v is not None else v


class UserUpdate(ProfileFields):
    """Schema for an Admin update, including role reassignment."""

    email: Optional[str] = Field(default=None, max_length=256)
    username: Optional[str] = Field(default=None, min_length=3, max_length=50)
    role: Optional[Role] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        return _check_email(v) if v is not None else v


class UserResponse(BaseModel):
    """Schema for user response (without password)."""

    id: int
    email: str
    username: str
    name: Optional[str] = None
    surname: Optional[str] = None
    address: Optional[str] = None
    birthdate: Optional[date] = None
    gender: Optional[str] = None
    phone_number: Optional[str] = None
    image: Optional[str] = None
    role: Role

    class Config:
        from_attributes = True


class RegisterResponse(BaseModel):
    message: str
    user_id: int


class MessageResponse(BaseModel):
    message: str


# ============== API Endpoints ==============


@router.post("/register", response_model=RegisterResponse)
def register(user_data: UserRegister, db: Session = Depends(get_db)):
    """Register a new applicant account."""
    user = credential_store.register_user(db, user_data.model_dump())
    return RegisterResponse(message="Registration successful!", user_id=user.id)


@router.post("", response_model=RegisterResponse)
def add_user(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Create a user with an explicit role (Admin only)."""
    user = credential_store.provision_user(db, principal, user_data.model_dump())
    return RegisterResponse(
        message=f"User '{user.username}' created successfully with role '{user.role.value}'.",
        user_id=user.id,
    )


@router.get("", response_model=list[UserResponse])
def list_users(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return credential_store.list_users(db, principal)


@router.get("/me", response_model=UserResponse)
def get_my_profile(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Get the authenticated user's own profile."""
    return credential_store.get_profile(db, principal)


@router.put("/me", response_model=MessageResponse)
def update_my_profile(
    profile: ProfileUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Update the authenticated user's own profile. The role cannot change here."""
    credential_store.update_profile(db, principal, profile.model_dump(exclude_unset=True))
    return MessageResponse(message="Your profile has been updated successfully.")


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return credential_store.get_user(db, principal, user_id)


@router.put("/{user_id}", response_model=MessageResponse)
def update_user(
    user_id: int,
    changes: UserUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    user = credential_store.update_user(
        db, principal, user_id, changes.model_dump(exclude_unset=True)
    )
    return MessageResponse(message=f"User '{user.username}' updated successfully.")


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Delete a user. Their jobs, applications and notifications go with them."""
    user = credential_store.get_user(db, principal, user_id)
    username = user.username
    credential_store.delete_user(db, principal, user_id)
    return MessageResponse(message=f"User '{username}' deleted successfully.")
