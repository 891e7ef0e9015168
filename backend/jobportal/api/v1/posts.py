"""
Post board API endpoints.

Reading is open to everyone, including anonymous callers. Applicants and
Managers publish; authors and Admins edit or delete.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from jobportal.api.deps import get_current_principal, get_db
from jobportal.core.security import Principal
from jobportal.models import Post, User
from jobportal.services import posts as post_board

router = APIRouter()


# ============== Pydantic Schemas ==============


class PostPayload(BaseModel):
    """Schema for creating or replacing a post."""

    description: str = Field(min_length=1, max_length=post_board.DESCRIPTION_MAX_LENGTH)
    image_url: Optional[str] = Field(default=None, max_length=post_board.IMAGE_URL_MAX_LENGTH)


class PostResponse(BaseModel):
    id: int
    description: str
    image_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    user_id: int
    username: Optional[str] = None
    name: Optional[str] = None
    surname: Optional[str] = None
    image: Optional[str] = None


class PostCreatedResponse(BaseModel):
    message: str
    post_id: int


class MessageResponse(BaseModel):
    message: str


# ============== Helper Functions ==============


def to_response(post: Post, author: Optional[User]) -> PostResponse:
    return PostResponse(
        id=post.id,
        description=post.description,
        image_url=post.image_url,
        created_at=post.created_at,
        updated_at=post.updated_at,
        user_id=post.user_id,
        username=author.username if author else None,
        name=author.name if author else None,
        surname=author.surname if author else None,
        image=author.image if author else None,
    )


# ============== API Endpoints ==============


@router.get("", response_model=list[PostResponse])
def list_posts(db: Session = Depends(get_db)):
    """All posts, newest first, with their authors."""
    return [to_response(post, author) for post, author in post_board.list_posts(db)]


@router.get("/{post_id}", response_model=PostResponse)
def get_post(post_id: int, db: Session = Depends(get_db)):
    post = post_board.get_post(db, post_id)
    return to_response(post, db.get(User, post.user_id))


@router.post("", response_model=PostCreatedResponse)
def create_post(
    payload: PostPayload,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Publish a post as the calling Applicant or Manager."""
    post = post_board.create_post(db, principal, payload.description, payload.image_url)
    return PostCreatedResponse(message="Post created successfully!", post_id=post.id)


@router.put("/{post_id}", response_model=MessageResponse)
def update_post(
    post_id: int,
    payload: PostPayload,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Replace a post. Only its author or an Admin may do this."""
    post_board.update_post(db, post_id, principal, payload.description, payload.image_url)
    return MessageResponse(message=f"Post with ID {post_id} updated successfully.")


@router.delete("/{post_id}", response_model=MessageResponse)
def delete_post(
    post_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    post_board.delete_post(db, post_id, principal)
    return MessageResponse(message=f"Post with ID {post_id} deleted successfully.")
