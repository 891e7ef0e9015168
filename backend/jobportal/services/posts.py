"""
Post board.

Applicants and Managers publish short posts that anyone may read. A post
can be changed or removed by its author, or by an Admin.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from jobportal.core.authorization import ANY_ROLE, MANAGER_OR_APPLICANT, authorize
from jobportal.core.errors import FieldError, NotFound, Unauthenticated, ValidationFailed
from jobportal.core.security import Principal
from jobportal.db.base import utcnow
from jobportal.models import Post, User
from jobportal.services import users as credential_store

logger = logging.getLogger(__name__)

DESCRIPTION_MAX_LENGTH = 500
IMAGE_URL_MAX_LENGTH = 500

NOT_AUTHORIZED = "You are not authorized to modify this post."


def validate_post(description: Optional[str], image_url: Optional[str]) -> list[FieldError]:
    errors = []
    if not description:
        errors.append(FieldError("description", "Description is required."))
    elif len(description) > DESCRIPTION_MAX_LENGTH:
        errors.append(
            FieldError(
                "description",
                f"Description cannot exceed {DESCRIPTION_MAX_LENGTH} characters.",
            )
        )
    if image_url is not None and len(image_url) > IMAGE_URL_MAX_LENGTH:
        errors.append(
            FieldError("image_url", f"Image URL cannot exceed {IMAGE_URL_MAX_LENGTH} characters.")
        )
    return errors


def _check(description: Optional[str], image_url: Optional[str]) -> None:
    errors = validate_post(description, image_url)
    if errors:
        raise ValidationFailed(errors)


def find_post(db: Session, post_id: int) -> Optional[Post]:
    return db.get(Post, post_id)


def get_post(db: Session, post_id: int) -> Post:
    post = find_post(db, post_id)
    if post is None:
        logger.warning(f"GetPost: post {post_id} not found")
        raise NotFound(f"Post with ID {post_id} not found.")
    return post


def list_posts(db: Session) -> list[tuple[Post, User]]:
    """Every post with its author, newest first."""
    rows = (
        db.query(Post, User)
        .join(User, Post.user_id == User.id)
        .order_by(Post.created_at.desc(), Post.id.desc())
        .all()
    )
    logger.info(f"GetAllPosts: retrieved {len(rows)} posts")
    return [(post, author) for post, author in rows]


def create_post(
    db: Session,
    principal: Principal,
    description: str,
    image_url: Optional[str] = None,
) -> Post:
    """
    Publish a post as the calling user.

    Raises:
        Forbidden: If the caller is an Admin
        ValidationFailed: If the description is missing or a field is too long
        Unauthenticated: If the caller's account no longer exists
    """
    authorize(principal, MANAGER_OR_APPLICANT)
    _check(description, image_url)

    if credential_store.find_user(db, principal.user_id) is None:
        logger.error(f"CreatePost: authenticated user {principal.user_id} not found in database")
        raise Unauthenticated("Authenticated user not found.")

    now = utcnow()
    post = Post(
        description=description,
        image_url=image_url,
        user_id=principal.user_id,
        created_at=now,
        updated_at=now,
    )
    db.add(post)
    db.commit()
    db.refresh(post)

    logger.info(f"CreatePost: post {post.id} created by user {principal.user_id}")
    return post


def update_post(
    db: Session,
    post_id: int,
    principal: Principal,
    description: str,
    image_url: Optional[str] = None,
) -> Post:
    """
    Replace a post's text and image. Author or Admin only.

    Raises:
        NotFound: If the post does not exist
        Forbidden: If the caller is neither the author nor an Admin
        ValidationFailed: If the description is missing or a field is too long
    """
    post = get_post(db, post_id)
    authorize(principal, ANY_ROLE, owner_id=post.user_id, message=NOT_AUTHORIZED)
    _check(description, image_url)

    post.description = description
    post.image_url = image_url
    post.updated_at = utcnow()

    db.commit()
    db.refresh(post)

    logger.info(f"UpdatePost: post {post_id} updated by user {principal.user_id}")
    return post


def delete_post(db: Session, post_id: int, principal: Principal) -> None:
    """Delete a post. Author or Admin only."""
    post = get_post(db, post_id)
    authorize(principal, ANY_ROLE, owner_id=post.user_id, message=NOT_AUTHORIZED)

    db.delete(post)
    db.commit()

    logger.info(f"DeletePost: post {post_id} deleted by user {principal.user_id}")
