from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from jobportal.db.base import Base, utcnow


class Post(Base):
    """A short post on the public board. Editable by its author or an Admin."""

    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True)
    description = Column(String(500), nullable=False)
    image_url = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, nullable=False)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
