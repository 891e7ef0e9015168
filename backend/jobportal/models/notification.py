
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String

from jobportal.db.base import Base, utcnow

TYPE_APPLICATION_CONFIRMATION = "JobApplicationConfirmation"


class Notification(Base):
    """Per-user notification. Only its recipient may mark it read."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Kept when the job goes away; the reference is nulled instead
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="SET NULL"), nullable=True)

    message = Column(String(500), nullable=False)
    type = Column(String(100), nullable=False)  # "JobApplicationConfirmation"
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
