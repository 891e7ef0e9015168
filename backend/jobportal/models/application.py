
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint

from jobportal.db.base import Base, utcnow

STATUS_PENDING = "Pending"


class JobApplication(Base):
    """
    An applicant's application to a job.

    The (job_id, user_id) unique constraint is the source of truth for
    "one application per job per applicant"; rows are immutable once
    written.
    """

    __tablename__ = "job_applications"
    __table_args__ = (
        UniqueConstraint("job_id", "user_id", name="uq_job_applications_job_user"),
    )

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    application_date = Column(DateTime, default=utcnow, nullable=False)
    status = Column(String(50), default=STATUS_PENDING, nullable=False)
    cover_letter = Column(String(2000), nullable=True)
    resume_url = Column(String(500), nullable=True)
