
from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String

from jobportal.db.base import Base, utcnow


class Job(Base):
    """A job posting, exclusively owned by the manager who created it."""

    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False)
    description = Column(String(500), nullable=False)
    location = Column(String(100), nullable=False)
    employment_type = Column(String(50), nullable=False)
    salary_min = Column(Numeric(18, 2), nullable=True)
    salary_max = Column(Numeric(18, 2), nullable=True)
    company_name = Column(String(255), nullable=False)

    posted_date = Column(DateTime, default=utcnow, nullable=False)
    application_deadline = Column(DateTime, nullable=False)

    owner_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
