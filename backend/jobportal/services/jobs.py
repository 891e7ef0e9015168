"""
Job registry.

Owns the job lifecycle. Creation is Manager-only; update and delete require
ownership of the posting, which an Admin may bypass.
"""

import logging
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.orm import Session

from jobportal.core.authorization import MANAGER_ONLY, MANAGER_OR_ADMIN, authorize
from jobportal.core.errors import FieldError, NotFound, ValidationFailed
from jobportal.core.security import Principal
from jobportal.db.base import utcnow
from jobportal.models import Job

logger = logging.getLogger(__name__)

JOB_FIELDS = (
    "title",
    "description",
    "location",
    "employment_type",
    "salary_min",
    "salary_max",
    "company_name",
    "application_deadline",
)

SALARY_CEILING = Decimal("1000000")


def validate_salary_range(
    salary_min: Optional[Decimal], salary_max: Optional[Decimal]
) -> list[FieldError]:
    errors = []
    for field, value in (("salary_min", salary_min), ("salary_max", salary_max)):
        if value is not None and not (0 <= Decimal(value) <= SALARY_CEILING):
            errors.append(FieldError(field, "Salary must be between 0 and 1,000,000."))

    if (
        not errors
        and salary_min is not None
        and salary_max is not None
        and Decimal(salary_min) > Decimal(salary_max)
    ):
        errors.append(
            FieldError("salary_max", "Maximum salary must not be lower than minimum salary.")
        )
    return errors


def _validated(fields: dict[str, Any]) -> dict[str, Any]:
    values = {key: fields.get(key) for key in JOB_FIELDS}
    errors = validate_salary_range(values["salary_min"], values["salary_max"])
    if errors:
        raise ValidationFailed(errors)
    return values


def find_job(db: Session, job_id: int) -> Optional[Job]:
    return db.get(Job, job_id)


def get_job(db: Session, job_id: int) -> Job:
    job = find_job(db, job_id)
    if job is None:
        logger.warning(f"GetJob: job {job_id} not found")
        raise NotFound(f"Job with ID {job_id} not found.")
    return job


def list_jobs(db: Session) -> list[Job]:
    return db.query(Job).order_by(Job.posted_date.desc(), Job.id.desc()).all()


def jobs_by_owner(db: Session, owner_id: int) -> list[Job]:
    return (
        db.query(Job)
        .filter(Job.owner_id == owner_id)
        .order_by(Job.posted_date.desc(), Job.id.desc())
        .all()
    )


def create_job(db: Session, principal: Principal, fields: dict[str, Any]) -> Job:
    """
    Post a new job owned by the calling manager.

    Raises:
        Forbidden: If the caller is not a Manager
        ValidationFailed: If the salary range is invalid
    """
    authorize(principal, MANAGER_ONLY)
    values = _validated(fields)

    job = Job(**values, owner_id=principal.user_id, posted_date=utcnow())
    db.add(job)
    db.commit()
    db.refresh(job)

    logger.info(
        f"CreateJob: job {job.id} '{job.title}' created by manager {principal.user_id}"
    )
    return job


def update_job(
    db: Session, job_id: int, principal: Principal, fields: dict[str, Any]
) -> Job:
    """
    Replace a job's fields. Owner or Admin only.

    Raises:
        Forbidden: Wrong role, or not the owner and not an Admin
        NotFound: If the job does not exist
    """
    authorize(principal, MANAGER_OR_ADMIN)
    job = get_job(db, job_id)
    authorize(
        principal,
        MANAGER_OR_ADMIN,
        owner_id=job.owner_id,
        message="You are not authorized to update this job.",
    )
    values = _validated(fields)

    for key, value in values.items():
        setattr(job, key, value)
    job.posted_date = utcnow()

    db.commit()
    db.refresh(job)

    logger.info(f"UpdateJob: job {job_id} updated by user {principal.user_id}")
    return job


def delete_job(db: Session, job_id: int, principal: Principal) -> None:
    """Delete a job. Its applications cascade; notifications keep a null job reference."""
    authorize(principal, MANAGER_OR_ADMIN)
    job = get_job(db, job_id)
    authorize(
        principal,
        MANAGER_OR_ADMIN,
        owner_id=job.owner_id,
        message="You are not authorized to delete this job.",
    )

    db.delete(job)
    db.commit()

    logger.info(f"DeleteJob: job {job_id} deleted by user {principal.user_id}")
