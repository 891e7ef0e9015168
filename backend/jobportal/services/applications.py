"""
Application intake workflow.

An applicant may apply to a job at most once. The application row and its
confirmation notification are committed in one transaction, so either both
exist or neither does.

Duplicate detection has two layers. A pre-check query catches the common
case with a friendly message. The (job_id, user_id) unique constraint is
authoritative: when two requests race past the pre-check, the loser's commit
fails with an IntegrityError, its transaction is rolled back, and the failure
is reported as the same Conflict.
"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from jobportal.core.authorization import APPLICANT_ONLY, authorize
from jobportal.core.errors import Conflict, FieldError, NotFound, Unauthenticated, ValidationFailed
from jobportal.core.security import Principal
from jobportal.db.base import utcnow
from jobportal.models import Job, JobApplication
from jobportal.models.application import STATUS_PENDING
from jobportal.models.notification import TYPE_APPLICATION_CONFIRMATION
from jobportal.services import jobs as job_registry
from jobportal.services import users as credential_store
from jobportal.services.notifications import create_notification

logger = logging.getLogger(__name__)

COVER_LETTER_MAX_LENGTH = 1000
RESUME_URL_MAX_LENGTH = 500

ALREADY_APPLIED = "You have already applied for this job."
STAFF_CANNOT_APPLY = "Managers and Admins cannot apply for jobs."


def confirmation_message(job: Job) -> str:
    deadline = job.application_deadline.strftime("%m/%d/%Y")
    return (
        f"You successfully applied for '{job.title}'. "
        f"The application deadline is {deadline}."
    )


def validate_submission(
    cover_letter: Optional[str], resume_url: Optional[str]
) -> list[FieldError]:
    errors = []
    if cover_letter is not None and len(cover_letter) > COVER_LETTER_MAX_LENGTH:
        errors.append(
            FieldError(
                "cover_letter",
                f"Cover letter cannot exceed {COVER_LETTER_MAX_LENGTH} characters.",
            )
        )
    if resume_url is not None and len(resume_url) > RESUME_URL_MAX_LENGTH:
        errors.append(
            FieldError(
                "resume_url",
                f"Resume URL cannot exceed {RESUME_URL_MAX_LENGTH} characters.",
            )
        )
    return errors


def find_application(db: Session, job_id: int, user_id: int) -> Optional[JobApplication]:
    return (
        db.query(JobApplication)
        .filter(JobApplication.job_id == job_id, JobApplication.user_id == user_id)
        .first()
    )


def applications_by_user(db: Session, user_id: int) -> list[JobApplication]:
    return (
        db.query(JobApplication)
        .filter(JobApplication.user_id == user_id)
        .order_by(JobApplication.application_date.desc(), JobApplication.id.desc())
        .all()
    )


def apply(
    db: Session,
    job_id: int,
    principal: Principal,
    cover_letter: Optional[str] = None,
    resume_url: Optional[str] = None,
) -> JobApplication:
    """
    Submit an application for a job and queue its confirmation notification.

    Args:
        db: Database session
        job_id: Target job
        principal: The applying user
        cover_letter: Optional cover letter text
        resume_url: Optional link to a hosted resume

    Returns:
        The new application in Pending status

    Raises:
        Forbidden: If the caller is a Manager or Admin
        ValidationFailed: If the cover letter or resume URL is too long
        NotFound: If the job does not exist
        Conflict: If the caller has already applied for this job
        Unauthenticated: If the caller's account was deleted after the token was issued
    """
    # Staff are refused before the job is even looked up
    authorize(principal, APPLICANT_ONLY, message=STAFF_CANNOT_APPLY)

    errors = validate_submission(cover_letter, resume_url)
    if errors:
        raise ValidationFailed(errors)

    job = job_registry.get_job(db, job_id)

    if find_application(db, job_id, principal.user_id) is not None:
        logger.warning(
            f"ApplyForJob: user {principal.user_id} has already applied for job {job_id}"
        )
        raise Conflict(ALREADY_APPLIED)

    application = JobApplication(
        job_id=job.id,
        user_id=principal.user_id,
        application_date=utcnow(),
        status=STATUS_PENDING,
        cover_letter=cover_letter,
        resume_url=resume_url,
    )
    db.add(application)
    create_notification(
        db,
        user_id=principal.user_id,
        job_id=job.id,
        message=confirmation_message(job),
        type=TYPE_APPLICATION_CONFIRMATION,
    )

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        _resolve_integrity_failure(db, job_id, principal.user_id)
        raise

    db.refresh(application)
    logger.info(
        f"ApplyForJob: user {principal.user_id} applied for job {job_id} "
        f"(application {application.id}) and notification created"
    )
    return application


def _resolve_integrity_failure(db: Session, job_id: int, user_id: int) -> None:
    """Translate a rolled-back insert into the outcome the caller should see."""
    if find_application(db, job_id, user_id) is not None:
        logger.warning(
            f"ApplyForJob: concurrent duplicate for user {user_id} on job {job_id} "
            f"rejected by uniqueness constraint"
        )
        raise Conflict(ALREADY_APPLIED)

    if job_registry.find_job(db, job_id) is None:
        logger.warning(f"ApplyForJob: job {job_id} was deleted before the application was saved")
        raise NotFound(f"Job with ID {job_id} not found.")

    if credential_store.find_user(db, user_id) is None:
        logger.warning(f"ApplyForJob: user {user_id} no longer exists but still holds a token")
        raise Unauthenticated("Authenticated user not found.")
