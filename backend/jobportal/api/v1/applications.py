"""
Job application API endpoints.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from jobportal.api.deps import get_current_principal, get_db, require_roles
from jobportal.core.security import Principal
from jobportal.models import Role
from jobportal.services import applications as intake

router = APIRouter()


# ============== Pydantic Schemas ==============


class ApplyRequest(BaseModel):
    """Optional application details. Length limits are checked by the workflow."""

    cover_letter: Optional[str] = None
    resume_url: Optional[str] = None


class ApplyResponse(BaseModel):
    message: str
    application_id: int


class ApplicationResponse(BaseModel):
    id: int
    job_id: int
    user_id: int
    application_date: datetime
    status: str
    cover_letter: Optional[str] = None
    resume_url: Optional[str] = None

    class Config:
        from_attributes = True


# ============== API Endpoints ==============


@router.post("/apply/{job_id}", response_model=ApplyResponse)
def apply_for_job(
    job_id: int,
    submission: Optional[ApplyRequest] = None,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """
    Apply for a job.

    Creates the application and its confirmation notification together.
    A second application to the same job is rejected with 409.
    """
    submission = submission or ApplyRequest()
    application = intake.apply(
        db,
        job_id,
        principal,
        cover_letter=submission.cover_letter,
        resume_url=submission.resume_url,
    )
    return ApplyResponse(
        message="Job application submitted successfully! You will receive a notification.",
        application_id=application.id,
    )


@router.get("/mine", response_model=list[ApplicationResponse])
def my_applications(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_roles(Role.APPLICANT)),
):
    return intake.applications_by_user(db, principal.user_id)
