"""
Job API endpoints.

Managers post and maintain their own jobs; Admins may update or delete
any job; Managers and Applicants browse.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, ValidationInfo, field_validator
from sqlalchemy.orm import Session

from jobportal.api.deps import get_current_principal, get_db, require_roles
from jobportal.core.security import Principal
from jobportal.models import Job, Role, User
from jobportal.services import jobs as job_registry

router = APIRouter()


# ============== Pydantic Schemas ==============


class JobPayload(BaseModel):
    """Schema for creating or replacing a job."""

    title: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=500)
    location: str = Field(min_length=1, max_length=100)
    employment_type: str = Field(min_length=1, max_length=50)
    salary_min: Optional[Decimal] = Field(default=None, ge=0, le=job_registry.SALARY_CEILING)
    salary_max: Optional[Decimal] = Field(default=None, ge=0, le=job_registry.SALARY_CEILING)
    company_name: str = Field(min_length=1, max_length=255)
    application_deadline: datetime

    @field_validator("salary_max")
    @classmethod
    def validate_salary_order(
        cls, v: Optional[Decimal], info: ValidationInfo
    ) -> Optional[Decimal]:
        # salary_min is absent from info.data when it failed its own checks
        salary_min = info.data.get("salary_min")
        if v is not None and salary_min is not None and salary_min > v:
            raise ValueError("Maximum salary must not be lower than minimum salary.")
        return v


class JobResponse(BaseModel):
    id: int
    title: str
    description: str
    location: str
    employment_type: str
    salary_min: Optional[Decimal] = None
    salary_max: Optional[Decimal] = None
    company_name: str
    posted_date: datetime
    application_deadline: datetime
    manager_id: int
    manager_username: Optional[str] = None
    manager_name: Optional[str] = None
    manager_surname: Optional[str] = None
    manager_image: Optional[str] = None


class JobCreatedResponse(BaseModel):
    message: str
    job_id: int


class MessageResponse(BaseModel):
    message: str


# ============== Helper Functions ==============


def to_response(db: Session, job: Job) -> JobResponse:
    """Build the display view of a job with its manager's public details."""
    manager = db.get(User, job.owner_id)
    return JobResponse(
        id=job.id,
        title=job.title,
        description=job.description,
        location=job.location,
        employment_type=job.employment_type,
        salary_min=job.salary_min,
        salary_max=job.salary_max,
        company_name=job.company_name,
        posted_date=job.posted_date,
        application_deadline=job.application_deadline,
        manager_id=job.owner_id,
        manager_username=manager.username if manager else None,
        manager_name=manager.name if manager else None,
        manager_surname=manager.surname if manager else None,
        manager_image=manager.image if manager else None,
    )


readers = require_roles(Role.MANAGER, Role.APPLICANT)


# ============== API Endpoints ==============


@router.post("", response_model=JobCreatedResponse)
def create_job(
    payload: JobPayload,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Post a new job owned by the calling manager."""
    job = job_registry.create_job(db, principal, payload.model_dump())
    return JobCreatedResponse(message="Job created successfully!", job_id=job.id)


@router.get("", response_model=list[JobResponse])
def list_jobs(
    db: Session = Depends(get_db),
    principal: Principal = Depends(readers),
):
    return [to_response(db, job) for job in job_registry.list_jobs(db)]


@router.get("/mine", response_model=list[JobResponse])
def my_jobs(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_roles(Role.MANAGER)),
):
    """Jobs posted by the calling manager."""
    return [to_response(db, job) for job in job_registry.jobs_by_owner(db, principal.user_id)]


@router.get("/{job_id}", response_model=JobResponse)
def get_job(
    job_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(readers),
):
    return to_response(db, job_registry.get_job(db, job_id))


@router.put("/{job_id}", response_model=MessageResponse)
def update_job(
    job_id: int,
    payload: JobPayload,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Replace a job. Only its owner or an Admin may do this."""
    job_registry.update_job(db, job_id, principal, payload.model_dump())
    return MessageResponse(message=f"Job with ID {job_id} updated successfully.")


@router.delete("/{job_id}", response_model=MessageResponse)
def delete_job(
    job_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Delete a job and, with it, every application to it."""
    job_registry.delete_job(db, job_id, principal)
    return MessageResponse(message=f"Job with ID {job_id} deleted successfully.")
