"""
Job posting endpoints.

Listing and detail views are public. Creating requires the employer role;
updating and deleting additionally require owning the job, checked by the
ownership stage which also hands the loaded job to the handler.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from jobmarket.auth.dependencies import (
    Identity,
    OwnershipChecker,
    RequestContext,
    optional_authenticate,
    require_employer,
)
from jobmarket.core.database import get_db
from jobmarket.core.errors import NotFound, ValidationFailed
from jobmarket.core.repositories import JobRepository, UserRepository
from jobmarket.models.job import ExperienceLevel, Job, JobType
from jobmarket.models.user import utc_now
from jobmarket.schemas.auth import MessageResponse
from jobmarket.schemas.common import DataResponse, ListResponse, Pagination, sanitize_search
from jobmarket.schemas.job import REQUIRED_JOB_FIELDS, JobCreate, JobResponse, JobUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


async def load_job(db: AsyncSession, job_id: int) -> Optional[Job]:
    return await JobRepository(db).find_resource_by_id(job_id)


require_job_owner = OwnershipChecker(
    load_job,
    owner_attr="employer_id",
    path_param="job_id",
    resource_name="Job",
)


def job_to_response(job: Job, identity: Optional[Identity] = None) -> JobResponse:
    response = JobResponse.model_validate(job)
    if identity is not None:
        response.is_owner = job.employer_id == identity.user_id
    return response


# =============================================================================
# Public
# =============================================================================

@router.get("", response_model=ListResponse[JobResponse], response_model_exclude_none=True)
async def list_jobs(
    search: Optional[str] = Query(None, max_length=200),
    location: Optional[str] = Query(None, max_length=255),
    job_type: Optional[JobType] = None,
    experience_level: Optional[ExperienceLevel] = None,
    min_salary: Optional[float] = Query(None, ge=0),
    max_salary: Optional[float] = Query(None, ge=0),
    page: int = Query(1, ge=1, le=1_000_000),
    limit: int = Query(10, ge=1, le=100),
    identity: Optional[Identity] = Depends(optional_authenticate),
    db: AsyncSession = Depends(get_db),
):
    """
    List active jobs whose application deadline has not passed.

    Signed-in callers additionally get `is_owner` on each job.
    """
    now = utc_now()
    filters = [
        Job.is_active.is_(True),
        or_(Job.application_deadline.is_(None), Job.application_deadline >= now),
    ]

    search = sanitize_search(search)
    if search:
        pattern = f"%{search.lower()}%"
        filters.append(
            Job.title.ilike(pattern) | Job.description.ilike(pattern) | Job.company.ilike(pattern)
        )

    location = sanitize_search(location)
    if location:
        filters.append(Job.location.ilike(f"%{location}%"))

    if job_type:
        filters.append(Job.job_type == job_type)

    if experience_level:
        filters.append(Job.experience_level == experience_level)

    if min_salary is not None:
        filters.append(Job.salary >= min_salary)
    if max_salary is not None:
        filters.append(Job.salary <= max_salary)

    # Get total
    result = await db.execute(select(func.count(Job.id)).where(*filters))
    total = result.scalar()

    # Apply pagination
    result = await db.execute(
        select(Job)
        .where(*filters)
        .order_by(Job.created_at.desc(), Job.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    jobs = result.scalars().all()

    return ListResponse[JobResponse](
        results=len(jobs),
        pagination=Pagination.create(total=total, page=page, limit=limit),
        data=[job_to_response(job, identity) for job in jobs],
    )


# =============================================================================
# Employer
# =============================================================================

@router.post(
    "",
    response_model=DataResponse[JobResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_job(
    job_data: JobCreate,
    identity: Identity = Depends(require_employer),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a job posting.

    If `company` is omitted, the employer's profile company name is used.
    """
    company = job_data.company
    if not company:
        employer = await UserRepository(db).find_user_by_id(identity.user_id)
        company = employer.company_name if employer else None
        if not company:
            raise ValidationFailed(
                "Company name is required. Please provide it in the request or update your profile."
            )

    job = Job(
        **job_data.model_dump(exclude={"company"}),
        company=company,
        employer_id=identity.user_id,
    )
    db.add(job)
    await db.commit()
    await db.refresh(job, attribute_names=["employer"])

    logger.info("Employer %s created job %s", identity.user_id, job.id)
    return DataResponse[JobResponse](message="Job created successfully", data=job_to_response(job))


@router.get("/my-jobs", response_model=ListResponse[JobResponse], response_model_exclude_none=True)
async def list_my_jobs(
    identity: Identity = Depends(require_employer),
    db: AsyncSession = Depends(get_db),
):
    """All jobs posted by the current employer, newest first, including inactive ones."""
    result = await db.execute(
        select(Job)
        .where(Job.employer_id == identity.user_id)
        .order_by(Job.created_at.desc(), Job.id.desc())
    )
    jobs = result.scalars().all()

    return ListResponse[JobResponse](
        results=len(jobs),
        data=[job_to_response(job, identity) for job in jobs],
    )


# =============================================================================
# Single job
# =============================================================================

@router.get("/{job_id}", response_model=DataResponse[JobResponse], response_model_exclude_none=True)
async def get_job(
    job_id: int,
    identity: Optional[Identity] = Depends(optional_authenticate),
    db: AsyncSession = Depends(get_db),
):
    """Get a single active job."""
    job = await load_job(db, job_id)
    if not job or not job.is_active:
        raise NotFound("Job not found or is no longer active")

    return DataResponse[JobResponse](data=job_to_response(job, identity))


@router.put(
    "/{job_id}",
    response_model=DataResponse[JobResponse],
    dependencies=[Depends(require_employer)],
)
async def update_job(
    job_data: JobUpdate,
    ctx: RequestContext[Job] = Depends(require_job_owner),
    db: AsyncSession = Depends(get_db),
):
    """Update a job owned by the current employer."""
    job = ctx.resource

    updates = job_data.model_dump(exclude_unset=True)
    for field, value in updates.items():
        if value is None and field in REQUIRED_JOB_FIELDS:
            continue
        setattr(job, field, value)

    # Same session the ownership stage loaded the job through
    await db.commit()
    await db.refresh(job, attribute_names=["employer"])

    return DataResponse[JobResponse](message="Job updated successfully", data=job_to_response(job))


@router.delete(
    "/{job_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require_employer)],
)
async def delete_job(
    ctx: RequestContext[Job] = Depends(require_job_owner),
    db: AsyncSession = Depends(get_db),
):
    """Delete a job owned by the current employer."""
    job = ctx.resource
    await db.delete(job)
    await db.commit()

    logger.info("Employer %s deleted job %s", ctx.identity.user_id, job.id)
    return MessageResponse(message="Job deleted successfully")
