from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.core.auth import Principal
from app.core.params import parse_bool
from app.core.security import get_authenticated_principal
from app.schemas.base import MAX_INTEGER, DeletedOut
from app.schemas.jobs import JobCreateRequest, JobEnvelope, JobListEnvelope, JobOut, JobPatchRequest
from app.services.repository import (
    RepositoryConflictError,
    RepositoryNotFoundError,
    RepositoryUnavailableError,
    RepositoryValidationError,
    get_repository,
)

router = APIRouter()


@router.post("", response_model=JobEnvelope, status_code=status.HTTP_201_CREATED)
async def create_job(
    payload: JobCreateRequest,
    principal: Principal = Depends(get_authenticated_principal),
    repository=Depends(get_repository),
) -> JobEnvelope:
    try:
        principal.require_admin()
    except PermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc

    try:
        row = await repository.create_job(
            title=payload.title,
            salary=payload.salary,
            equity=payload.equity,
            company_handle=payload.company_handle,
        )
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return JobEnvelope(job=JobOut(**row))


@router.get("", response_model=JobListEnvelope)
async def list_jobs(
    repository=Depends(get_repository),
    min_salary: int | None = Query(default=None, ge=0, le=MAX_INTEGER, alias="minSalary"),
    has_equity: str | None = Query(default=None, alias="hasEquity"),
    title_like: str | None = Query(default=None, min_length=1, alias="titleLike"),
) -> JobListEnvelope:
    equity_flag: bool | None = None
    if has_equity is not None:
        equity_flag = parse_bool(has_equity)
        if equity_flag is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="hasEquity must be a boolean")

    try:
        rows = await repository.find_jobs(min_salary=min_salary, has_equity=equity_flag, title_like=title_like)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc

    return JobListEnvelope(jobs=[JobOut(**row) for row in rows])


@router.get("/{job_id}", response_model=JobEnvelope)
async def get_job(job_id: str, repository=Depends(get_repository)) -> JobEnvelope:
    try:
        row = await repository.get_job(job_id)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return JobEnvelope(job=JobOut(**row))


@router.patch("/{job_id}", response_model=JobEnvelope)
async def patch_job(
    job_id: str,
    payload: JobPatchRequest,
    principal: Principal = Depends(get_authenticated_principal),
    repository=Depends(get_repository),
) -> JobEnvelope:
    try:
        principal.require_admin()
    except PermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc

    try:
        row = await repository.update_job(job_id, payload.model_dump(exclude_unset=True, by_alias=True))
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return JobEnvelope(job=JobOut(**row))


@router.delete("/{job_id}", response_model=DeletedOut)
async def delete_job(
    job_id: str,
    principal: Principal = Depends(get_authenticated_principal),
    repository=Depends(get_repository),
) -> DeletedOut:
    try:
        principal.require_admin()
    except PermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc

    try:
        await repository.remove_job(job_id)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return DeletedOut(deleted=int(job_id))
