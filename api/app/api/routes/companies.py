from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.core.auth import Principal
from app.core.security import get_authenticated_principal
from app.schemas.base import MAX_INTEGER, DeletedOut
from app.schemas.companies import (
    CompanyCreateRequest,
    CompanyDetailEnvelope,
    CompanyDetailOut,
    CompanyEnvelope,
    CompanyListEnvelope,
    CompanyOut,
    CompanyPatchRequest,
)
from app.services.repository import (
    RepositoryConflictError,
    RepositoryNotFoundError,
    RepositoryUnavailableError,
    RepositoryValidationError,
    get_repository,
)

router = APIRouter()


@router.post("", response_model=CompanyEnvelope, status_code=status.HTTP_201_CREATED)
async def create_company(
    payload: CompanyCreateRequest,
    principal: Principal = Depends(get_authenticated_principal),
    repository=Depends(get_repository),
) -> CompanyEnvelope:
    try:
        principal.require_admin()
    except PermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc

    try:
        row = await repository.create_company(
            handle=payload.handle,
            name=payload.name,
            description=payload.description,
            num_employees=payload.num_employees,
            logo_url=payload.logo_url,
        )
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    return CompanyEnvelope(company=CompanyOut(**row))


@router.get("", response_model=CompanyListEnvelope)
async def list_companies(
    repository=Depends(get_repository),
    min_employees: int | None = Query(default=None, ge=0, le=MAX_INTEGER, alias="minEmployees"),
    max_employees: int | None = Query(default=None, ge=0, le=MAX_INTEGER, alias="maxEmployees"),
    name_like: str | None = Query(default=None, min_length=1, alias="nameLike"),
) -> CompanyListEnvelope:
    if min_employees is not None and max_employees is not None and min_employees > max_employees:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="minEmployees cannot be greater than maxEmployees",
        )

    try:
        rows = await repository.find_companies(
            min_employees=min_employees,
            max_employees=max_employees,
            name_like=name_like,
        )
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc

    return CompanyListEnvelope(companies=[CompanyOut(**row) for row in rows])


@router.get("/{handle}", response_model=CompanyDetailEnvelope)
async def get_company(handle: str, repository=Depends(get_repository)) -> CompanyDetailEnvelope:
    try:
        row = await repository.get_company(handle)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return CompanyDetailEnvelope(company=CompanyDetailOut(**row))


@router.patch("/{handle}", response_model=CompanyEnvelope)
async def patch_company(
    handle: str,
    payload: CompanyPatchRequest,
    principal: Principal = Depends(get_authenticated_principal),
    repository=Depends(get_repository),
) -> CompanyEnvelope:
    try:
        principal.require_admin()
    except PermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc

    try:
        row = await repository.update_company(handle, payload.model_dump(exclude_unset=True, by_alias=True))
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return CompanyEnvelope(company=CompanyOut(**row))


@router.delete("/{handle}", response_model=DeletedOut)
async def delete_company(
    handle: str,
    principal: Principal = Depends(get_authenticated_principal),
    repository=Depends(get_repository),
) -> DeletedOut:
    try:
        principal.require_admin()
    except PermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc

    try:
        await repository.remove_company(handle)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return DeletedOut(deleted=handle)
