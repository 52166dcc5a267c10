from fastapi import APIRouter, Depends, HTTPException, status

from app.core.auth import Principal
from app.core.security import create_token, get_authenticated_principal
from app.schemas.base import DeletedOut
from app.schemas.jobs import AppliedOut
from app.schemas.users import (
    UserCreateRequest,
    UserDetailEnvelope,
    UserDetailOut,
    UserEnvelope,
    UserListEnvelope,
    UserOut,
    UserPatchRequest,
    UserTokenEnvelope,
)
from app.services.repository import (
    RepositoryConflictError,
    RepositoryNotFoundError,
    RepositoryUnavailableError,
    RepositoryValidationError,
    get_repository,
)

router = APIRouter()


@router.post("", response_model=UserTokenEnvelope, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreateRequest,
    principal: Principal = Depends(get_authenticated_principal),
    repository=Depends(get_repository),
) -> UserTokenEnvelope:
    """Admin-only user creation; unlike /auth/register it may create admins."""
    try:
        principal.require_admin()
    except PermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc

    try:
        row = await repository.register_user(
            username=payload.username,
            password=payload.password,
            first_name=payload.first_name,
            last_name=payload.last_name,
            email=payload.email,
            is_admin=payload.is_admin,
        )
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    return UserTokenEnvelope(user=UserOut(**row), token=create_token(row))


@router.get("", response_model=UserListEnvelope)
async def list_users(
    principal: Principal = Depends(get_authenticated_principal),
    repository=Depends(get_repository),
) -> UserListEnvelope:
    try:
        principal.require_admin()
    except PermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc

    try:
        rows = await repository.find_users()
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc

    return UserListEnvelope(users=[UserOut(**row) for row in rows])


@router.get("/{username}", response_model=UserDetailEnvelope)
async def get_user(
    username: str,
    principal: Principal = Depends(get_authenticated_principal),
    repository=Depends(get_repository),
) -> UserDetailEnvelope:
    try:
        principal.require_admin_or_self(username)
    except PermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc

    try:
        row = await repository.get_user(username)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return UserDetailEnvelope(user=UserDetailOut(**row))


@router.patch("/{username}", response_model=UserEnvelope)
async def patch_user(
    username: str,
    payload: UserPatchRequest,
    principal: Principal = Depends(get_authenticated_principal),
    repository=Depends(get_repository),
) -> UserEnvelope:
    try:
        principal.require_admin_or_self(username)
    except PermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc

    try:
        row = await repository.update_user(username, payload.model_dump(exclude_unset=True, by_alias=True))
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return UserEnvelope(user=UserOut(**row))


@router.delete("/{username}", response_model=DeletedOut)
async def delete_user(
    username: str,
    principal: Principal = Depends(get_authenticated_principal),
    repository=Depends(get_repository),
) -> DeletedOut:
    try:
        principal.require_admin_or_self(username)
    except PermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc

    try:
        await repository.remove_user(username)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return DeletedOut(deleted=username)


@router.post("/{username}/jobs/{job_id}", response_model=AppliedOut)
async def apply_to_job(
    username: str,
    job_id: str,
    principal: Principal = Depends(get_authenticated_principal),
    repository=Depends(get_repository),
) -> AppliedOut:
    try:
        principal.require_admin_or_self(username)
    except PermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc

    try:
        await repository.apply_to_job(username, job_id)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except RepositoryConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    return AppliedOut(applied=int(job_id))
