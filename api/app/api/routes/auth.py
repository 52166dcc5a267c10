import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.security import create_token
from app.schemas.auth import TokenOut, TokenRequest
from app.schemas.users import UserRegisterRequest
from app.services.repository import (
    RepositoryConflictError,
    RepositoryUnauthorizedError,
    RepositoryUnavailableError,
    get_repository,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/token", response_model=TokenOut)
async def issue_token(payload: TokenRequest, repository=Depends(get_repository)) -> TokenOut:
    try:
        user = await repository.authenticate_user(payload.username, payload.password)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryUnauthorizedError as exc:
        logger.warning("token request rejected username=%s", payload.username)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc

    return TokenOut(token=create_token(user))


@router.post("/register", response_model=TokenOut, status_code=status.HTTP_201_CREATED)
async def register(payload: UserRegisterRequest, repository=Depends(get_repository)) -> TokenOut:
    try:
        user = await repository.register_user(
            username=payload.username,
            password=payload.password,
            first_name=payload.first_name,
            last_name=payload.last_name,
            email=payload.email,
            is_admin=False,
        )
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    logger.info("registered user username=%s", user["username"])
    return TokenOut(token=create_token(user))
