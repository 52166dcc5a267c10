from pydantic import Field, field_validator

from app.schemas.base import CamelModel, CamelRequest


class UserRegisterRequest(CamelRequest):
    username: str = Field(min_length=1, max_length=25)
    password: str = Field(min_length=5, max_length=20)
    first_name: str = Field(min_length=1, max_length=25)
    last_name: str = Field(min_length=1, max_length=25)
    email: str = Field(min_length=6, max_length=60, pattern=r"^[^@\s]+@[^@\s]+$")


class UserCreateRequest(UserRegisterRequest):
    is_admin: bool = False


class UserPatchRequest(CamelRequest):
    first_name: str | None = Field(default=None, min_length=1, max_length=25)
    last_name: str | None = Field(default=None, min_length=1, max_length=25)
    password: str | None = Field(default=None, min_length=5, max_length=20)
    email: str | None = Field(default=None, min_length=6, max_length=60, pattern=r"^[^@\s]+@[^@\s]+$")

    @field_validator("first_name", "last_name", "password", "email")
    @classmethod
    def _reject_null(cls, value: str | None) -> str:
        if value is None:
            raise ValueError("must not be null")
        return value


class UserOut(CamelModel):
    username: str
    first_name: str
    last_name: str
    email: str
    is_admin: bool = False


class UserDetailOut(UserOut):
    jobs: list[int] = Field(default_factory=list)


class UserEnvelope(CamelModel):
    user: UserOut


class UserDetailEnvelope(CamelModel):
    user: UserDetailOut


class UserListEnvelope(CamelModel):
    users: list[UserOut]


class UserTokenEnvelope(CamelModel):
    user: UserOut
    token: str
