from pydantic import Field, field_validator

from app.schemas.base import MAX_INTEGER, CamelModel, CamelRequest


class JobCreateRequest(CamelRequest):
    title: str = Field(min_length=1)
    salary: int | None = Field(default=None, ge=0, le=MAX_INTEGER)
    equity: float | None = Field(default=None, ge=0, le=1)
    company_handle: str = Field(min_length=1, max_length=25)


class JobPatchRequest(CamelRequest):
    title: str | None = Field(default=None, min_length=1)
    salary: int | None = Field(default=None, ge=0, le=MAX_INTEGER)
    equity: float | None = Field(default=None, ge=0, le=1)
    company_handle: str | None = Field(default=None, min_length=1, max_length=25)

    @field_validator("title", "company_handle")
    @classmethod
    def _reject_null(cls, value: str | None) -> str:
        if value is None:
            raise ValueError("must not be null")
        return value


class JobOut(CamelModel):
    id: int
    title: str
    salary: int | None = None
    equity: float | None = None
    company_handle: str


class JobEnvelope(CamelModel):
    job: JobOut


class JobListEnvelope(CamelModel):
    jobs: list[JobOut]


class AppliedOut(CamelModel):
    applied: int
