from pydantic import Field, field_validator

from app.schemas.base import MAX_INTEGER, CamelModel, CamelRequest


class CompanyCreateRequest(CamelRequest):
    handle: str = Field(min_length=1, max_length=25)
    name: str = Field(min_length=1)
    description: str
    num_employees: int | None = Field(default=None, ge=0, le=MAX_INTEGER)
    logo_url: str | None = None


class CompanyPatchRequest(CamelRequest):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    num_employees: int | None = Field(default=None, ge=0, le=MAX_INTEGER)
    logo_url: str | None = None

    @field_validator("name", "description")
    @classmethod
    def _reject_null(cls, value: str | None) -> str:
        if value is None:
            raise ValueError("must not be null")
        return value


class CompanyJobOut(CamelModel):
    id: int
    title: str
    salary: int | None = None
    equity: float | None = None


class CompanyOut(CamelModel):
    handle: str
    name: str
    description: str
    num_employees: int | None = None
    logo_url: str | None = None


class CompanyDetailOut(CompanyOut):
    jobs: list[CompanyJobOut] = Field(default_factory=list)


class CompanyEnvelope(CamelModel):
    company: CompanyOut


class CompanyDetailEnvelope(CamelModel):
    company: CompanyDetailOut


class CompanyListEnvelope(CamelModel):
    companies: list[CompanyOut]
