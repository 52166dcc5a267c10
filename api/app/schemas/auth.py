from pydantic import BaseModel, ConfigDict, Field


class TokenRequest(BaseModel):
    username: str = Field(min_length=1, max_length=25)
    password: str = Field(min_length=1, max_length=20)

    model_config = ConfigDict(extra="forbid")


class TokenOut(BaseModel):
    token: str
