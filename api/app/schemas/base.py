from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# Upper bound of a postgres integer column.
MAX_INTEGER = 2**31 - 1


class CamelModel(BaseModel):
    """Fields are snake_case in Python and camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CamelRequest(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class DeletedOut(BaseModel):
    deleted: int | str
