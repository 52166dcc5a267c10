from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from app.services.errors import RepositoryValidationError


@dataclass(slots=True)
class PartialUpdate:
    set_clause: str
    values: list[Any]

    @property
    def next_placeholder(self) -> str:
        return f"${len(self.values) + 1}"


def sql_for_partial_update(
    data_to_update: Mapping[str, Any],
    field_aliases: Mapping[str, str] | None = None,
) -> PartialUpdate:
    """Build the ``SET`` body of a partial ``UPDATE``.

    ``{"firstName": "Aliya", "age": 32}`` with ``{"firstName": "first_name"}`` gives
    ``'"first_name"=$1, "age"=$2'`` and ``["Aliya", 32]``. Placeholder ``$N`` binds to
    ``values[N - 1]``; the caller binds its own key at ``next_placeholder``.

    Column names are interpolated into the clause, so keys and aliases must come from
    code-controlled field sets. Values are only ever bound as parameters.
    """
    if not data_to_update:
        raise RepositoryValidationError("No data")

    aliases = field_aliases or {}
    columns = [f'"{aliases.get(key) or key}"=${index}' for index, key in enumerate(data_to_update, start=1)]
    return PartialUpdate(set_clause=", ".join(columns), values=list(data_to_update.values()))
