from typing import Any

TRUE_STRINGS = frozenset({"true", "1"})
FALSE_STRINGS = frozenset({"false", "0"})


def parse_bool(value: Any) -> bool | None:
    """Map a query-string flag to True/False, or None when it is not a recognized boolean."""
    if not isinstance(value, str):
        return None
    if value in TRUE_STRINGS:
        return True
    if value in FALSE_STRINGS:
        return False
    return None
