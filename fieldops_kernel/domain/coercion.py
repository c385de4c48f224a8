"""
Boundary coercion of stored values into domain enums.

Rows arriving from the store are parsed once, when an ORM model is mapped
to its frozen DTO.  A status or type the code does not know is replaced by
a safe default and logged, so one bad row never breaks a whole listing.
"""

from enum import Enum
from typing import Any, TypeVar

from fieldops_kernel.logging_config import get_logger

logger = get_logger("domain.coercion")

E = TypeVar("E", bound=Enum)


def coerce_enum(
    enum_cls: type[E],
    raw: Any,
    default: E,
    *,
    entity: str = "",
    field: str = "",
    entity_id: Any = None,
) -> E:
    """
    Map ``raw`` to a member of ``enum_cls``; fall back to ``default``.

    Accepts a member, a member value, or a member name (case-insensitive).
    """
    if isinstance(raw, enum_cls):
        return raw
    if raw is not None:
        try:
            return enum_cls(raw)
        except ValueError:
            pass
        if isinstance(raw, str):
            member = enum_cls.__members__.get(raw.strip().upper().replace("-", "_"))
            if member is not None:
                return member
    logger.warning(
        "unknown_enum_value_coerced",
        extra={
            "entity": entity,
            "field": field,
            "entity_id": str(entity_id) if entity_id is not None else None,
            "raw_value": repr(raw),
            "coerced_to": default.value,
        },
    )
    return default
