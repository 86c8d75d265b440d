"""Column types that (de)serialize structured values stored as text."""
import json
from collections.abc import Iterable
from typing import Any

from sqlalchemy import Dialect, Text
from sqlalchemy.types import TypeDecorator


def normalize_permissions(values: Iterable[str] | None) -> tuple[str, ...]:
    """De-duplicate permissions while keeping first-seen order."""
    if not values:
        return ()
    return tuple(dict.fromkeys(v.strip() for v in values if v and v.strip()))


def dump_permissions(permissions: Iterable[str] | None) -> str | None:
    """Serialize a permission set to its stored JSON-array form."""
    normalized = normalize_permissions(permissions)
    if not normalized:
        return None
    return json.dumps(list(normalized))


def load_permissions(raw: str | None) -> tuple[str, ...]:
    """Parse the stored JSON-array form. Unparseable text loads as empty."""
    if not raw:
        return ()
    try:
        data = json.loads(raw)
    except ValueError:
        return ()
    if not isinstance(data, list):
        return ()
    return normalize_permissions(str(item) for item in data)


class PermissionSet(TypeDecorator[tuple[str, ...]]):
    """
    Ordered set of capability strings stored as a JSON array in a TEXT column.

    The only place permissions cross the text boundary; the rest of the code sees
    a tuple[str, ...].
    """

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Dialect) -> str | None:  # noqa: ARG002
        """Python -> database."""
        return dump_permissions(value)

    def process_result_value(self, value: Any, dialect: Dialect) -> tuple[str, ...]:  # noqa: ARG002
        """Database -> Python."""
        return load_permissions(value)
