"""
Registry of the filter keys the query bar understands.

The set is closed: it is built once at import time and never grows from
user input. Lookups are case-insensitive.
"""

from collections.abc import Iterable, Iterator
from typing import Optional

from ..config.constants import LABEL_SIGIL, MILESTONE_SIGIL, USER_SIGIL
from ..exceptions import UnknownFilterKeyError
from .types import FilterKeyDescriptor, ValueKind


class FilterKeyRegistry:
    """Immutable lookup table of FilterKeyDescriptor by key name."""

    def __init__(self, descriptors: Iterable[FilterKeyDescriptor]):
        table: dict[str, FilterKeyDescriptor] = {}
        for descriptor in descriptors:
            name = descriptor.key.lower()
            if name in table:
                raise ValueError(f"Duplicate filter key: {descriptor.key}")
            table[name] = descriptor
        self._table = table

    def get(self, key: str) -> Optional[FilterKeyDescriptor]:
        """Return the descriptor for ``key`` or None if it is not registered."""
        return self._table.get(key.lower())

    def require(self, key: str) -> FilterKeyDescriptor:
        """Like get(), but raise UnknownFilterKeyError for unknown keys."""
        descriptor = self.get(key)
        if descriptor is None:
            raise UnknownFilterKeyError(key, known=", ".join(self.keys()))
        return descriptor

    def keys(self) -> list[str]:
        return list(self._table)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._table

    def __iter__(self) -> Iterator[FilterKeyDescriptor]:
        return iter(self._table.values())

    def __len__(self) -> int:
        return len(self._table)


DEFAULT_KEYS = (
    FilterKeyDescriptor("label", LABEL_SIGIL, ValueKind.LABELS, supports_none=True, none_title="No Label"),
    FilterKeyDescriptor("author", USER_SIGIL, ValueKind.USERS),
    FilterKeyDescriptor("assignee", USER_SIGIL, ValueKind.USERS, supports_none=True, none_title="No Assignee"),
    FilterKeyDescriptor("milestone", MILESTONE_SIGIL, ValueKind.MILESTONES, supports_none=True, none_title="No Milestone"),
)

DEFAULT_REGISTRY = FilterKeyRegistry(DEFAULT_KEYS)
