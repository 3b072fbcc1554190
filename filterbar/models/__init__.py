"""Data types for the filter query bar."""

from .keys import DEFAULT_REGISTRY, FilterKeyRegistry
from .types import (
    CacheEntry,
    Candidate,
    DropdownState,
    DropdownStatus,
    FilterKeyDescriptor,
    Token,
    ValueKind,
)

__all__ = [
    "CacheEntry",
    "Candidate",
    "DEFAULT_REGISTRY",
    "DropdownState",
    "DropdownStatus",
    "FilterKeyDescriptor",
    "FilterKeyRegistry",
    "Token",
    "ValueKind",
]
