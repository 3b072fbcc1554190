"""
Type definitions for the filter query bar.

Everything here is immutable: tokens are recomputed per keystroke, cache
entries are replaced wholesale and dropdown states are swapped, never edited.
"""

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ValueKind(Enum):
    """What a filter key's values are."""

    LABELS = "labels"
    USERS = "users"
    MILESTONES = "milestones"


@dataclass(frozen=True)
class FilterKeyDescriptor:
    """A recognized filter key such as ``label`` or ``author``."""

    key: str
    sigil: str
    value_kind: ValueKind
    supports_none: bool = False
    none_title: Optional[str] = None  # Display title of the "none" sentinel row

    @property
    def none_candidate(self) -> Optional["Candidate"]:
        """The sentinel row for this key, or None when the key has no "none" value."""
        if not self.supports_none:
            return None
        return Candidate(title=self.none_title or "None", is_none=True)


@dataclass(frozen=True)
class Candidate:
    """One selectable value for a filter key."""

    title: str
    is_none: bool = False  # The "no value set" sentinel

    @classmethod
    def coerce(cls, item: Any) -> "Candidate":
        """Build a Candidate from a Candidate, a plain title or a mapping with a title."""
        if isinstance(item, Candidate):
            return item
        if isinstance(item, str):
            return cls(title=item)
        if isinstance(item, Mapping) and "title" in item:
            return cls(title=str(item["title"]))
        raise TypeError(f"Cannot build a candidate from {item!r}")


@dataclass(frozen=True)
class Token:
    """The filter expression under edit at the cursor.

    ``key`` is None when the cursor sits in plain text; no dropdown applies then.
    ``start``/``end`` delimit the span a committed value replaces.
    """

    key: Optional[FilterKeyDescriptor] = None
    fragment: str = ""
    has_sigil: bool = False
    start: int = 0
    end: int = 0
    quote: Optional[str] = None  # Opening quote character when the value is quoted

    @property
    def is_filter(self) -> bool:
        return self.key is not None

    @property
    def occurrence(self) -> Optional[tuple[str, int]]:
        """Identity of this key occurrence within the query."""
        if self.key is None:
            return None
        return (self.key.key, self.start)


@dataclass(frozen=True)
class CacheEntry:
    """Fetched candidates for one (scope, filter key) pair."""

    scope_key: str
    filter_key: str
    candidates: tuple[Candidate, ...]
    fetched_at: float = field(default_factory=time.time)


class DropdownStatus(Enum):
    """Lifecycle of the value dropdown."""

    CLOSED = "closed"
    LOADING = "loading"
    OPEN = "open"


@dataclass(frozen=True)
class DropdownState:
    """What the rendering collaborator shows.

    ``filtered`` holds the fetched candidates that match the fragment;
    ``sentinels`` holds the "none" rows shown above them. ``selected_index``
    indexes into ``items`` (sentinels first) and is None until the user
    navigates or hovers.
    """

    status: DropdownStatus = DropdownStatus.CLOSED
    filtered: tuple[Candidate, ...] = ()
    sentinels: tuple[Candidate, ...] = ()
    selected_index: Optional[int] = None

    @classmethod
    def closed(cls) -> "DropdownState":
        return cls()

    @classmethod
    def loading(cls) -> "DropdownState":
        return cls(status=DropdownStatus.LOADING)

    @property
    def is_open(self) -> bool:
        return self.status is DropdownStatus.OPEN

    @property
    def items(self) -> tuple[Candidate, ...]:
        """All visible rows in menu order."""
        return self.sentinels + self.filtered

    @property
    def selected(self) -> Optional[Candidate]:
        if self.selected_index is None:
            return None
        items = self.items
        if 0 <= self.selected_index < len(items):
            return items[self.selected_index]
        return None
