"""
Candidate matching for the value dropdown.

Case-insensitive substring match, order preserving. No fuzzy scoring and no
word boundaries: "Hig" matches "High Priority", "b" matches "bug-label" and
"BUG-LABEL". Fragments arrive with the sigil already stripped by the tokenizer.
"""

from collections.abc import Iterable

from ..config.constants import NONE_VALUE
from ..models.types import Candidate, FilterKeyDescriptor


def matches(title: str, fragment: str) -> bool:
    """Whether ``fragment`` occurs in ``title`` ignoring case."""
    return fragment.lower() in title.lower()


def filter_candidates(candidates: Iterable[Candidate], fragment: str) -> list[Candidate]:
    """Keep the candidates whose title contains ``fragment``, in fetch order."""
    if not fragment:
        return list(candidates)
    return [candidate for candidate in candidates if matches(candidate.title, fragment)]


def filter_sentinels(descriptor: FilterKeyDescriptor, fragment: str) -> list[Candidate]:
    """The key's "none" row if it supports one and the fragment still matches it."""
    sentinel = descriptor.none_candidate
    if sentinel is None:
        return []
    if not fragment or matches(sentinel.title, fragment) or matches(NONE_VALUE, fragment):
        return [sentinel]
    return []
