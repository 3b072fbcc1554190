"""
Value quoting for committed filter values.

Decides how a candidate title is written back into the query so the
tokenizer reads the same title out again:

1. Title contains a double quote -> wrap in single quotes: 'Won"t Fix'
2. Title contains whitespace or a single quote (or is empty) -> wrap in
   double quotes: "High Priority", "Won't Fix"
3. Otherwise the bare title: bug-label, !@#$%^+&*()

The order matters: a title with both a space and a double quote takes rule 1.
A title holding both quote characters cannot round-trip; rule 1 still applies.
"""

from ..config.constants import DOUBLE_QUOTE, KEY_SEPARATOR, NONE_VALUE, SINGLE_QUOTE
from ..models.types import Candidate, FilterKeyDescriptor


def serialize(raw_title: str) -> str:
    """Quote ``raw_title`` for embedding after a key and sigil."""
    if DOUBLE_QUOTE in raw_title:
        return f"{SINGLE_QUOTE}{raw_title}{SINGLE_QUOTE}"
    if not raw_title or SINGLE_QUOTE in raw_title or any(ch.isspace() for ch in raw_title):
        return f"{DOUBLE_QUOTE}{raw_title}{DOUBLE_QUOTE}"
    return raw_title


def serialize_candidate(descriptor: FilterKeyDescriptor, candidate: Candidate) -> str:
    """Value text for a candidate, sigil included (the sentinel gets none)."""
    if candidate.is_none:
        if not descriptor.supports_none:
            raise ValueError(f"Filter key '{descriptor.key}' has no none value")
        return NONE_VALUE
    return f"{descriptor.sigil}{serialize(candidate.title)}"


def format_filter(descriptor: FilterKeyDescriptor, candidate: Candidate) -> str:
    """Full filter text, e.g. ``label:~"High Priority"`` or ``label:none``."""
    return f"{descriptor.key}{KEY_SEPARATOR}{serialize_candidate(descriptor, candidate)}"
