"""
Query tokenizer for the filter bar.

Scans the raw query text into tokens and finds the one under the cursor.
Supports query syntax:
- Plain text: free search terms, no dropdown
- label:~bug: key, optional sigil, unquoted value
- label:~"High Priority": double-quoted value (may contain spaces and ')
- label:~'Won"t Fix': single-quoted value (may contain spaces and ")

Only values of recognized keys can be quoted; quotes in plain text are
ordinary characters. The tokenizer never raises: anything it cannot resolve
comes back as a plain token (``key`` is None).
"""

import logging
from enum import Enum
from typing import Optional

from ..config.constants import DOUBLE_QUOTE, KEY_SEPARATOR, QUOTE_CHARS, SIGILS, SINGLE_QUOTE
from ..models.keys import DEFAULT_REGISTRY, FilterKeyRegistry
from ..models.types import Token

logger = logging.getLogger(__name__)


class ScanState(Enum):
    """Scanner states while reading one token."""

    PLAIN = "plain"
    KEY = "key"
    SIGIL = "sigil"
    UNQUOTED = "unquoted"
    SINGLE_QUOTED = "single_quoted"
    DOUBLE_QUOTED = "double_quoted"


class QueryTokenizer:
    """Splits a filter query into tokens and locates the active one."""

    def __init__(self, registry: Optional[FilterKeyRegistry] = None):
        self.registry = registry or DEFAULT_REGISTRY

    def tokenize(self, query: str) -> list[Token]:
        """Return every token of ``query`` in order, plain text included."""
        tokens: list[Token] = []
        i = 0
        while i < len(query):
            if query[i].isspace():
                i += 1
                continue
            token = self._scan_token(query, i)
            tokens.append(token)
            i = token.end
        return tokens

    def _scan_token(self, query: str, start: int) -> Token:
        """Read one token starting at ``start`` (a non-space character)."""
        state = ScanState.KEY
        descriptor = None
        has_sigil = False
        quote = None
        value: list[str] = []

        i = start
        while i < len(query):
            ch = query[i]

            if state in (ScanState.SINGLE_QUOTED, ScanState.DOUBLE_QUOTED):
                if ch == quote:
                    # Closing quote; anything glued on afterwards still belongs to the value
                    state = ScanState.UNQUOTED
                else:
                    value.append(ch)
                i += 1
                continue

            if ch.isspace():
                break

            if state is ScanState.KEY:
                if ch == KEY_SEPARATOR:
                    descriptor = self.registry.get(query[start:i])
                    state = ScanState.PLAIN if descriptor is None else ScanState.SIGIL
            elif state is ScanState.SIGIL:
                if ch in SIGILS and not has_sigil:
                    # Any sigil is accepted once; commits rewrite it to the key's own
                    has_sigil = True
                elif ch in QUOTE_CHARS:
                    quote = ch
                    state = ScanState.SINGLE_QUOTED if ch == SINGLE_QUOTE else ScanState.DOUBLE_QUOTED
                else:
                    state = ScanState.UNQUOTED
                    continue
            elif state is ScanState.UNQUOTED:
                value.append(ch)
            i += 1

        if descriptor is None:
            return Token(fragment=query[start:i], start=start, end=i)

        return Token(
            key=descriptor,
            fragment="".join(value),
            has_sigil=has_sigil,
            start=start,
            end=i,
            quote=quote,
        )

    def locate_active_token(self, query: str, cursor_offset: Optional[int] = None) -> Token:
        """
        Find the token the cursor is editing.

        Args:
            query: Full text of the search input
            cursor_offset: Caret position; defaults to the end of the query

        Returns:
            The filter token under the cursor, or a Token with ``key`` None
            when the cursor is in plain text, between tokens or out of range.
        """
        query = query or ""
        if cursor_offset is None:
            cursor_offset = len(query)
        if not 0 <= cursor_offset <= len(query):
            logger.debug("Cursor %d outside query of length %d", cursor_offset, len(query))
            return Token(start=cursor_offset, end=cursor_offset)

        preceding = None
        for token in self.tokenize(query):
            if token.start <= cursor_offset <= token.end:
                if token.key is None:
                    return Token(start=token.start, end=token.end)
                return token
            if token.end < cursor_offset:
                preceding = token

        # Cursor in whitespace: `key:` with no value yet stays active
        if (
            preceding is not None
            and preceding.key is not None
            and not preceding.fragment
            and preceding.quote is None
            and query[preceding.end:cursor_offset].isspace()
        ):
            return preceding

        return Token(start=cursor_offset, end=cursor_offset)


def splice(query: str, token: Token, replacement: str) -> tuple[str, int]:
    """
    Replace the token's span with ``replacement`` followed by one space.

    A single whitespace character already following the span is absorbed so
    commits never double up spaces.

    Returns:
        Tuple of (new query, new cursor offset just past the added space)
    """
    before = query[: token.start]
    after = query[token.end :]
    if after[:1].isspace():
        after = after[1:]
    head = f"{before}{replacement} "
    return head + after, len(head)


def describe_quote(token: Token) -> str:
    """Human-readable quoting mode of a token (used by the CLI)."""
    if token.quote == DOUBLE_QUOTE:
        return "double"
    if token.quote == SINGLE_QUOTE:
        return "single"
    return "none"
