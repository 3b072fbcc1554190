"""
Controller for the filter bar value dropdown.

Feeds input events into the dropdown state machine and carries out its
effects: candidate requests go through the CandidateCache (and the fetch
function on a miss), committed values are written back into the query.
Renderers subscribe with ``on_state_update`` and read ``state``,
``is_loading`` and ``error``; they never drive the machine directly.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Optional

from ..config.settings import get_default_scope
from ..exceptions import CandidateFetchError
from ..models.keys import FilterKeyRegistry
from ..models.types import DropdownState, Token
from ..services.cache import CandidateCache, FetchFn, get_candidate_cache
from ..services.tokenizer import QueryTokenizer
from .machine import (
    ApplySplice,
    CandidatesFailed,
    CandidatesLoaded,
    Commit,
    Dismiss,
    DropdownMachine,
    DropdownModel,
    Event,
    FocusChanged,
    Hover,
    InputChanged,
    Navigate,
    RequestCandidates,
)

logger = logging.getLogger(__name__)


class DropdownController:
    """
    Drives one search input's value dropdown.

    Usage:
        controller = DropdownController(fetch_labels, scope_key="my-project")
        await controller.set_input("label:")
        await controller.wait_until_loaded()
        controller.state.items  # No Label, bug-label, ...
        controller.select_title("bug-label")  # -> "label:~bug-label "

    Methods that can start a candidate request (set_input, type_text, focus,
    change_scope) are coroutines: a cache miss schedules the fetch as a task
    on the running event loop. The rest only move local state and are plain
    methods.
    """

    def __init__(
        self,
        fetch_fn: FetchFn,
        *,
        cache: Optional[CandidateCache] = None,
        scope_key: Optional[str] = None,
        registry: Optional[FilterKeyRegistry] = None,
        on_state_update: Optional[Callable[[DropdownState], None]] = None,
        on_query_update: Optional[Callable[[str, int], None]] = None,
    ):
        self.fetch_fn = fetch_fn
        self.cache = cache if cache is not None else get_candidate_cache()
        self.scope_key = scope_key or get_default_scope()
        self.on_state_update = on_state_update
        self.on_query_update = on_query_update
        self._machine = DropdownMachine(QueryTokenizer(registry))
        self._model = DropdownModel()
        self._pending: set[asyncio.Task] = set()

    # -------------------------------------------------------------------------
    # Read-only view for renderers
    # -------------------------------------------------------------------------

    @property
    def state(self) -> DropdownState:
        return self._model.state

    @property
    def model(self) -> DropdownModel:
        return self._model

    @property
    def query(self) -> str:
        return self._model.query

    @property
    def cursor(self) -> int:
        return self._model.cursor

    @property
    def token(self) -> Token:
        return self._model.token

    @property
    def is_open(self) -> bool:
        return self._model.state.is_open

    @property
    def is_loading(self) -> bool:
        return self._model.is_loading

    @property
    def error(self) -> Optional[str]:
        return self._model.error

    # -------------------------------------------------------------------------
    # Input events
    # -------------------------------------------------------------------------

    async def set_input(self, query: str, cursor: Optional[int] = None) -> None:
        """Replace the input text (and caret, default end of text)."""
        self._dispatch(InputChanged(query, cursor))

    async def type_text(self, text: str) -> None:
        """Insert ``text`` at the caret, one keystroke per character."""
        for ch in text:
            query, cursor = self._model.query, self._model.cursor
            self._dispatch(InputChanged(query[:cursor] + ch + query[cursor:], cursor + 1))

    def clear(self) -> None:
        """Empty the search input (the clear button). The cache is kept."""
        self._dispatch(InputChanged("", 0))

    async def focus(self) -> None:
        self._dispatch(FocusChanged(True))

    def blur(self) -> None:
        """Input lost focus: close, and ignore any fetch still running."""
        self._dispatch(FocusChanged(False))

    def dismiss(self) -> None:
        """Escape: close until the cursor moves to another key occurrence."""
        self._dispatch(Dismiss())

    def move_selection(self, delta: int) -> None:
        """Move selection up (-1) or down (+1), clamped to the menu."""
        self._dispatch(Navigate(delta))

    def hover(self, index: int) -> None:
        self._dispatch(Hover(index))

    def commit(self, index: Optional[int] = None) -> Optional[str]:
        """
        Commit a row (Enter when index is None, click otherwise).

        Returns:
            The rewritten query, or None if nothing was committed
        """
        for effect in self._dispatch(Commit(index)):
            if isinstance(effect, ApplySplice):
                return effect.query
        return None

    def select_title(self, title: str) -> Optional[str]:
        """Click the visible row with exactly this title."""
        for index, item in enumerate(self.state.items):
            if item.title == title:
                return self.commit(index)
        logger.debug("No visible dropdown row titled %r", title)
        return None

    async def change_scope(self, scope_key: str) -> None:
        """Switch search context: drop the old scope's candidates and close."""
        if scope_key == self.scope_key:
            return
        previous, self.scope_key = self.scope_key, scope_key
        self.cache.invalidate(previous)
        logger.debug("Scope changed from %s to %s", previous, scope_key)
        was_focused = self._model.focused
        self._dispatch(FocusChanged(False))
        if was_focused:
            self._dispatch(FocusChanged(True))

    async def wait_until_loaded(self) -> None:
        """Wait for every outstanding candidate request to settle."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # -------------------------------------------------------------------------
    # Machine plumbing
    # -------------------------------------------------------------------------

    def _dispatch(self, event: Event) -> tuple:
        result = self._machine.transition(self._model, event)
        self._model = result.model
        for effect in result.effects:
            self._run_effect(effect)
        self._notify_update()
        return result.effects

    def _run_effect(self, effect) -> None:
        if isinstance(effect, RequestCandidates):
            entry = self.cache.lookup(self.scope_key, effect.filter_key)
            if entry is not None:
                # Cache hit: straight to Open before anyone sees Loading
                self._model = self._machine.transition(
                    self._model, CandidatesLoaded(effect.occurrence, entry.candidates)
                ).model
                return
            task = asyncio.create_task(self._load(effect, self.scope_key))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
        elif isinstance(effect, ApplySplice):
            logger.debug("Committed %r -> %r", effect.committed.title, effect.query)
            if self.on_query_update:
                self.on_query_update(effect.query, effect.cursor)

    async def _load(self, request: RequestCandidates, scope_key: str) -> None:
        try:
            entry = await self.cache.fetch_and_store(scope_key, request.filter_key, self.fetch_fn)
        except CandidateFetchError as e:
            if scope_key == self.scope_key:
                self._dispatch(CandidatesFailed(request.occurrence, e.message))
            return

        if scope_key != self.scope_key:
            logger.debug("Dropping %s candidates for stale scope %s", request.filter_key, scope_key)
            return
        self._dispatch(CandidatesLoaded(request.occurrence, entry.candidates))

    def _notify_update(self) -> None:
        """Notify listeners of state change."""
        if self.on_state_update:
            self.on_state_update(self._model.state)
