"""
State machine for the value dropdown.

Pure: ``DropdownMachine.transition(model, event)`` returns the next model and
the effects the caller has to carry out. Nothing here fetches, renders or
touches the input widget.

States: Closed -> Loading -> Open -> Closed. Once Open, typing refilters in
place; Open never goes back to Loading.

Effects:
- RequestCandidates: load the candidate list for a key. The driver answers
  with CandidatesLoaded or CandidatesFailed. Answering synchronously (cache
  hit) means Loading is never observed.
- ApplySplice: write a committed value back into the search input.
"""

from dataclasses import dataclass, field, replace
from typing import Optional, Union

from ..models.types import Candidate, DropdownState, DropdownStatus, Token
from ..services.matcher import filter_candidates, filter_sentinels
from ..services.quoter import format_filter
from ..services.tokenizer import QueryTokenizer, splice

Occurrence = tuple[str, int]


# =============================================================================
# Events
# =============================================================================


@dataclass(frozen=True)
class InputChanged:
    """Search input text or caret changed."""

    query: str
    cursor: Optional[int] = None  # None means end of query


@dataclass(frozen=True)
class FocusChanged:
    """Search input gained or lost focus."""

    focused: bool


@dataclass(frozen=True)
class CandidatesLoaded:
    """Candidates arrived for a key occurrence."""

    occurrence: Occurrence
    candidates: tuple[Candidate, ...]


@dataclass(frozen=True)
class CandidatesFailed:
    """Fetching candidates for a key occurrence failed."""

    occurrence: Occurrence
    message: str


@dataclass(frozen=True)
class Navigate:
    """Keyboard Up (-1) / Down (+1)."""

    delta: int


@dataclass(frozen=True)
class Hover:
    """Pointer moved over a menu row."""

    index: int


@dataclass(frozen=True)
class Commit:
    """Click (with index) or Enter (index None: selection, else first candidate)."""

    index: Optional[int] = None


@dataclass(frozen=True)
class Dismiss:
    """Escape: close and stay closed for this key occurrence."""


Event = Union[InputChanged, FocusChanged, CandidatesLoaded, CandidatesFailed, Navigate, Hover, Commit, Dismiss]


# =============================================================================
# Effects
# =============================================================================


@dataclass(frozen=True)
class RequestCandidates:
    """Load the candidate list for a filter key."""

    filter_key: str
    occurrence: Occurrence


@dataclass(frozen=True)
class ApplySplice:
    """Write the committed value back into the search input."""

    query: str
    cursor: int
    committed: Candidate


Effect = Union[RequestCandidates, ApplySplice]


@dataclass(frozen=True)
class DropdownModel:
    """Everything the machine knows between events."""

    query: str = ""
    cursor: int = 0
    focused: bool = True
    token: Token = field(default_factory=Token)
    occurrence: Optional[Occurrence] = None  # Key occurrence the dropdown is bound to
    candidates: tuple[Candidate, ...] = ()  # Unfiltered list for that occurrence
    state: DropdownState = field(default_factory=DropdownState.closed)
    error: Optional[str] = None
    dismissed: Optional[Occurrence] = None  # Occurrence closed by Escape or a failed fetch

    @property
    def is_loading(self) -> bool:
        return self.state.status is DropdownStatus.LOADING


@dataclass(frozen=True)
class Transition:
    """Next model plus the effects the caller must run."""

    model: DropdownModel
    effects: tuple[Effect, ...] = ()


class DropdownMachine:
    """Computes dropdown transitions from explicit events."""

    def __init__(self, tokenizer: Optional[QueryTokenizer] = None):
        self.tokenizer = tokenizer or QueryTokenizer()

    def transition(self, model: DropdownModel, event: Event) -> Transition:
        if isinstance(event, InputChanged):
            cursor = len(event.query) if event.cursor is None else event.cursor
            return self._evaluate(replace(model, query=event.query, cursor=cursor))
        if isinstance(event, FocusChanged):
            if not event.focused:
                return Transition(self._closed(replace(model, focused=False)))
            return self._evaluate(replace(model, focused=True))
        if isinstance(event, CandidatesLoaded):
            return self._loaded(model, event)
        if isinstance(event, CandidatesFailed):
            return self._failed(model, event)
        if isinstance(event, Navigate):
            return Transition(self._navigate(model, event.delta))
        if isinstance(event, Hover):
            return Transition(self._hover(model, event.index))
        if isinstance(event, Commit):
            return self._commit(model, event.index)
        if isinstance(event, Dismiss):
            return Transition(self._closed(replace(model, dismissed=model.occurrence)))
        raise TypeError(f"Unknown dropdown event: {event!r}")

    # -------------------------------------------------------------------------

    def _evaluate(self, model: DropdownModel) -> Transition:
        token = self.tokenizer.locate_active_token(model.query, model.cursor)
        model = replace(model, token=token)
        occurrence = token.occurrence

        if not model.focused:
            return Transition(self._closed(model))
        if occurrence is None:
            return Transition(self._closed(replace(model, dismissed=None), keep_error=False))

        if occurrence == model.occurrence:
            if model.state.is_open:
                return Transition(self._refilter(model))
            if model.is_loading:
                # Fragment is picked up when the candidates arrive
                return Transition(model)

        if occurrence == model.dismissed:
            return Transition(self._closed(model))

        model = replace(
            model,
            occurrence=occurrence,
            candidates=(),
            state=DropdownState.loading(),
            error=None,
            dismissed=None,
        )
        return Transition(model, (RequestCandidates(token.key.key, occurrence),))

    def _loaded(self, model: DropdownModel, event: CandidatesLoaded) -> Transition:
        if not model.is_loading or event.occurrence != model.occurrence:
            return Transition(model)
        model = replace(model, candidates=tuple(event.candidates))
        return Transition(self._refilter(model, keep_selection=False))

    def _failed(self, model: DropdownModel, event: CandidatesFailed) -> Transition:
        if not model.is_loading or event.occurrence != model.occurrence:
            return Transition(model)
        model = replace(model, error=event.message, dismissed=event.occurrence)
        return Transition(self._closed(model))

    def _refilter(self, model: DropdownModel, keep_selection: bool = True) -> DropdownModel:
        token = model.token
        filtered = tuple(filter_candidates(model.candidates, token.fragment))
        sentinels = tuple(filter_sentinels(token.key, token.fragment))

        selected = None
        previous = model.state
        if (
            keep_selection
            and previous.is_open
            and previous.selected_index is not None
            and previous.filtered == filtered
            and previous.sentinels == sentinels
        ):
            selected = previous.selected_index

        state = DropdownState(
            status=DropdownStatus.OPEN,
            filtered=filtered,
            sentinels=sentinels,
            selected_index=selected,
        )
        return replace(model, state=state)

    def _navigate(self, model: DropdownModel, delta: int) -> DropdownModel:
        state = model.state
        if not state.is_open or not state.items:
            return model
        current = -1 if state.selected_index is None else state.selected_index
        index = max(0, min(current + delta, len(state.items) - 1))
        return replace(model, state=replace(state, selected_index=index))

    def _hover(self, model: DropdownModel, index: int) -> DropdownModel:
        state = model.state
        if not state.is_open or not 0 <= index < len(state.items):
            return model
        return replace(model, state=replace(state, selected_index=index))

    def _commit(self, model: DropdownModel, index: Optional[int]) -> Transition:
        state = model.state
        token = model.token
        if not state.is_open or token.key is None:
            return Transition(model)

        items = state.items
        if index is not None:
            if not 0 <= index < len(items):
                return Transition(model)
            chosen = items[index]
        elif state.selected is not None:
            chosen = state.selected
        elif state.filtered:
            chosen = state.filtered[0]
        elif state.sentinels:
            # Only the "none" row is visible, e.g. after typing "none"
            chosen = state.sentinels[0]
        elif token.fragment:
            # Nothing matched: commit what was typed
            chosen = Candidate(title=token.fragment)
        else:
            return Transition(model)

        query, cursor = splice(model.query, token, format_filter(token.key, chosen))
        model = replace(model, query=query, cursor=cursor, token=Token(start=cursor, end=cursor))
        return Transition(self._closed(model), (ApplySplice(query, cursor, chosen),))

    @staticmethod
    def _closed(model: DropdownModel, keep_error: bool = True) -> DropdownModel:
        return replace(
            model,
            occurrence=None,
            candidates=(),
            state=DropdownState.closed(),
            error=model.error if keep_error else None,
        )
