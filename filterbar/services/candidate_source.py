"""
Candidate sources: the data-fetch side of the value dropdown.

A source is any callable ``fetch(scope_key, filter_key)`` returning (or
awaiting to) an ordered sequence of candidates. Two are provided:

- InMemoryCandidateSource: values held in a dict, mostly for tests and embedding
- YamlCandidateSource: values read from a YAML file per scope

Candidates are looked up by the filter key's value kind, so ``author`` and
``assignee`` share the ``users`` list.
"""

import asyncio
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from ..exceptions import CandidateSourceError
from ..models.keys import DEFAULT_REGISTRY, FilterKeyRegistry
from ..models.types import Candidate

logger = logging.getLogger(__name__)

ScopeValues = Mapping[str, Iterable[Union[str, Mapping[str, Any], Candidate]]]


class InMemoryCandidateSource:
    """Serves candidates from ``{scope: {value_kind: [titles...]}}``."""

    def __init__(
        self,
        scopes: Optional[Mapping[str, ScopeValues]] = None,
        registry: Optional[FilterKeyRegistry] = None,
    ):
        self.registry = registry or DEFAULT_REGISTRY
        self._scopes: dict[str, dict[str, list[Candidate]]] = {}
        for scope_key, values in (scopes or {}).items():
            for kind, items in values.items():
                for item in items:
                    self.add(scope_key, kind, item)

    def add(self, scope_key: str, value_kind: str, item: Any) -> Candidate:
        """Append a candidate to a scope's list for ``value_kind`` (e.g. "labels")."""
        candidate = Candidate.coerce(item)
        self._scopes.setdefault(scope_key, {}).setdefault(value_kind, []).append(candidate)
        return candidate

    def candidates_for(self, scope_key: str, filter_key: str) -> list[Candidate]:
        descriptor = self.registry.require(filter_key)
        return list(self._scopes.get(scope_key, {}).get(descriptor.value_kind.value, []))

    async def __call__(self, scope_key: str, filter_key: str) -> list[Candidate]:
        return self.candidates_for(scope_key, filter_key)


class YamlCandidateSource:
    """
    Serves candidates from a YAML file.

    File format:
        scopes:
          my-project:
            labels: [bug-label, "High Priority"]
            users: [person]
            milestones: [{title: v2.0}]

    The file is read on every fetch (in a worker thread); caching is the
    CandidateCache's job.
    """

    def __init__(self, path: Union[str, Path], registry: Optional[FilterKeyRegistry] = None):
        self.path = Path(path).expanduser()
        self.registry = registry or DEFAULT_REGISTRY

    def load(self) -> InMemoryCandidateSource:
        """Parse the file into an in-memory source.

        Raises:
            CandidateSourceError: If the file is missing, unreadable or malformed
        """
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError as e:
            raise CandidateSourceError("Candidate file not found", path=str(self.path)) from e
        except (OSError, yaml.YAMLError) as e:
            raise CandidateSourceError(f"Could not read candidate file: {e}", path=str(self.path)) from e

        scopes = data.get("scopes") if isinstance(data, dict) else None
        if not isinstance(scopes, dict):
            raise CandidateSourceError("Expected a top-level 'scopes' mapping", path=str(self.path))

        source = InMemoryCandidateSource(registry=self.registry)
        for scope_key, values in scopes.items():
            if not isinstance(values, dict):
                raise CandidateSourceError(
                    f"Scope '{scope_key}' must map value kinds to lists", path=str(self.path)
                )
            for kind, items in values.items():
                for item in items or []:
                    try:
                        source.add(str(scope_key), str(kind), item)
                    except TypeError as e:
                        raise CandidateSourceError(str(e), path=str(self.path)) from e

        logger.debug("Loaded candidate file %s (%d scopes)", self.path, len(scopes))
        return source

    def fetch_sync(self, scope_key: str, filter_key: str) -> list[Candidate]:
        return self.load().candidates_for(scope_key, filter_key)

    async def __call__(self, scope_key: str, filter_key: str) -> list[Candidate]:
        # File I/O off the event loop
        return await asyncio.to_thread(self.fetch_sync, scope_key, filter_key)
