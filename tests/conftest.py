"""Shared pytest fixtures for filterbar tests."""

import asyncio
import logging

import pytest
import yaml

from filterbar.models.keys import DEFAULT_REGISTRY
from filterbar.services.cache import CandidateCache, reset_candidate_cache
from filterbar.services.candidate_source import InMemoryCandidateSource

LONG_TITLE = (
    "this is a very long title this is a very long title this is a very long title "
    "this is a very long title this is a very long title"
)

LABEL_TITLES = [
    "bug-label",
    "BUG-LABEL",
    "High Priority",
    'Won"t Fix',
    "Won't Fix",
    "!@#$%^+&*()",
    LONG_TITLE,
]

SCOPE = "project"


class CountingSource:
    """Wraps a candidate source, records calls and can hold fetches until released."""

    def __init__(self, source, gated: bool = False, error: Exception | None = None):
        self.source = source
        self.calls: list[tuple[str, str]] = []
        self.error = error
        self._gate = asyncio.Event() if gated else None

    def release(self) -> None:
        if self._gate is not None:
            self._gate.set()

    async def __call__(self, scope_key: str, filter_key: str):
        self.calls.append((scope_key, filter_key))
        if self._gate is not None:
            await self._gate.wait()
        if self.error is not None:
            raise self.error
        return await self.source(scope_key, filter_key)


@pytest.fixture
def label_key():
    return DEFAULT_REGISTRY.get("label")


@pytest.fixture
def label_source():
    """Candidate source populated like a project with the usual test labels."""
    return InMemoryCandidateSource(
        {
            SCOPE: {
                "labels": LABEL_TITLES,
                "users": ["person", "root"],
                "milestones": ["v1.0", "v2.0"],
            }
        }
    )


@pytest.fixture
def counting_source(label_source):
    return CountingSource(label_source)


@pytest.fixture
def cache():
    return CandidateCache()


@pytest.fixture
def candidates_file(tmp_path):
    """YAML candidate file with the usual test labels."""
    path = tmp_path / "candidates.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "scopes": {
                    SCOPE: {
                        "labels": LABEL_TITLES,
                        "users": ["person", {"title": "root"}],
                        "milestones": ["v1.0", "v2.0"],
                    }
                }
            }
        ),
        encoding="utf-8",
    )
    return path


@pytest.fixture(autouse=True)
def _isolate_globals(monkeypatch):
    """Keep environment, global cache and CLI log handlers from leaking between tests."""
    for name in ("FILTERBAR_CANDIDATES_FILE", "FILTERBAR_SCOPE", "FILTERBAR_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    yield
    reset_candidate_cache()
    package_logger = logging.getLogger("filterbar")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)
