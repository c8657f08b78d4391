"""Shared test fixtures and configuration."""

import os
from pathlib import Path
import sys

import pytest


REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


from capsule_search.config import get_settings
from capsule_search.domain.model import NoteSection
from capsule_search.search.indexer import build_index


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Drop any CAPSULE_SEARCH_* overrides from the host and reset cached settings."""
    for key in [name for name in os.environ if name.upper().startswith("CAPSULE_SEARCH_")]:
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sample_sections():
    """Three note sections covering timestamps, highlights and tags."""
    return [
        NoteSection(
            id="s1",
            title="Intro to ML",
            content="Machine learning is powerful",
            type="introduction",
            order=0,
            tags=["ml"],
        ),
        NoteSection(
            id="s2",
            title="Training loops",
            content="A training loop repeats forward and backward passes",
            type="main-point",
            order=1,
            timestamp={"start": 30, "end": 90},
            tags=["ml", "training"],
            highlights=["forward and backward"],
        ),
        NoteSection(
            id="s3",
            title="Example: linear regression",
            content="Fit a line with gradient descent",
            type="example",
            order=2,
            tags=["regression"],
        ),
    ]


@pytest.fixture
def sample_index(sample_sections):
    return build_index(sample_sections, categories=["Science"], tags=["ml"])
