"""Root pytest configuration for all tests."""

import logging

import pytest

from tests.fixtures.sample_pages import sample_files
from tests.helpers.fake_store import InMemoryRepositoryStore

# Keep urllib3 connection chatter out of failure reports
logging.getLogger("urllib3").setLevel(logging.WARNING)


@pytest.fixture
def store():
    """In-memory repository seeded with sample pages and media."""
    return InMemoryRepositoryStore(sample_files())
