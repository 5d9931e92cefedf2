"""Shared test fixtures for pytest."""

from unittest.mock import AsyncMock

import pytest

from discogs.client import DiscogsClient
from storage.store import MemoryStore
from tests.factories import make_item, make_session


@pytest.fixture
def memory_store():
    """An empty in-memory key/value store."""
    return MemoryStore()


@pytest.fixture
def mock_discogs_client():
    """Create a mock Discogs client."""
    client = AsyncMock(spec=DiscogsClient)
    client.token = None
    client.is_authenticated = False
    client.check_api = AsyncMock(return_value=True)
    return client


@pytest.fixture
def scan_session():
    """A scan session targeting Brian Eno with the token delay."""
    return make_session()


@pytest.fixture
def sample_items():
    """A master, the release it represents and an unrelated release."""
    return [
        make_item(id=10, is_grouping=True, title="Another Green World", representative_edition_id=1),
        make_item(id=1, title="Another Green World (UK)"),
        make_item(id=2, title="Here Come the Warm Jets", year="1974"),
    ]
