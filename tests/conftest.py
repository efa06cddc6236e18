import pytest

from fittrack_client.auth_token.store import TokenStore
from fittrack_client.logging_config import error_aggregator
from fittrack_client.storage import MemoryStorage
from tests.fixtures.api_responses import FakeSession


@pytest.fixture(autouse=True)
def _reset_error_aggregator():
    """Keep structured-error aggregation from leaking between tests."""
    yield
    error_aggregator.reset()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def token_store(storage: MemoryStorage) -> TokenStore:
    return TokenStore(storage)


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()
