import pytest
import pytest_asyncio

from fake_backend import FakeBackend, make_client, seed_school


@pytest.fixture
def backend():
    return seed_school(FakeBackend())


@pytest_asyncio.fixture
async def client(backend):
    async with make_client(backend.handler) as c:
        yield c
