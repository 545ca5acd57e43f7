import os

import pytest
import pytest_asyncio
from pymongo import AsyncMongoClient
from pymongo.errors import PyMongoError

from offsetpager import disable_tracing, reset_settings

MONGO_URI = os.environ.get(
    "OFFSETPAGER_TEST_MONGO_URI", "mongodb://localhost:27017/offsetpager_test"
)


@pytest.fixture(autouse=True)
def reset_state():
    """Reset module-level tracing and settings between tests."""
    yield
    disable_tracing()
    reset_settings()


@pytest_asyncio.fixture
async def mongo_db():
    """Live MongoDB database, dropped after the test. Skips without a server."""
    client = AsyncMongoClient(MONGO_URI, serverSelectionTimeoutMS=500)
    try:
        await client.admin.command("ping")
    except PyMongoError:
        await client.close()
        pytest.skip(f"MongoDB not reachable at {MONGO_URI}")
    db = client.get_default_database()
    yield db
    await client.drop_database(db.name)
    await client.close()
