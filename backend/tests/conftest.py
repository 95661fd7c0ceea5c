import os
import sys
from pathlib import Path

import pytest
import pytest_asyncio

backend_path = Path(__file__).parent.parent
sys.path.insert(0, str(backend_path))

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing-only")
os.environ.setdefault("KEY_ENCRYPTION_SECRET", "test-key-encryption-secret")

from crypto_engine import derive_wrapping_key, generate_rsa_keypair  # noqa: E402
from key_store import KeyStore  # noqa: E402
from messaging import MessagingService  # noqa: E402
from storage import (  # noqa: E402
    Database,
    MemoryKeyRepository,
    MemoryMessageLedger,
    SQLiteKeyRepository,
    SQLiteMessageLedger,
)


@pytest.fixture(scope="session")
def key_pair():
    return generate_rsa_keypair()


@pytest.fixture(scope="session")
def other_key_pair():
    return generate_rsa_keypair()


@pytest.fixture
def sample_plaintext():
    return "Hello, this is a test message for CipherChat!"


@pytest.fixture
def wrapping_key():
    return derive_wrapping_key("test-key-encryption-secret")


@pytest_asyncio.fixture
async def database(tmp_path):
    async with Database(tmp_path / "test.db") as db:
        yield db


@pytest_asyncio.fixture(params=["memory", "sqlite"])
async def stores(request, tmp_path):
    """(key repository, message ledger) for each storage backend."""
    if request.param == "memory":
        yield MemoryKeyRepository(), MemoryMessageLedger()
        return

    async with Database(tmp_path / "stores.db") as db:
        yield SQLiteKeyRepository(db), SQLiteMessageLedger(db)


@pytest.fixture
def ledger(stores):
    return stores[1]


@pytest.fixture
def key_store(stores, wrapping_key):
    return KeyStore(stores[0], wrapping_key)


@pytest.fixture
def service(key_store, ledger):
    return MessagingService(key_store, ledger)
