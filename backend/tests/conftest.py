"""
Global pytest configuration and fixtures for all tests.

Provides:
- File-backed SQLite database per test
- Unit of work factory wired to the community repositories
- Field encryption and chat channel fixtures
- A controllable epoch-millisecond clock
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from rankgate.core.database import create_schema, create_session_factory
from rankgate.modules.community.infrastructure.adapters import TlkChannelProvider
from rankgate.modules.community.infrastructure.security import FieldEncryptionService
from rankgate.modules.community.infrastructure.unit_of_work import community_uow_factory
from tests.factories import FakeClock


@pytest.fixture
def encryption_key() -> bytes:
    return AESGCM.generate_key(bit_length=256)


@pytest.fixture
def encryption(encryption_key) -> FieldEncryptionService:
    return FieldEncryptionService(encryption_key)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def channel_provider() -> TlkChannelProvider:
    return TlkChannelProvider(base_url="https://tlk.io")


@pytest.fixture
async def db_engine(tmp_path):
    """Engine on a fresh SQLite file so several sessions can see each other's commits."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'rankgate.db'}",
        echo=False,
        poolclass=NullPool,
    )
    await create_schema(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return create_session_factory(db_engine)


@pytest.fixture
def uow_factory(session_factory, encryption):
    return community_uow_factory(session_factory, encryption)
