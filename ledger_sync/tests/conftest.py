import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from ledger_sync.config.settings import Settings
from ledger_sync.models import Base
from ledger_sync.models.dtos import ArticleRecord, CommentRecord, SubspaceRecord
from ledger_sync.utils.db_session import create_session_factory

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_TARGET_ID = "5FsXfPrUDqq6abYccExCTUxyzjYaaYTr5utLx2wwdBv1m8R8"


@pytest.fixture
def test_settings():
    """Settings isolated from any .env file on the machine running the tests."""
    return Settings(
        _env_file=None,
        DATABASE_URL=TEST_DATABASE_URL,
        TARGET_ID=TEST_TARGET_ID,
        RPC_URL="http://ledger.test:9944",
        RPC_MAX_RETRIES=0,
        CREATE_TABLES_ON_STARTUP=True,
    )


def _create_sqlite_engine():
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


@pytest_asyncio.fixture
async def empty_engine():
    """In-memory SQLite engine with foreign keys enforced and no tables."""
    engine = _create_sqlite_engine()
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_engine():
    """In-memory SQLite engine with the subspaces/articles/comments tables created."""
    engine = _create_sqlite_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return create_session_factory(db_engine)


@pytest.fixture
def subspace_record():
    return SubspaceRecord(
        id=42,
        title="Intro",
        slug="intro",
        status=1,
        weight=0,
        created_time=1700000000,
    )


@pytest.fixture
def article_record():
    return ArticleRecord(
        id=7,
        title="Hello ledger",
        content="First post.",
        author_id=1001,
        author_nickname="alice",
        subspace_id=42,
        ext_link="https://example.org/hello",
        status=1,
        weight=3,
        created_time=1700000100,
        updated_time=1700000200,
    )


@pytest.fixture
def comment_record():
    return CommentRecord(
        id=5,
        content="Nice one",
        author_id=1002,
        author_nickname="bob",
        post_id=7,
        status=1,
        weight=0,
        created_time=1700000300,
    )
