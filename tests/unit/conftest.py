import pytest_asyncio

from quizmaster.core.config import get_test_settings
from quizmaster.db.session import create_engine_for, create_session_factory, init_db
from quizmaster.store.sql_store import SqlDocumentStore


@pytest_asyncio.fixture
async def test_engine():
    engine = create_engine_for(get_test_settings())
    await init_db(engine)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def sql_store(test_engine):
    document_store = SqlDocumentStore(create_session_factory(test_engine))

    yield document_store

    await document_store.close()
