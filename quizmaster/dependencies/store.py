from quizmaster.core.config import Settings, settings
from quizmaster.store.document_store import DocumentStore
from quizmaster.store.memory_store import InMemoryDocumentStore
from quizmaster.store.sql_store import SqlDocumentStore

_document_store: DocumentStore | None = None


def build_document_store(config: Settings) -> DocumentStore:
    if config.STORE_BACKEND == "memory":
        return InMemoryDocumentStore()

    from quizmaster.db.session import async_session_factory

    return SqlDocumentStore(async_session_factory)


def get_document_store() -> DocumentStore:
    global _document_store
    if _document_store is None:
        _document_store = build_document_store(settings)
    return _document_store


async def close_document_store() -> None:
    global _document_store
    if _document_store is not None:
        await _document_store.close()
        _document_store = None
