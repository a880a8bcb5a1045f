import pytest
from unittest.mock import AsyncMock, MagicMock


def make_cursor(docs):
    """Chainable motor cursor stand-in returning `docs` from to_list."""
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=docs)
    return cursor


@pytest.fixture
def collection():
    """A mocked motor collection with empty results."""
    col = MagicMock()
    col.find.return_value = make_cursor([])
    col.find_one = AsyncMock(return_value=None)
    col.count_documents = AsyncMock(return_value=0)
    col.insert_many = AsyncMock()
    return col


@pytest.fixture
def database(collection):
    """A mocked motor database whose every collection is `collection`."""
    db = MagicMock()
    db.__getitem__.return_value = collection
    return db


@pytest.fixture
def cursor_with():
    """Install a cursor returning the given documents on the collection."""
    def _install(collection, docs):
        cursor = make_cursor(docs)
        collection.find.return_value = cursor
        return cursor
    return _install
