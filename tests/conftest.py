"""Shared pytest fixtures for the catalog test suite."""

import asyncio
from datetime import date

import pytest
import pytest_asyncio
from sqlalchemy.pool import NullPool

from config import Settings, get_settings
from crud.store import EntityStore
from database import get_store, init_db, make_engine, make_sessionmaker
from models import Author, Book, BookInstance, Genre


def _engine_for(path):
    # NullPool: no connection outlives the event loop that opened it
    return make_engine(f"sqlite+aiosqlite:///{path}", poolclass=NullPool)


# ---------------------------------------------------------------------------
# Store fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def store(tmp_path):
    """Return an EntityStore over a fresh, initialized SQLite file."""
    engine = _engine_for(tmp_path / "catalog.db")
    await init_db(engine)
    yield EntityStore(make_sessionmaker(engine))
    await engine.dispose()


@pytest.fixture
def broken_store(tmp_path):
    """Return an EntityStore whose database has no tables."""
    engine = _engine_for(tmp_path / "empty.db")
    return EntityStore(make_sessionmaker(engine))


class Seeder:
    def __init__(self, store: EntityStore):
        self.store = store

    async def author(self, first_name="Patrick", family_name="Rothfuss", **kwargs) -> Author:
        author = Author(first_name=first_name, family_name=family_name, **kwargs)
        await self.store.insert(author)
        return author

    async def genre(self, name="Fantasy") -> Genre:
        genre = Genre(name=name)
        await self.store.insert(genre)
        return genre

    async def book(self, author: Author, title="The Name of the Wind", genres=(), **kwargs) -> Book:
        book = Book(title=title, author_id=author.id, summary=kwargs.pop("summary", "A summary"),
                    isbn=kwargs.pop("isbn", "9781473211896"), genre=[g.id for g in genres], **kwargs)
        await self.store.insert(book)
        return book

    async def instance(self, book: Book, imprint="Gollancz, 2007", status="Available") -> BookInstance:
        instance = BookInstance(book_id=book.id, imprint=imprint, status=status,
                                due_back=date(2026, 10, 19))
        await self.store.insert(instance)
        return instance


@pytest_asyncio.fixture
async def seed(store):
    return Seeder(store)


# ---------------------------------------------------------------------------
# Settings and web client fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def settings(tmp_path):
    """Return a Settings instance that logs nowhere on disk."""
    return Settings(_env_file=None, log_dir=tmp_path / "logs", log_to_file=False)


@pytest.fixture
def web_store(tmp_path):
    engine = _engine_for(tmp_path / "web.db")
    asyncio.run(init_db(engine))
    yield EntityStore(make_sessionmaker(engine))
    asyncio.run(engine.dispose())


@pytest.fixture
def client(web_store, settings):
    """Return a TestClient wired to a temporary store and test settings."""
    from fastapi.testclient import TestClient
    from main import app

    app.dependency_overrides[get_store] = lambda: web_store
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()
