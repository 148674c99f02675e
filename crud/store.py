# crud/store.py: the entity store the catalog workflows call into
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import delete, func, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from exceptions import StoreError
from models import Book, BookInstance, book_genre

logger = logging.getLogger(__name__)

# (kind, form field) -> referencing column
FOREIGN_KEYS = {
    (Book, "author"): Book.author_id,
    (BookInstance, "book"): BookInstance.book_id,
}


class EntityStore:
    """Async CRUD over the catalog tables.

    Every call runs in its own session, so independent lookups can be awaited
    concurrently. Any SQLAlchemy failure surfaces as ``StoreError``.
    """

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]):
        self._sessionmaker = sessionmaker

    @asynccontextmanager
    async def _session(self, operation: str, kind):
        try:
            async with self._sessionmaker() as session:
                yield session
        except SQLAlchemyError as exc:
            raise StoreError(operation, kind.__name__, str(exc)) from exc

    async def find_by_id(self, kind, entity_id: str):
        async with self._session("find_by_id", kind) as db:
            entity = await db.get(kind, entity_id)
            if entity is not None and kind is Book:
                await self._attach_genres(db, [entity])
        logger.debug("find_by_id %s %s -> %s", kind.__name__, entity_id,
                     "hit" if entity is not None else "miss")
        return entity

    async def find_all(self, kind, filter: Optional[Dict[str, Any]] = None,
                       sort: Optional[str] = None) -> List:
        stmt = self._order(self._where(select(kind), kind, filter), kind, sort)
        async with self._session("find_all", kind) as db:
            result = await db.execute(stmt)
            entities = list(result.scalars().all())
            if kind is Book:
                await self._attach_genres(db, entities)
        return entities

    async def find_by_foreign_key(self, kind, fk_field: str, entity_id: str,
                                  sort: Optional[str] = None) -> List:
        if kind is Book and fk_field == "genre":
            stmt = (select(Book)
                    .join(book_genre, book_genre.c.book_id == Book.id)
                    .where(book_genre.c.genre_id == entity_id))
        else:
            try:
                column = FOREIGN_KEYS[(kind, fk_field)]
            except KeyError:
                raise ValueError(f"{kind.__name__} has no reference field '{fk_field}'") from None
            stmt = select(kind).where(column == entity_id)
        stmt = self._order(stmt, kind, sort)
        async with self._session("find_by_foreign_key", kind) as db:
            result = await db.execute(stmt)
            entities = list(result.scalars().all())
            if kind is Book:
                await self._attach_genres(db, entities)
        return entities

    async def insert(self, entity) -> str:
        kind = type(entity)
        async with self._session("insert", kind) as db:
            db.add(entity)
            await db.flush()
            if kind is Book:
                await self._write_genres(db, entity.id, entity.genre)
            await db.commit()
        logger.info("Inserted %s %s", kind.__name__, entity.id)
        return entity.id

    async def replace(self, kind, entity_id: str, fields: Dict[str, Any]):
        """Overwrite the editable fields of an existing entity, keeping its id."""
        fields = dict(fields)
        genre = fields.pop("genre", None)
        async with self._session("replace", kind) as db:
            entity = await db.get(kind, entity_id)
            if entity is None:
                return None
            for name, value in fields.items():
                setattr(entity, name, value)
            if kind is Book:
                await db.execute(delete(book_genre).where(book_genre.c.book_id == entity_id))
                await self._write_genres(db, entity_id, genre or [])
                entity.genre = list(genre or [])
            await db.commit()
        logger.info("Replaced %s %s", kind.__name__, entity_id)
        return entity

    async def delete(self, kind, entity_id: str) -> bool:
        async with self._session("delete", kind) as db:
            entity = await db.get(kind, entity_id)
            if entity is None:
                return False
            if kind is Book:
                await db.execute(delete(book_genre).where(book_genre.c.book_id == entity_id))
            await db.delete(entity)
            await db.commit()
        logger.info("Deleted %s %s", kind.__name__, entity_id)
        return True

    async def count(self, kind, filter: Optional[Dict[str, Any]] = None) -> int:
        stmt = self._where(select(func.count()).select_from(kind), kind, filter)
        async with self._session("count", kind) as db:
            result = await db.execute(stmt)
            return result.scalar_one()

    @staticmethod
    def _where(stmt, kind, filter: Optional[Dict[str, Any]]):
        for name, value in (filter or {}).items():
            column = getattr(kind, name)
            if isinstance(value, (list, tuple, set, frozenset)):
                stmt = stmt.where(column.in_(list(value)))
            else:
                stmt = stmt.where(column == value)
        return stmt

    @staticmethod
    def _order(stmt, kind, sort: Optional[str]):
        # "family_name" ascending, "-family_name" descending
        if not sort:
            return stmt
        if sort.startswith("-"):
            return stmt.order_by(getattr(kind, sort[1:]).desc())
        return stmt.order_by(getattr(kind, sort))

    @staticmethod
    async def _attach_genres(db: AsyncSession, books: Sequence[Book]):
        if not books:
            return
        by_id = {b.id: b for b in books}
        for b in books:
            b.genre = []
        result = await db.execute(
            select(book_genre.c.book_id, book_genre.c.genre_id)
            .where(book_genre.c.book_id.in_(list(by_id)))
        )
        for book_id, genre_id in result.all():
            by_id[book_id].genre.append(genre_id)

    @staticmethod
    async def _write_genres(db: AsyncSession, book_id: str, genre_ids: Sequence[str]):
        # a repeated id in the submission must not violate the composite key
        unique_ids = list(dict.fromkeys(genre_ids))
        if unique_ids:
            await db.execute(insert(book_genre),
                             [{"book_id": book_id, "genre_id": g} for g in unique_ids])
