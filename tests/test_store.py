"""Tests for the EntityStore."""

import re
from datetime import date

import pytest

from exceptions import StoreError
from models import Author, Book, BookInstance, Genre


@pytest.mark.asyncio
class TestInsertAndFind:
    async def test_insert_assigns_opaque_id(self, store):
        author = Author(first_name="Isaac", family_name="Asimov", date_of_birth=date(1920, 1, 2))
        new_id = await store.insert(author)
        assert re.fullmatch(r"[0-9a-f]{32}", new_id)

        found = await store.find_by_id(Author, new_id)
        assert found.family_name == "Asimov"
        assert found.date_of_birth == date(1920, 1, 2)

    async def test_missing_id_is_none(self, store):
        assert await store.find_by_id(Author, "0" * 32) is None

    async def test_find_all_sorted(self, seed, store):
        await seed.author("Isaac", "Asimov")
        await seed.author("Ben", "Bova")
        await seed.author("Iain", "Banks")
        authors = await store.find_all(Author, sort="family_name")
        assert [a.family_name for a in authors] == ["Asimov", "Banks", "Bova"]
        authors = await store.find_all(Author, sort="-family_name")
        assert [a.family_name for a in authors] == ["Bova", "Banks", "Asimov"]

    async def test_find_all_filters(self, seed, store):
        fantasy = await seed.genre("Fantasy")
        poetry = await seed.genre("Poetry")
        await seed.genre("Horror")
        assert [g.id for g in await store.find_all(Genre, {"name": "Poetry"})] == [poetry.id]
        found = await store.find_all(Genre, {"id": [fantasy.id, poetry.id]}, sort="name")
        assert [g.name for g in found] == ["Fantasy", "Poetry"]
        assert await store.find_all(Genre, {"id": []}) == []

    async def test_book_genres_round_trip(self, seed, store):
        author = await seed.author()
        fantasy = await seed.genre("Fantasy")
        epic = await seed.genre("Epic")
        book = await seed.book(author, genres=[fantasy, epic])
        found = await store.find_by_id(Book, book.id)
        assert sorted(found.genre) == sorted([fantasy.id, epic.id])

    async def test_instance_defaults(self, seed, store):
        book = await seed.book(await seed.author())
        new_id = await store.insert(BookInstance(book_id=book.id, imprint="Gollancz"))
        found = await store.find_by_id(BookInstance, new_id)
        assert found.status == "Maintenance"
        assert found.due_back == date.today()


@pytest.mark.asyncio
class TestForeignKeys:
    async def test_books_by_author(self, seed, store):
        tolkien = await seed.author("John", "Tolkien")
        other = await seed.author("Terry", "Pratchett")
        hobbit = await seed.book(tolkien, title="The Hobbit")
        await seed.book(other, title="Mort")
        found = await store.find_by_foreign_key(Book, "author", tolkien.id)
        assert [b.id for b in found] == [hobbit.id]

    async def test_books_by_genre(self, seed, store):
        author = await seed.author()
        fantasy = await seed.genre("Fantasy")
        await seed.book(author, title="B", genres=[fantasy])
        await seed.book(author, title="A", genres=[fantasy])
        await seed.book(author, title="C")
        found = await store.find_by_foreign_key(Book, "genre", fantasy.id, sort="title")
        assert [b.title for b in found] == ["A", "B"]
        assert all(b.genre == [fantasy.id] for b in found)

    async def test_instances_by_book(self, seed, store):
        book = await seed.book(await seed.author())
        copy = await seed.instance(book)
        found = await store.find_by_foreign_key(BookInstance, "book", book.id)
        assert [i.id for i in found] == [copy.id]

    async def test_unknown_reference_field(self, store):
        with pytest.raises(ValueError):
            await store.find_by_foreign_key(Genre, "author", "x")


@pytest.mark.asyncio
class TestReplaceDeleteCount:
    async def test_replace_keeps_identity(self, seed, store):
        author = await seed.author()
        fantasy = await seed.genre("Fantasy")
        scifi = await seed.genre("Science Fiction")
        book = await seed.book(author, genres=[fantasy])

        replaced = await store.replace(Book, book.id, {
            "title": "The Wise Man's Fear", "author_id": author.id,
            "summary": "Day two", "isbn": "9780756404734", "genre": [scifi.id],
        })
        assert replaced.id == book.id

        found = await store.find_by_id(Book, book.id)
        assert found.title == "The Wise Man's Fear"
        assert found.genre == [scifi.id]
        assert await store.count(Book) == 1

    async def test_replace_missing(self, store):
        assert await store.replace(Genre, "0" * 32, {"name": "Nothing"}) is None

    async def test_delete(self, seed, store):
        genre = await seed.genre()
        assert await store.delete(Genre, genre.id) is True
        assert await store.find_by_id(Genre, genre.id) is None
        assert await store.delete(Genre, genre.id) is False

    async def test_store_does_not_enforce_references(self, seed, store):
        author = await seed.author()
        await seed.book(author)
        assert await store.delete(Author, author.id) is True

    async def test_count_with_filter(self, seed, store):
        book = await seed.book(await seed.author())
        await seed.instance(book, status="Available")
        await seed.instance(book, status="Loaned")
        assert await store.count(BookInstance) == 2
        assert await store.count(BookInstance, {"status": "Available"}) == 1


@pytest.mark.asyncio
async def test_database_failure_is_store_error(broken_store):
    with pytest.raises(StoreError) as excinfo:
        await broken_store.find_all(Author)
    assert excinfo.value.operation == "find_all"
    assert excinfo.value.kind == "Author"
