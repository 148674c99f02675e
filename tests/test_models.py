"""Tests for the derived display values on the models."""

from datetime import date

import pytest

from models import Author, Book, BookInstance, Genre


class TestAuthor:
    def test_name(self):
        assert Author(first_name="Ursula", family_name="LeGuin").name == "LeGuin, Ursula"

    @pytest.mark.parametrize("first,family", [("Ursula", None), (None, "LeGuin"), ("", "LeGuin")])
    def test_name_empty_without_both_parts(self, first, family):
        assert Author(first_name=first, family_name=family).name == ""

    def test_lifespan(self):
        author = Author(first_name="U", family_name="L",
                        date_of_birth=date(1929, 10, 21), date_of_death=date(2018, 1, 22))
        assert author.lifespan == "1929-10-21 - 2018-01-22"

    def test_lifespan_open_ended(self):
        author = Author(first_name="U", family_name="L", date_of_birth=date(1929, 10, 21))
        assert author.lifespan == "1929-10-21 - "
        assert author.date_of_death_formatted == ""


def test_urls():
    assert Author(id="a1").url == "/catalog/author/a1"
    assert Genre(id="g1").url == "/catalog/genre/g1"
    assert Book(id="b1").url == "/catalog/book/b1"
    assert BookInstance(id="i1").url == "/catalog/bookinstance/i1"


def test_book_genre_defaults_to_empty():
    assert Book(title="T").genre == []
    assert Book(title="T", genre=("g1",)).genre == ["g1"]


@pytest.mark.parametrize("day,expected", [
    (date(2026, 10, 1), "October 1st, 2026"),
    (date(2026, 10, 2), "October 2nd, 2026"),
    (date(2026, 10, 3), "October 3rd, 2026"),
    (date(2026, 10, 11), "October 11th, 2026"),
    (date(2026, 10, 12), "October 12th, 2026"),
    (date(2026, 10, 19), "October 19th, 2026"),
    (date(2026, 10, 22), "October 22nd, 2026"),
])
def test_due_back_formatted(day, expected):
    copy = BookInstance(due_back=day)
    assert copy.due_back_formatted == expected
    assert copy.due_back_update_form == day.isoformat()
