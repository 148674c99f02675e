# models.py
import uuid
from datetime import date

from sqlalchemy import Column, Date, ForeignKey, String, Table, Text
from sqlalchemy.orm import reconstructor

from database import Base

BOOKINSTANCE_STATUSES = ("Available", "Maintenance", "Loaned", "Reserved")


def new_id() -> str:
    return uuid.uuid4().hex


def _iso(value: date | None) -> str:
    return value.isoformat() if value else ""


def _ordinal(day: int) -> str:
    if 11 <= day % 100 <= 13:
        return f"{day}th"
    suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


# Book N-M Genre; the only place genre references are stored
book_genre = Table(
    "book_genre",
    Base.metadata,
    Column("book_id", String(32), ForeignKey("books.id"), primary_key=True),
    Column("genre_id", String(32), ForeignKey("genres.id"), primary_key=True, index=True),
)


class Author(Base):
    __tablename__ = "authors"
    id = Column(String(32), primary_key=True, default=new_id)
    first_name = Column(String(100), nullable=False)
    family_name = Column(String(100), nullable=False, index=True)
    date_of_birth = Column(Date, nullable=True)
    date_of_death = Column(Date, nullable=True)

    @property
    def name(self) -> str:
        if self.first_name and self.family_name:
            return f"{self.family_name}, {self.first_name}"
        return ""

    @property
    def date_of_birth_formatted(self) -> str:
        return _iso(self.date_of_birth)

    @property
    def date_of_death_formatted(self) -> str:
        return _iso(self.date_of_death)

    @property
    def lifespan(self) -> str:
        return f"{self.date_of_birth_formatted} - {self.date_of_death_formatted}"

    @property
    def url(self) -> str:
        return f"/catalog/author/{self.id}"


class Genre(Base):
    __tablename__ = "genres"
    id = Column(String(32), primary_key=True, default=new_id)
    # uniqueness is checked by the create workflow, not by a constraint
    name = Column(String(100), nullable=False, index=True)

    @property
    def url(self) -> str:
        return f"/catalog/genre/{self.id}"


class Book(Base):
    """A title in the catalog.

    ``author_id`` is a plain reference. ``genre`` holds the ids stored in
    ``book_genre``; the store fills it on load and writes it on insert/replace.
    """
    __tablename__ = "books"
    id = Column(String(32), primary_key=True, default=new_id)
    title = Column(String, nullable=False, index=True)
    author_id = Column(String(32), ForeignKey("authors.id"), nullable=False, index=True)
    summary = Column(Text, nullable=False)
    isbn = Column(String, nullable=False)

    def __init__(self, genre=None, **kwargs):
        super().__init__(**kwargs)
        self.genre = list(genre or [])

    @reconstructor
    def _init_on_load(self):
        self.genre = []

    @property
    def url(self) -> str:
        return f"/catalog/book/{self.id}"


class BookInstance(Base):
    __tablename__ = "bookinstances"
    id = Column(String(32), primary_key=True, default=new_id)
    book_id = Column(String(32), ForeignKey("books.id"), nullable=False, index=True)
    imprint = Column(String, nullable=False)
    status = Column(String(20), nullable=False, default="Maintenance")
    due_back = Column(Date, nullable=False, default=date.today)

    @property
    def due_back_formatted(self) -> str:
        if not self.due_back:
            return ""
        d = self.due_back
        return f"{d:%B} {_ordinal(d.day)}, {d.year}"

    @property
    def due_back_update_form(self) -> str:
        return _iso(self.due_back)

    @property
    def url(self) -> str:
        return f"/catalog/bookinstance/{self.id}"
