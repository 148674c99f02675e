from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


# Drafts are built from cleaned form fields; aliases are the form field names.

class AuthorCreate(BaseModel):
    first_name: str
    family_name: str
    date_of_birth: Optional[date] = None
    date_of_death: Optional[date] = None


class GenreCreate(BaseModel):
    name: str


class BookCreate(BaseModel):
    title: str
    author_id: str = Field(alias="author")
    summary: str
    isbn: str
    genre: List[str] = []


class BookInstanceCreate(BaseModel):
    book_id: str = Field(alias="book")
    imprint: str
    status: Literal["Available", "Maintenance", "Loaned", "Reserved"] = "Maintenance"
    due_back: date = Field(default_factory=date.today)

    @field_validator("due_back", mode="before")
    @classmethod
    def default_due_back(cls, v):
        return date.today() if v is None else v
