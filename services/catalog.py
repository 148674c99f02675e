"""
Catalog workflows: list, detail, create, update and guarded delete.

The four entity kinds share one flow, parameterized by a ``Resource``:

    raw form fields -> validate_form -> (errors)  refetch choices, RenderForm
                                     -> (cleaned) persist, RedirectTo(entity url)

Deletes go through ``check_delete``, which is re-run on every submission since
nothing locks the dependents between the confirmation page and the POST.
Store errors are never caught here.
"""

import enum
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel

from crud.store import EntityStore
from models import Author, Book, BookInstance, Genre
from schemas import AuthorCreate, BookCreate, BookInstanceCreate, GenreCreate
from services.aggregation import gather_named
from services.forms import AUTHOR_FORM, BOOK_FORM, BOOKINSTANCE_FORM, GENRE_FORM
from services.outcomes import Choice, NotFound, Outcome, RedirectTo, RenderDetail, RenderForm
from services.validation import FieldError, FormRules, validate_form

logger = logging.getLogger(__name__)

MISSING_REDIRECT = "redirect"
MISSING_NOT_FOUND = "not_found"


@dataclass(frozen=True)
class Resource:
    key: str
    label: str
    kind: type
    form: FormRules
    draft: type[BaseModel]
    list_url: str
    # (dependent kind, its reference field) that blocks a delete
    dependents: Optional[Tuple[type, str]] = None
    related_name: str = ""
    # form field -> model attribute, where they differ
    attributes: Dict[str, str] = field(default_factory=dict)

    def attribute(self, name: str) -> str:
        return self.attributes.get(name, name)


AUTHOR = Resource("author", "Author", Author, AUTHOR_FORM, AuthorCreate, "/catalog/authors",
                  dependents=(Book, "author"), related_name="author_books")
GENRE = Resource("genre", "Genre", Genre, GENRE_FORM, GenreCreate, "/catalog/genres",
                 dependents=(Book, "genre"), related_name="genre_books")
BOOK = Resource("book", "Book", Book, BOOK_FORM, BookCreate, "/catalog/books",
                dependents=(BookInstance, "book"), related_name="book_instances",
                attributes={"author": "author_id"})
BOOKINSTANCE = Resource("bookinstance", "BookInstance", BookInstance, BOOKINSTANCE_FORM,
                        BookInstanceCreate, "/catalog/bookinstances",
                        attributes={"book": "book_id"})

RESOURCES = {r.key: r for r in (AUTHOR, GENRE, BOOK, BOOKINSTANCE)}


# ---- home and lists ----

async def catalog_counts(store: EntityStore) -> Dict[str, int]:
    return await gather_named(
        book_count=store.count(Book),
        book_instance_count=store.count(BookInstance),
        book_instance_available_count=store.count(BookInstance, {"status": "Available"}),
        author_count=store.count(Author),
        genre_count=store.count(Genre),
    )


async def author_list(store: EntityStore) -> RenderDetail:
    authors = await store.find_all(Author, sort="family_name")
    return RenderDetail("author_list.html", "Author List", authors)


async def genre_list(store: EntityStore) -> RenderDetail:
    genres = await store.find_all(Genre, sort="name")
    return RenderDetail("genre_list.html", "Genre List", genres)


async def book_list(store: EntityStore) -> RenderDetail:
    results = await gather_named(
        books=store.find_all(Book, sort="title"),
        authors=store.find_all(Author),
    )
    authors = {a.id: a for a in results["authors"]}
    return RenderDetail("book_list.html", "Book List", results["books"], {"authors": authors})


async def bookinstance_list(store: EntityStore) -> RenderDetail:
    results = await gather_named(
        instances=store.find_all(BookInstance),
        books=store.find_all(Book),
    )
    books = {b.id: b for b in results["books"]}
    return RenderDetail("bookinstance_list.html", "Book Instance List",
                        results["instances"], {"books": books})


# ---- details ----

async def detail(store: EntityStore, resource: Resource, entity_id: str) -> Outcome:
    if resource is BOOK:
        return await book_detail(store, entity_id)
    if resource is BOOKINSTANCE:
        return await bookinstance_detail(store, entity_id)

    dep_kind, dep_field = resource.dependents
    results = await gather_named(
        entity=store.find_by_id(resource.kind, entity_id),
        dependents=store.find_by_foreign_key(dep_kind, dep_field, entity_id, sort="title"),
    )
    if results["entity"] is None:
        return NotFound(resource.label, entity_id)
    return RenderDetail(f"{resource.key}_detail.html", f"{resource.label} Detail",
                        results["entity"], {resource.related_name: results["dependents"]})


async def book_detail(store: EntityStore, book_id: str) -> Outcome:
    results = await gather_named(
        book=store.find_by_id(Book, book_id),
        book_instances=store.find_by_foreign_key(BookInstance, "book", book_id),
    )
    book = results["book"]
    if book is None:
        return NotFound("Book", book_id)
    refs = await gather_named(
        author=store.find_by_id(Author, book.author_id),
        genres=store.find_all(Genre, {"id": book.genre}, sort="name"),
    )
    return RenderDetail("book_detail.html", book.title, book, {
        "author": refs["author"],
        "genres": refs["genres"],
        "book_instances": results["book_instances"],
    })


async def bookinstance_detail(store: EntityStore, instance_id: str) -> Outcome:
    instance = await store.find_by_id(BookInstance, instance_id)
    if instance is None:
        return NotFound("BookInstance", instance_id)
    book = await store.find_by_id(Book, instance.book_id)
    return RenderDetail("bookinstance_detail.html", f"Copy: {book.title if book else ''}",
                        instance, {"book": book})


# ---- forms ----

async def form_references(store: EntityStore, resource: Resource,
                          fields: Mapping[str, Any]) -> Dict[str, List[Choice]]:
    """Fetch the choices a form offers, marking the ones in ``fields`` as selected."""
    if resource is BOOK:
        results = await gather_named(
            authors=store.find_all(Author, sort="family_name"),
            genres=store.find_all(Genre, sort="name"),
        )
        chosen_genres = set(fields.get("genre") or [])
        return {
            "authors": [Choice(a, a.id == fields.get("author")) for a in results["authors"]],
            "genres": [Choice(g, g.id in chosen_genres) for g in results["genres"]],
        }
    if resource is BOOKINSTANCE:
        books = await store.find_all(Book, sort="title")
        return {"books": [Choice(b, b.id == fields.get("book")) for b in books]}
    return {}


def form_fields(resource: Resource, entity) -> Dict[str, Any]:
    fields = {}
    for name in resource.form.names:
        value = getattr(entity, resource.attribute(name))
        if isinstance(value, date):
            value = value.isoformat()
        fields[name] = list(value) if isinstance(value, list) else value
    return fields


async def create_form(store: EntityStore, resource: Resource) -> RenderForm:
    fields = {name: "" for name in resource.form.names}
    references = await form_references(store, resource, fields)
    return RenderForm(f"{resource.key}_form.html", f"Create {resource.label}",
                      fields, references=references)


async def update_form(store: EntityStore, resource: Resource, entity_id: str) -> Outcome:
    entity = await store.find_by_id(resource.kind, entity_id)
    if entity is None:
        return NotFound(resource.label, entity_id)
    fields = form_fields(resource, entity)
    references = await form_references(store, resource, fields)
    return RenderForm(f"{resource.key}_form.html", f"Update {resource.label}",
                      fields, references=references, entity_id=entity_id)


async def _redisplay(store: EntityStore, resource: Resource, title: str, fields: Dict[str, Any],
                     errors: List[FieldError], entity_id: Optional[str] = None) -> RenderForm:
    logger.info("%s form rejected: %s", resource.label, ", ".join(e.field for e in errors))
    references = await form_references(store, resource, fields)
    return RenderForm(f"{resource.key}_form.html", title, fields, errors,
                      references, entity_id=entity_id)


async def submit_create(store: EntityStore, resource: Resource,
                        raw: Mapping[str, Any]) -> Outcome:
    result = validate_form(raw, resource.form)
    if not result.ok:
        return await _redisplay(store, resource, f"Create {resource.label}",
                                result.values, result.errors)

    draft = resource.draft.model_validate(result.cleaned)
    if resource is GENRE:
        found = await store.find_all(Genre, {"name": draft.name})
        if found:
            logger.info("Genre '%s' already exists as %s", draft.name, found[0].id)
            return RedirectTo(found[0].url)

    entity = resource.kind(**draft.model_dump())
    await store.insert(entity)
    return RedirectTo(entity.url)


async def submit_update(store: EntityStore, resource: Resource, entity_id: str,
                        raw: Mapping[str, Any], genre_unique_on_update: bool = False) -> Outcome:
    result = validate_form(raw, resource.form)
    title = f"Update {resource.label}"
    if not result.ok:
        return await _redisplay(store, resource, title, result.values, result.errors, entity_id)

    draft = resource.draft.model_validate(result.cleaned)
    if resource is GENRE and genre_unique_on_update:
        found = await store.find_all(Genre, {"name": draft.name})
        if any(g.id != entity_id for g in found):
            errors = [FieldError("name", "Genre with this name already exists.")]
            return await _redisplay(store, resource, title, result.values, errors, entity_id)

    entity = await store.replace(resource.kind, entity_id, draft.model_dump())
    if entity is None:
        return NotFound(resource.label, entity_id)
    return RedirectTo(entity.url)


# ---- delete guard ----

class GuardState(enum.Enum):
    MISSING = "missing"
    BLOCKED = "blocked"
    ELIGIBLE = "eligible"


@dataclass
class DeleteCheck:
    state: GuardState
    entity: Any = None
    dependents: List[Any] = field(default_factory=list)


async def check_delete(store: EntityStore, resource: Resource, entity_id: str) -> DeleteCheck:
    fetches = {"entity": store.find_by_id(resource.kind, entity_id)}
    if resource.dependents:
        dep_kind, dep_field = resource.dependents
        fetches["dependents"] = store.find_by_foreign_key(dep_kind, dep_field, entity_id)
    results = await gather_named(**fetches)

    entity = results["entity"]
    dependents = results.get("dependents", [])
    if entity is None:
        return DeleteCheck(GuardState.MISSING)
    if dependents:
        return DeleteCheck(GuardState.BLOCKED, entity, dependents)
    return DeleteCheck(GuardState.ELIGIBLE, entity)


def _missing(resource: Resource, entity_id: str, missing: str) -> Outcome:
    if missing == MISSING_NOT_FOUND:
        return NotFound(resource.label, entity_id)
    return RedirectTo(resource.list_url)


def _delete_view(resource: Resource, check: DeleteCheck) -> RenderDetail:
    related = {resource.related_name: check.dependents} if resource.dependents else {}
    return RenderDetail(f"{resource.key}_delete.html", f"Delete {resource.label}",
                        check.entity, related)


async def delete_confirm(store: EntityStore, resource: Resource, entity_id: str,
                         missing: str = MISSING_REDIRECT) -> Outcome:
    check = await check_delete(store, resource, entity_id)
    if check.state is GuardState.MISSING:
        return _missing(resource, entity_id, missing)
    return _delete_view(resource, check)


async def submit_delete(store: EntityStore, resource: Resource, entity_id: str,
                        missing: str = MISSING_REDIRECT) -> Outcome:
    check = await check_delete(store, resource, entity_id)
    if check.state is GuardState.MISSING:
        return _missing(resource, entity_id, missing)
    if check.state is GuardState.BLOCKED:
        logger.info("Delete of %s %s blocked by %d dependents",
                    resource.label, entity_id, len(check.dependents))
        return _delete_view(resource, check)

    if not await store.delete(resource.kind, entity_id):
        return _missing(resource, entity_id, missing)
    return RedirectTo(resource.list_url)
