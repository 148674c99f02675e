# main.py: Local Library catalog
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

import services.catalog as catalog
from config import Settings, get_settings
from crud.store import EntityStore
from database import get_store, init_db
from exceptions import NotFoundError, StoreError
from logging_config import setup_logging
from services.outcomes import NotFound, Outcome, RedirectTo, RenderDetail, RenderForm

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent


def _templates_dir(settings: Settings) -> Path:
    path = settings.templates_dir
    return path if path.is_absolute() else BASE_DIR / path


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_dir, file_enabled=settings.log_to_file)
    await init_db()
    logger.info("Catalog started with database %s", settings.database_url)
    yield


app = FastAPI(title="Local Library", lifespan=lifespan)
templates = Jinja2Templates(directory=str(_templates_dir(get_settings())))


# ─────────────────────── outcome → response ───────────────────────
def respond(request: Request, outcome: Outcome):
    if isinstance(outcome, RedirectTo):
        return RedirectResponse(outcome.location, status_code=303)
    if isinstance(outcome, NotFound):
        raise NotFoundError(outcome.kind, outcome.entity_id)
    if isinstance(outcome, RenderForm):
        # a rejected form is re-displayed with 200, not an error status
        return templates.TemplateResponse(request, outcome.template, {
            "title": outcome.title,
            "fields": outcome.fields,
            "errors": outcome.errors,
            "entity_id": outcome.entity_id,
            **outcome.references,
        })
    if isinstance(outcome, RenderDetail):
        return templates.TemplateResponse(request, outcome.template, {
            "title": outcome.title,
            "entity": outcome.entity,
            **outcome.related,
        })
    raise TypeError(f"Unexpected outcome {outcome!r}")


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return templates.TemplateResponse(request, "error.html", {
        "title": exc.message, "message": exc.message, "status": 404,
    }, status_code=404)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc,
                 exc_info=exc)
    return templates.TemplateResponse(request, "error.html", {
        "title": "Error", "message": "Something went wrong. Please try again later.", "status": 500,
    }, status_code=500)


def get_resource(kind: str) -> catalog.Resource:
    try:
        return catalog.RESOURCES[kind]
    except KeyError:
        raise NotFoundError("Page", kind) from None


async def read_form(request: Request, resource: catalog.Resource) -> dict:
    form = await request.form()
    raw = {}
    for spec in resource.form.fields:
        if spec.multi:
            raw[spec.name] = form.getlist(spec.name)
        elif spec.name in form:
            raw[spec.name] = form.get(spec.name)
    return raw


# ─────────────────────── ROUTES ───────────────────────
@app.get("/")
async def root():
    return RedirectResponse("/catalog", status_code=303)


@app.get("/catalog", response_class=HTMLResponse)
async def index(request: Request, store: EntityStore = Depends(get_store)):
    counts = await catalog.catalog_counts(store)
    return templates.TemplateResponse(request, "index.html", {
        "title": "Local Library Home", "data": counts,
    })


@app.get("/catalog/authors", response_class=HTMLResponse)
async def author_list(request: Request, store: EntityStore = Depends(get_store)):
    return respond(request, await catalog.author_list(store))


@app.get("/catalog/genres", response_class=HTMLResponse)
async def genre_list(request: Request, store: EntityStore = Depends(get_store)):
    return respond(request, await catalog.genre_list(store))


@app.get("/catalog/books", response_class=HTMLResponse)
async def book_list(request: Request, store: EntityStore = Depends(get_store)):
    return respond(request, await catalog.book_list(store))


@app.get("/catalog/bookinstances", response_class=HTMLResponse)
async def bookinstance_list(request: Request, store: EntityStore = Depends(get_store)):
    return respond(request, await catalog.bookinstance_list(store))


@app.get("/catalog/{kind}/create", response_class=HTMLResponse)
async def create_form(request: Request,
                      resource: catalog.Resource = Depends(get_resource),
                      store: EntityStore = Depends(get_store)):
    return respond(request, await catalog.create_form(store, resource))


@app.post("/catalog/{kind}/create")
async def create_submit(request: Request,
                        resource: catalog.Resource = Depends(get_resource),
                        store: EntityStore = Depends(get_store)):
    raw = await read_form(request, resource)
    return respond(request, await catalog.submit_create(store, resource, raw))


@app.get("/catalog/{kind}/{entity_id}", response_class=HTMLResponse)
async def detail(request: Request, entity_id: str,
                 resource: catalog.Resource = Depends(get_resource),
                 store: EntityStore = Depends(get_store)):
    return respond(request, await catalog.detail(store, resource, entity_id))


@app.get("/catalog/{kind}/{entity_id}/update", response_class=HTMLResponse)
async def update_form(request: Request, entity_id: str,
                      resource: catalog.Resource = Depends(get_resource),
                      store: EntityStore = Depends(get_store)):
    return respond(request, await catalog.update_form(store, resource, entity_id))


@app.post("/catalog/{kind}/{entity_id}/update")
async def update_submit(request: Request, entity_id: str,
                        resource: catalog.Resource = Depends(get_resource),
                        store: EntityStore = Depends(get_store),
                        settings: Settings = Depends(get_settings)):
    raw = await read_form(request, resource)
    return respond(request, await catalog.submit_update(
        store, resource, entity_id, raw,
        genre_unique_on_update=settings.genre_unique_on_update,
    ))


@app.get("/catalog/{kind}/{entity_id}/delete", response_class=HTMLResponse)
async def delete_confirm(request: Request, entity_id: str,
                         resource: catalog.Resource = Depends(get_resource),
                         store: EntityStore = Depends(get_store),
                         settings: Settings = Depends(get_settings)):
    return respond(request, await catalog.delete_confirm(
        store, resource, entity_id, missing=settings.missing_delete_target))


@app.post("/catalog/{kind}/{entity_id}/delete")
async def delete_submit(request: Request, entity_id: str,
                        resource: catalog.Resource = Depends(get_resource),
                        store: EntityStore = Depends(get_store),
                        settings: Settings = Depends(get_settings)):
    return respond(request, await catalog.submit_delete(
        store, resource, entity_id, missing=settings.missing_delete_target))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", reload=True)
