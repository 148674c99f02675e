"""Concurrent, named lookups joined into one result bag."""

import asyncio
from typing import Any, Awaitable, Dict


async def gather_named(**fetches: Awaitable[Any]) -> Dict[str, Any]:
    """Run independent fetches concurrently and return their results by name.

    All fetches are scheduled before any is awaited. The first failure is
    raised once it happens; siblings still in flight are left to finish on
    their own.

        results = await gather_named(
            author=store.find_by_id(Author, author_id),
            author_books=store.find_by_foreign_key(Book, "author", author_id),
        )
    """
    names = list(fetches)
    values = await asyncio.gather(*fetches.values())
    return dict(zip(names, values))
