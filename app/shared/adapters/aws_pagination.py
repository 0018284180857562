from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

import structlog

from app.shared.core.ops_metrics import AWS_COLLECTION_PAGES

logger = structlog.get_logger()

T = TypeVar("T")

# Opaque vendor continuation token (Marker, NextToken, position, ...)
Cursor = Any


@dataclass(frozen=True)
class Page(Generic[T]):
    items: Sequence[T]
    next_cursor: Optional[Cursor] = None


FetchPage = Callable[[Optional[Cursor]], Awaitable[Page[T]]]


async def collect_pages(
    fetch_page: FetchPage[T],
    *,
    operation_name: str,
    max_items: int | None = None,
) -> list[T]:
    """
    Drain a paginated AWS listing into one list, preserving vendor order.

    The loop runs until the vendor stops returning a cursor; there is no page
    cap. `max_items` stops early once enough items have been read and
    truncates the result to exactly that many. Any error raised by
    `fetch_page` propagates and the partial accumulation is discarded.
    """
    if max_items is not None and max_items <= 0:
        raise ValueError("max_items must be > 0 when provided")

    collected: list[T] = []
    cursor: Optional[Cursor] = None
    pages_seen = 0
    while True:
        page = await fetch_page(cursor)
        pages_seen += 1
        collected.extend(page.items)

        if max_items is not None and len(collected) >= max_items:
            if page.next_cursor:
                logger.debug(
                    "aws_collection_truncated",
                    operation=operation_name,
                    max_items=max_items,
                    pages=pages_seen,
                )
            collected = collected[:max_items]
            break

        cursor = page.next_cursor or None
        if cursor is None:
            break

    AWS_COLLECTION_PAGES.labels(operation=operation_name).observe(pages_seen)
    return collected


def aws_token_pages(
    call: Callable[..., Awaitable[dict[str, Any]]],
    *,
    items_key: str,
    request_token: str,
    response_token: str | None = None,
    transform: Callable[[Any], T] | None = None,
    **params: Any,
) -> FetchPage[T]:
    """
    Adapt a raw AWS list call into a `fetch_page` function.

    `request_token`/`response_token` name the continuation fields, e.g.
    Marker/NextMarker, NextToken/NextToken or
    ExclusiveStartTableName/LastEvaluatedTableName.
    """
    response_key = response_token or request_token

    async def fetch_page(cursor: Optional[Cursor]) -> Page[T]:
        kwargs = dict(params)
        if cursor:
            kwargs[request_token] = cursor
        response = await call(**kwargs)
        raw_items = response.get(items_key) or []
        items = [transform(raw) for raw in raw_items] if transform else list(raw_items)
        return Page(items=items, next_cursor=response.get(response_key))

    return fetch_page
