from collections.abc import Callable
from typing import Any, TypeVar

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.core.pagination import Page

T = TypeVar("T")


def build_link_header(request: Request, page: Page[Any]) -> str:
    """RFC 5988 ``Link`` header with first/prev/next/last relations."""

    def link(page_number: int, rel: str) -> str:
        url = request.url.include_query_params(page=page_number, size=page.size)
        return f'<{url}>; rel="{rel}"'

    last_page = max(page.total_pages - 1, 0)
    links = [link(0, "first")]
    if page.has_previous:
        links.append(link(page.page - 1, "prev"))
    if page.has_next:
        links.append(link(page.page + 1, "next"))
    links.append(link(last_page, "last"))
    return ", ".join(links)


def paged_response(
    request: Request,
    page: Page[T],
    serializer: Callable[[T], BaseModel],
) -> JSONResponse:
    headers = {
        "X-Total-Count": str(page.total),
        "X-Total-Pages": str(page.total_pages),
        "X-Page": str(page.page),
        "X-Size": str(page.size),
        "Link": build_link_header(request, page),
    }
    return JSONResponse(
        content=[serializer(item).model_dump(mode="json") for item in page.items],
        headers=headers,
    )
