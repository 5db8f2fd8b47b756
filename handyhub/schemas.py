"""Response envelope shared by every router"""

import math
from typing import Any, Optional

from pydantic import BaseModel

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


def build_pagination(page: int, limit: int, total: int) -> Pagination:
    return Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit) if limit else 0)


def ok(data: Any = None, message: Optional[str] = None, **extra) -> dict:
    """Build a ``{success, message?, data}`` body"""
    body: dict[str, Any] = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body


def paginated(items: list, page: int, limit: int, total: int, **extra) -> dict:
    return ok(data=items, pagination=build_pagination(page, limit, total), **extra)


def error_body(message: str, errors: Optional[Any] = None) -> dict:
    body: dict[str, Any] = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return body
