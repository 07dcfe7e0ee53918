# Overview: Page/per_page parsing and query pagination.

from __future__ import annotations

from flask import request

DEFAULT_PER_PAGE = 20
MAX_PER_PAGE = 100


def page_args() -> tuple[int, int]:
    """
    Read page/per_page from the query string.

    `limit` is accepted as an alias for per_page. per_page is clamped to
    MAX_PER_PAGE and page to >= 1.
    """
    page = request.args.get("page", type=int) or 1
    per_page = request.args.get("per_page", type=int) or request.args.get("limit", type=int) or DEFAULT_PER_PAGE
    return max(page, 1), max(1, min(per_page, MAX_PER_PAGE))


def paginate(query, page: int, per_page: int) -> tuple[list, dict]:
    per_page = max(1, min(per_page or DEFAULT_PER_PAGE, MAX_PER_PAGE))
    page = max(page or 1, 1)

    total = query.order_by(None).count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    items = query.offset((page - 1) * per_page).limit(per_page).all()

    return items, {
        "page": page,
        "per_page": per_page,
        "total": total,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_prev": page > 1,
    }
