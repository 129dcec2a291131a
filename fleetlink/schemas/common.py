from typing import Any


# ─── Helper Functions ─────────────────────────────────────────────────────────
def success_response(message: str, data: Any = None) -> dict:
    """Return a standardized success dict (used in route handlers)."""
    return {"success": True, "message": message, "data": data}


def paginated_response(message: str, page_result: dict) -> dict:
    """
    Wrap a service page ({data, total, page, limit, totalPages}) in the
    standard envelope.
    """
    return {"success": True, "message": message, **page_result}


def paginate(data: list, total: int, page: int, limit: int) -> dict:
    """Build the page dict returned by list services."""
    total_pages = (total + limit - 1) // limit if limit > 0 else 0
    return {
        "data": data,
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": total_pages,
    }
