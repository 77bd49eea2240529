import math
from typing import Any, Dict, List, Tuple


def page_window(page: int, limit: int) -> Tuple[int, int]:
    """(offset, limit) pour une page 1-indexée."""
    page = max(1, int(page or 1))
    limit = max(1, int(limit or 1))
    return (page - 1) * limit, limit


def paginated(items: List[dict], total: int, page: int, limit: int) -> Dict[str, Any]:
    return {
        "items": items,
        "total": total,
        "page": page,
        "pages": math.ceil(total / limit) if limit else 0,
    }
