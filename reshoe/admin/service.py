# module reshoe.admin.service

from typing import Any, Dict, Optional
import logging

from reshoe.admin import repository as admin_repository
from reshoe.users import repository as users_repository
from reshoe.utils.pagination import page_window, paginated
from reshoe.utils.security import Role

logger = logging.getLogger(__name__)

def table_counts() -> Dict[str, int]:
    return {f"{t}_count": admin_repository.count_table_rows(t) for t in admin_repository.STAT_TABLES}

def list_users(role: Optional[Role] = None, page: int = 1, limit: int = 50) -> Dict[str, Any]:
    offset, limit = page_window(page, limit)
    role_value = role.value if role else None
    rows = users_repository.list_users(role=role_value, offset=offset, limit=limit)
    total = users_repository.count_users(role_value)
    return paginated(rows, total, page, limit)
