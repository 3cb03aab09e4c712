"""分页查询工具。"""

from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session


def paginate(db: Session, stmt: Select[Any], *, page: int, page_size: int) -> tuple[list[Any], int]:
    """按页码查询，返回当前页对象与总数。"""
    total = db.execute(select(func.count()).select_from(stmt.order_by(None).subquery())).scalar_one()
    items = db.execute(stmt.offset((page - 1) * page_size).limit(page_size)).scalars().all()
    return list(items), int(total)


def pagination_meta(*, page: int, page_size: int, total: int) -> dict[str, Any]:
    return {"pagination": {"page": page, "page_size": page_size, "total": total}}
