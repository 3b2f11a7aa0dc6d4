from dataclasses import dataclass
from typing import Generic, List, TypeVar
import math

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from casalar.core.config import settings

T = TypeVar('T')


@dataclass
class Page(Generic[T]):
    items: List[T]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def pagination(self) -> dict:
        return {'page': self.page, 'limit': self.limit, 'total': self.total, 'pages': self.pages}


def clamp(page: int, limit: int) -> tuple[int, int]:
    return max(1, page or 1), max(1, min(settings.MAX_PAGE_SIZE, limit or 1))


def paginate(db: Session, stmt: Select, page: int, limit: int) -> Page:
    """Run ``stmt`` for one page and count the rows it would return unpaged."""
    page, limit = clamp(page, limit)
    total = db.execute(select(func.count()).select_from(stmt.order_by(None).subquery())).scalar_one()
    rows = db.execute(stmt.offset((page - 1) * limit).limit(limit)).scalars().unique().all()
    return Page(items=list(rows), page=page, limit=limit, total=total)
