import logging
from typing import List, Optional

from sqlalchemy import select, or_
from sqlalchemy.orm import Session

from casalar.core.errors import NotFound
from casalar.db.models import Product
from casalar.schemas import ProductCreate, ProductUpdate
from casalar.security.utils import now_utc
from casalar.services.paging import Page, paginate

logger = logging.getLogger(__name__)


def list_products(db: Session, category: Optional[str] = None, search: Optional[str] = None,
                  page: int = 1, limit: int = 12) -> Page:
    stmt = select(Product).where(Product.active.is_(True))
    if category:
        stmt = stmt.where(Product.category.icontains(category, autoescape=True))
    if search:
        stmt = stmt.where(or_(
            Product.name.icontains(search, autoescape=True),
            Product.description.icontains(search, autoescape=True),
        ))
    stmt = stmt.order_by(Product.created_at.desc(), Product.id.desc())
    return paginate(db, stmt, page, limit)


def get_product(db: Session, product_id: int) -> Product:
    obj = db.get(Product, product_id)
    if not obj or not obj.active:
        raise NotFound('Produto não encontrado')
    return obj


def _get_any(db: Session, product_id: int) -> Product:
    obj = db.get(Product, product_id)
    if not obj:
        raise NotFound('Produto não encontrado')
    return obj


def create_product(db: Session, payload: ProductCreate) -> Product:
    now = now_utc()
    obj = Product(**payload.model_dump(), active=True, created_at=now, updated_at=now)
    db.add(obj); db.commit(); db.refresh(obj)
    logger.info('product created id=%s name=%r', obj.id, obj.name)
    return obj


def update_product(db: Session, product_id: int, payload: ProductUpdate) -> Product:
    obj = _get_any(db, product_id)
    changes = payload.model_dump(exclude_unset=True)
    for k, v in changes.items():
        if v is None and k in ('name', 'price', 'category', 'stock', 'active'):
            continue
        setattr(obj, k, v)
    obj.updated_at = now_utc()
    db.add(obj); db.commit(); db.refresh(obj)
    logger.info('product updated id=%s fields=%s', obj.id, sorted(changes))
    return obj


def deactivate_product(db: Session, product_id: int) -> Product:
    obj = _get_any(db, product_id)
    obj.active = False
    obj.updated_at = now_utc()
    db.add(obj); db.commit(); db.refresh(obj)
    logger.info('product deactivated id=%s', obj.id)
    return obj


def list_categories(db: Session) -> List[str]:
    stmt = select(Product.category).where(Product.active.is_(True)).distinct().order_by(Product.category)
    return [c for c in db.execute(stmt).scalars().all() if c]


def list_low_stock(db: Session, threshold: int) -> List[Product]:
    stmt = (
        select(Product)
        .where(Product.active.is_(True), Product.stock <= threshold)
        .order_by(Product.stock.asc(), Product.name.asc())
    )
    return list(db.execute(stmt).scalars().all())
