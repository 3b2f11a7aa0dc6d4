import logging
from typing import Optional

from sqlalchemy import select, or_
from sqlalchemy.orm import Session, selectinload

from casalar.core.errors import InvalidInput, NotFound
from casalar.db.models import Customer, Order, OrderLine
from casalar.schemas import CustomerCreate
from casalar.security.utils import now_utc
from casalar.services.paging import Page, paginate

logger = logging.getLogger(__name__)

SORTS = {
    'pontos_desc': (Customer.points.desc(), Customer.name.asc()),
    'pontos_asc': (Customer.points.asc(), Customer.name.asc()),
    'nome_asc': (Customer.name.asc(),),
    'nome_desc': (Customer.name.desc(),),
}
DEFAULT_SORT = 'pontos_desc'


def register_customer(db: Session, payload: CustomerCreate) -> Customer:
    email = str(payload.email)
    if db.query(Customer).filter(Customer.email == email).first():
        raise InvalidInput('Email já cadastrado')
    obj = Customer(name=payload.name, email=email, phone=payload.phone, points=0, created_at=now_utc())
    db.add(obj); db.commit(); db.refresh(obj)
    logger.info('customer registered id=%s', obj.id)
    return obj


def list_customers(db: Session, search: Optional[str] = None, sort: Optional[str] = None,
                   page: int = 1, limit: int = 20) -> Page:
    stmt = select(Customer)
    if search:
        # autoescape keeps % and _ typed by the user literal
        stmt = stmt.where(or_(Customer.name.icontains(search, autoescape=True),
                              Customer.email.icontains(search, autoescape=True)))
    order = SORTS.get((sort or DEFAULT_SORT).lower(), SORTS[DEFAULT_SORT])
    stmt = stmt.order_by(*order, Customer.id.asc())
    return paginate(db, stmt, page, limit)


def get_customer(db: Session, customer_id: int) -> Customer:
    obj = db.get(Customer, customer_id)
    if not obj:
        raise NotFound('Usuário não encontrado')
    return obj


def get_points(db: Session, customer_id: int) -> int:
    return get_customer(db, customer_id).points


def list_customer_orders(db: Session, customer_id: int, page: int = 1, limit: int = 10) -> Page:
    get_customer(db, customer_id)
    stmt = (
        select(Order)
        .where(Order.customer_id == customer_id)
        .options(selectinload(Order.lines).selectinload(OrderLine.product), selectinload(Order.customer))
        .order_by(Order.created_at.desc(), Order.id.desc())
    )
    return paginate(db, stmt, page, limit)
