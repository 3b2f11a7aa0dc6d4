"""Checkout and the cashback ledger it maintains.

``place_order`` runs as one unit of work on the caller's session: the
customer row is locked, every item is validated against the active catalog,
and the writes (order, lines, stock, points) either all commit or all roll
back. Stock and points are decremented with conditional UPDATEs whose row
counts are checked, so a concurrent checkout that got to the last unit first
makes this one fail instead of driving stock negative.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from casalar.core.errors import (
    StoreError, InvalidInput, NotFound, ProductNotFound, InsufficientStock, InsufficientPoints,
)
from casalar.db.models import Customer, Order, OrderLine, OrderStatus, Product
from casalar.security.utils import now_utc
from casalar.services import cashback
from casalar.services.paging import Page, paginate

logger = logging.getLogger(__name__)


@dataclass
class CartItem:
    product_id: int
    quantity: int


@dataclass
class PlacedOrder:
    order: Order
    discount_applied: Decimal
    original_total: Decimal
    new_points_balance: int
    lines: List[OrderLine] = field(default_factory=list)

    @property
    def points_earned(self) -> int:
        return self.order.points_earned

    @property
    def total(self) -> Decimal:
        return self.order.total


def _normalize_items(items: Iterable) -> List[CartItem]:
    cart = []
    for it in items or []:
        if isinstance(it, CartItem):
            cart.append(it)
        elif isinstance(it, dict):
            cart.append(CartItem(product_id=it['product_id'], quantity=it['quantity']))
        else:
            cart.append(CartItem(product_id=it.product_id, quantity=it.quantity))
    if not cart:
        raise InvalidInput('Pelo menos um item é obrigatório')
    for it in cart:
        if not isinstance(it.quantity, int) or isinstance(it.quantity, bool) or it.quantity <= 0:
            raise InvalidInput('Quantidade deve ser maior que 0')
    return cart


def place_order(db: Session, customer_id: int, items: Iterable, points_to_redeem: int = 0) -> PlacedOrder:
    cart = _normalize_items(items)
    if points_to_redeem is None:
        points_to_redeem = 0
    if points_to_redeem < 0:
        raise InvalidInput('Pontos utilizados inválidos')

    try:
        customer = db.execute(
            select(Customer).where(Customer.id == customer_id).with_for_update()
        ).scalar_one_or_none()
        if customer is None:
            raise NotFound('Usuário não encontrado')
        balance = customer.points
        if points_to_redeem > balance:
            raise InsufficientPoints(points_to_redeem, balance)

        subtotal = Decimal('0')
        validated = []
        requested: Dict[int, int] = {}
        for it in cart:
            product = db.execute(
                select(Product).where(Product.id == it.product_id, Product.active.is_(True))
            ).scalar_one_or_none()
            if product is None:
                raise ProductNotFound(it.product_id)
            requested[product.id] = requested.get(product.id, 0) + it.quantity
            if product.stock < requested[product.id]:
                raise InsufficientStock(product.id, product.name, product.stock)
            unit_price = cashback.money(product.price)
            line_total = cashback.money(unit_price * it.quantity)
            subtotal += line_total
            validated.append((product, it.quantity, unit_price, line_total))

        subtotal = cashback.money(subtotal)
        discount = cashback.max_discount(points_to_redeem, subtotal)
        total = max(Decimal('0.00'), subtotal - discount)
        earned = cashback.points_earned(total)

        order = Order(
            customer_id=customer.id,
            total=total,
            points_redeemed=points_to_redeem,
            points_earned=earned,
            status=OrderStatus.CONFIRMED,
            created_at=now_utc(),
        )
        db.add(order)
        db.flush()

        lines = []
        for product, quantity, unit_price, line_total in validated:
            line = OrderLine(order_id=order.id, product_id=product.id, quantity=quantity,
                             unit_price=unit_price, subtotal=line_total)
            db.add(line)
            lines.append(line)
            res = db.execute(
                update(Product)
                .where(Product.id == product.id, Product.active.is_(True), Product.stock >= quantity)
                .values(stock=Product.stock - quantity, updated_at=now_utc())
                .execution_options(synchronize_session=False)
            )
            if res.rowcount != 1:
                db.refresh(product)
                raise InsufficientStock(product.id, product.name, product.stock)

        new_balance = balance - points_to_redeem + earned
        res = db.execute(
            update(Customer)
            .where(Customer.id == customer.id, Customer.points >= points_to_redeem)
            .values(points=Customer.points - points_to_redeem + earned)
            .execution_options(synchronize_session=False)
        )
        if res.rowcount != 1:
            db.refresh(customer)
            raise InsufficientPoints(points_to_redeem, customer.points)

        db.commit()
    except StoreError as exc:
        db.rollback()
        logger.warning('checkout rejected for customer=%s: %s', customer_id, exc.message)
        raise
    except Exception:
        db.rollback()
        raise

    db.refresh(order)
    logger.info(
        'order placed id=%s customer=%s total=%s redeemed=%s earned=%s',
        order.id, order.customer_id, order.total, points_to_redeem, earned,
    )
    return PlacedOrder(order=order, discount_applied=discount, original_total=subtotal,
                       new_points_balance=new_balance, lines=list(order.lines))


def get_order(db: Session, order_id: int) -> Order:
    obj = db.execute(
        select(Order)
        .where(Order.id == order_id)
        .options(selectinload(Order.lines).selectinload(OrderLine.product), selectinload(Order.customer))
    ).scalar_one_or_none()
    if not obj:
        raise NotFound('Pedido não encontrado')
    return obj


def list_orders(db: Session, status: Optional[OrderStatus] = None, page: int = 1, limit: int = 20) -> Page:
    stmt = select(Order).options(selectinload(Order.customer))
    if status is not None:
        try:
            status = OrderStatus(status)
        except ValueError:
            raise InvalidInput('Status inválido')
        stmt = stmt.where(Order.status == status)
    stmt = stmt.order_by(Order.created_at.desc(), Order.id.desc())
    return paginate(db, stmt, page, limit)


def update_order_status(db: Session, order_id: int, status) -> Order:
    try:
        status = OrderStatus(status)
    except ValueError:
        raise InvalidInput('Status inválido')
    obj = get_order(db, order_id)
    previous = obj.status
    obj.status = status
    db.add(obj); db.commit(); db.refresh(obj)
    logger.info('order status changed id=%s %s -> %s', obj.id, previous.value, status.value)
    return obj
