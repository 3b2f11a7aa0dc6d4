from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, Text, Boolean, DateTime, ForeignKey, Numeric, CheckConstraint, Enum as SAEnum
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from casalar.db.session import Base

class OrderStatus(str, Enum):
    PENDING = "pendente"
    CONFIRMED = "confirmado"
    PROCESSING = "processando"
    SHIPPED = "enviado"
    DELIVERED = "entregue"
    CANCELED = "cancelado"

class Product(Base):
    __tablename__ = 'products'
    __table_args__ = (
        CheckConstraint('price > 0', name='ck_products_price_positive'),
        CheckConstraint('stock >= 0', name='ck_products_stock_non_negative'),
    )
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(240), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, default='')
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    category: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    image_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(), default=lambda: datetime.utcnow())
    updated_at: Mapped[datetime] = mapped_column(DateTime(), default=lambda: datetime.utcnow())

class Customer(Base):
    __tablename__ = 'customers'
    __table_args__ = (CheckConstraint('points >= 0', name='ck_customers_points_non_negative'),)
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(), default=lambda: datetime.utcnow())
    orders = relationship('Order', back_populates='customer')

class Order(Base):
    __tablename__ = 'orders'
    __table_args__ = (CheckConstraint('total >= 0', name='ck_orders_total_non_negative'),)
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    customer_id: Mapped[int] = mapped_column(ForeignKey('customers.id'), index=True, nullable=False)
    total: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    points_redeemed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    points_earned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[OrderStatus] = mapped_column(
        SAEnum(OrderStatus, name='order_status', native_enum=False, length=20,
               values_callable=lambda e: [m.value for m in e]),
        default=OrderStatus.CONFIRMED, index=True,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(), default=lambda: datetime.utcnow(), index=True)

    customer = relationship('Customer', back_populates='orders')
    lines = relationship('OrderLine', back_populates='order', cascade='all, delete-orphan', order_by='OrderLine.id')

    @property
    def customer_name(self) -> Optional[str]:
        return self.customer.name if self.customer else None

    @property
    def customer_email(self) -> Optional[str]:
        return self.customer.email if self.customer else None

class OrderLine(Base):
    __tablename__ = 'order_lines'
    __table_args__ = (CheckConstraint('quantity >= 1', name='ck_order_lines_quantity_positive'),)
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey('orders.id', ondelete='CASCADE'), index=True)
    # weak reference: products are soft-deleted, never removed
    product_id: Mapped[int] = mapped_column(ForeignKey('products.id'))
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    order = relationship('Order', back_populates='lines')
    product = relationship('Product')

    @property
    def product_name(self) -> Optional[str]:
        return self.product.name if self.product else None

class Administrator(Base):
    __tablename__ = 'administrators'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime(), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(), default=lambda: datetime.utcnow())
    updated_at: Mapped[datetime] = mapped_column(DateTime(), default=lambda: datetime.utcnow())
