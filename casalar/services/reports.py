"""Read-only aggregates over the order ledger for the admin dashboard.

Canceled orders never count towards revenue, order totals or paying
customers.
"""
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Union

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from casalar.db.models import Order, OrderStatus, Product
from casalar.security.utils import now_utc
from casalar.services.cashback import money

MONTH_LABELS = ['Jan', 'Fev', 'Mar', 'Abr', 'Mai', 'Jun', 'Jul', 'Ago', 'Set', 'Out', 'Nov', 'Dez']

Bound = Union[date, datetime, None]


def _lower(bound: Bound) -> Optional[datetime]:
    if bound is None or isinstance(bound, datetime):
        return bound
    return datetime.combine(bound, time.min)


def _upper_exclusive(bound: Bound) -> Optional[datetime]:
    # a bare date covers the whole day
    if bound is None:
        return None
    if isinstance(bound, datetime):
        return bound + timedelta(microseconds=1)
    return datetime.combine(bound + timedelta(days=1), time.min)


def _ledger_filters(start: Bound = None, end: Bound = None) -> list:
    conds = [Order.status != OrderStatus.CANCELED]
    lo, hi = _lower(start), _upper_exclusive(end)
    if lo is not None:
        conds.append(Order.created_at >= lo)
    if hi is not None:
        conds.append(Order.created_at < hi)
    return conds


def get_dashboard_stats(db: Session, start: Bound = None, end: Bound = None) -> Dict[str, object]:
    conds = _ledger_filters(start, end)
    products = db.execute(select(func.count(Product.id)).where(Product.active.is_(True))).scalar_one()
    customers = db.execute(select(func.count(func.distinct(Order.customer_id))).where(*conds)).scalar_one()
    revenue = db.execute(select(func.coalesce(func.sum(Order.total), 0)).where(*conds)).scalar_one()
    orders = db.execute(select(func.count(Order.id)).where(*conds)).scalar_one()
    return {
        'totalProducts': products,
        'totalCustomers': customers,
        'totalRevenue': money(revenue or 0),
        'totalOrders': orders,
    }


def _trailing_months(now: datetime, count: int = 12) -> List[tuple]:
    months = []
    year, month = now.year, now.month
    for _ in range(count):
        months.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(months))


def get_monthly_revenue(db: Session, now: Optional[datetime] = None) -> List[Dict[str, object]]:
    """One bucket per calendar month for the trailing 12 months, oldest first.

    Months without orders are present with zero revenue so the series is
    continuous.
    """
    now = now or now_utc()
    months = _trailing_months(now)
    first_year, first_month = months[0]
    start = datetime(first_year, first_month, 1)
    buckets = {ym: Decimal('0') for ym in months}

    rows = db.execute(
        select(Order.created_at, Order.total).where(*_ledger_filters(start, now))
    ).all()
    for created_at, total in rows:
        key = (created_at.year, created_at.month)
        if key in buckets:
            buckets[key] += Decimal(total)

    return [
        {'month_label': MONTH_LABELS[m - 1], 'month_key': f"{y:04d}-{m:02d}", 'revenue': money(buckets[(y, m)])}
        for y, m in months
    ]
