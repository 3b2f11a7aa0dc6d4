from fastapi import APIRouter, Depends
from typing import Optional
from sqlalchemy.orm import Session
from casalar.api.deps import get_db
from casalar.core.auth import require_admin
from casalar.schemas import (
    OrderCreate, OrderRead, OrderDetail, OrderSummary, OrderLineRead, OrderStatusUpdate, PlacedOrderRead,
    PlacedOrderResponse, OrderResponse, OrderListResponse,
)
from casalar.services import orders

router = APIRouter()

@router.post('', response_model=PlacedOrderResponse, status_code=201)
def place_order(payload: OrderCreate, db: Session = Depends(get_db)):
    placed = orders.place_order(db, payload.customer_id, payload.items, payload.points_to_redeem)
    pedido = PlacedOrderRead(
        **OrderRead.model_validate(placed.order).model_dump(),
        discount_applied=placed.discount_applied,
        original_total=placed.original_total,
        new_points_balance=placed.new_points_balance,
        lines=[OrderLineRead.model_validate(l) for l in placed.lines],
    )
    return PlacedOrderResponse(pedido=pedido)

@router.get('/{order_id}', response_model=OrderResponse)
def get_order(order_id: int, db: Session = Depends(get_db)):
    return OrderResponse(pedido=OrderDetail.model_validate(orders.get_order(db, order_id)))

@router.get('', response_model=OrderListResponse)
def list_orders(db: Session = Depends(get_db), _=Depends(require_admin),
                status: Optional[str] = None, page: int = 1, limit: int = 20):
    # the admin UI sends an empty status for "all"
    result = orders.list_orders(db, status=status or None, page=page, limit=limit)
    return OrderListResponse(
        pedidos=[OrderSummary.model_validate(o) for o in result.items],
        pagination=result.pagination(),
    )

@router.patch('/{order_id}/status', response_model=OrderResponse)
def update_order_status(order_id: int, payload: OrderStatusUpdate, db: Session = Depends(get_db),
                        _=Depends(require_admin)):
    obj = orders.update_order_status(db, order_id, payload.status)
    return OrderResponse(message='Status atualizado com sucesso', pedido=OrderDetail.model_validate(obj))
