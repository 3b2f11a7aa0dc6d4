from fastapi import APIRouter, Depends
from typing import Optional
from sqlalchemy.orm import Session
from casalar.api.deps import get_db
from casalar.core.auth import require_admin
from casalar.schemas import (
    CustomerCreate, CustomerRead, CustomerResponse, CustomerListResponse, PointsResponse,
    OrderDetail, CustomerOrdersResponse,
)
from casalar.services import customers

router = APIRouter()

@router.get('', response_model=CustomerListResponse)
def list_customers(db: Session = Depends(get_db), _=Depends(require_admin),
                   busca: Optional[str] = None, sort: Optional[str] = None, ordenar: Optional[str] = None,
                   page: int = 1, limit: int = 20):
    result = customers.list_customers(db, search=busca, sort=sort or ordenar, page=page, limit=limit)
    return CustomerListResponse(
        usuarios=[CustomerRead.model_validate(c) for c in result.items],
        pagination=result.pagination(),
    )

@router.post('', response_model=CustomerResponse, status_code=201)
def register_customer(payload: CustomerCreate, db: Session = Depends(get_db)):
    obj = customers.register_customer(db, payload)
    return CustomerResponse(message='Usuário cadastrado com sucesso', usuario=CustomerRead.model_validate(obj))

@router.get('/{customer_id}', response_model=CustomerResponse)
def get_customer(customer_id: int, db: Session = Depends(get_db)):
    return CustomerResponse(usuario=CustomerRead.model_validate(customers.get_customer(db, customer_id)))

@router.get('/{customer_id}/pontos', response_model=PointsResponse)
def get_points(customer_id: int, db: Session = Depends(get_db)):
    return PointsResponse(pontos=customers.get_points(db, customer_id))

@router.get('/{customer_id}/pedidos', response_model=CustomerOrdersResponse)
def list_customer_orders(customer_id: int, db: Session = Depends(get_db), page: int = 1, limit: int = 10):
    result = customers.list_customer_orders(db, customer_id, page=page, limit=limit)
    return CustomerOrdersResponse(
        pedidos=[OrderDetail.model_validate(o) for o in result.items],
        pagination=result.pagination(),
    )
