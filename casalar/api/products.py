from fastapi import APIRouter, Depends, Query
from typing import Optional
from sqlalchemy.orm import Session
from casalar.api.deps import get_db
from casalar.core.auth import require_admin
from casalar.core.config import settings
from casalar.schemas import (
    ProductCreate, ProductUpdate, ProductRead, ProductResponse, ProductListResponse, CategoriesResponse,
)
from casalar.services import catalog

router = APIRouter()

@router.get('', response_model=ProductListResponse)
def list_products(db: Session = Depends(get_db),
                  categoria: Optional[str] = None, busca: Optional[str] = None,
                  page: int = 1, limit: int = 12):
    result = catalog.list_products(db, category=categoria, search=busca, page=page, limit=limit)
    return ProductListResponse(
        produtos=[ProductRead.model_validate(p) for p in result.items],
        pagination=result.pagination(),
    )

@router.get('/categorias/distinct', response_model=CategoriesResponse)
def list_categories(db: Session = Depends(get_db)):
    return CategoriesResponse(categorias=catalog.list_categories(db))

@router.get('/low-stock', response_model=ProductListResponse)
def list_low_stock(db: Session = Depends(get_db), _=Depends(require_admin),
                   threshold: Optional[int] = Query(default=None, ge=0)):
    items = catalog.list_low_stock(db, settings.LOW_STOCK_THRESHOLD if threshold is None else threshold)
    return ProductListResponse(
        produtos=[ProductRead.model_validate(p) for p in items],
        pagination={'page': 1, 'limit': len(items), 'total': len(items), 'pages': 1 if items else 0},
    )

@router.get('/{product_id}', response_model=ProductResponse)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return ProductResponse(produto=ProductRead.model_validate(catalog.get_product(db, product_id)))

@router.post('', response_model=ProductResponse, status_code=201)
def create_product(payload: ProductCreate, db: Session = Depends(get_db), _=Depends(require_admin)):
    obj = catalog.create_product(db, payload)
    return ProductResponse(message='Produto criado com sucesso', produto=ProductRead.model_validate(obj))

@router.put('/{product_id}', response_model=ProductResponse)
def update_product(product_id: int, payload: ProductUpdate, db: Session = Depends(get_db), _=Depends(require_admin)):
    obj = catalog.update_product(db, product_id, payload)
    return ProductResponse(message='Produto atualizado com sucesso', produto=ProductRead.model_validate(obj))

@router.delete('/{product_id}')
def deactivate_product(product_id: int, db: Session = Depends(get_db), _=Depends(require_admin)):
    catalog.deactivate_product(db, product_id)
    return {'success': True, 'message': 'Produto deletado com sucesso'}
