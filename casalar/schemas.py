from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from casalar.db.models import OrderStatus

# Python attributes are English; the wire keeps the storefront's Portuguese keys.
class WireModel(BaseModel):
    class Config:
        from_attributes = True
        populate_by_name = True

class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

# --- products ---
class ProductBase(WireModel):
    name: str = Field(alias='nome', min_length=1, max_length=240)
    description: Optional[str] = Field(default='', alias='descricao')
    price: Decimal = Field(alias='preco', gt=0, max_digits=10, decimal_places=2)
    category: str = Field(alias='categoria', min_length=1, max_length=120)
    stock: int = Field(alias='estoque', ge=0)
    image_url: Optional[str] = Field(default=None, alias='imagem_url')
class ProductCreate(ProductBase): pass
class ProductUpdate(WireModel):
    name: Optional[str] = Field(default=None, alias='nome', min_length=1, max_length=240)
    description: Optional[str] = Field(default=None, alias='descricao')
    price: Optional[Decimal] = Field(default=None, alias='preco', gt=0, max_digits=10, decimal_places=2)
    category: Optional[str] = Field(default=None, alias='categoria', min_length=1, max_length=120)
    stock: Optional[int] = Field(default=None, alias='estoque', ge=0)
    image_url: Optional[str] = Field(default=None, alias='imagem_url')
    active: Optional[bool] = Field(default=None, alias='ativo')
class ProductRead(ProductBase):
    id: int
    active: bool = Field(alias='ativo')
    created_at: datetime
    updated_at: datetime

class ProductResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    produto: ProductRead
class ProductListResponse(BaseModel):
    success: bool = True
    produtos: List[ProductRead]
    pagination: Pagination
class CategoriesResponse(BaseModel):
    success: bool = True
    categorias: List[str]

# --- customers ---
class CustomerCreate(WireModel):
    name: str = Field(alias='nome', min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = Field(default=None, alias='telefone', max_length=32)
class CustomerRead(WireModel):
    id: int
    name: str = Field(alias='nome')
    email: str
    phone: Optional[str] = Field(default=None, alias='telefone')
    points: int = Field(alias='pontos_cashback')
    created_at: datetime

class CustomerResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    usuario: CustomerRead
class CustomerListResponse(BaseModel):
    success: bool = True
    usuarios: List[CustomerRead]
    pagination: Pagination
class PointsResponse(BaseModel):
    success: bool = True
    pontos: int

# --- orders ---
class OrderItemIn(WireModel):
    product_id: int = Field(alias='produto_id')
    quantity: int = Field(alias='quantidade', ge=1)
class OrderCreate(WireModel):
    customer_id: int = Field(alias='usuario_id')
    items: List[OrderItemIn] = Field(alias='itens', min_length=1)
    points_to_redeem: int = Field(default=0, alias='pontos_utilizados', ge=0)

class OrderLineRead(WireModel):
    id: int
    product_id: int = Field(alias='produto_id')
    product_name: Optional[str] = Field(default=None, alias='produto_nome')
    quantity: int = Field(alias='quantidade')
    unit_price: Decimal = Field(alias='preco_unitario')
    subtotal: Decimal
class OrderRead(WireModel):
    id: int
    customer_id: int = Field(alias='usuario_id')
    total: Decimal
    points_redeemed: int = Field(alias='pontos_utilizados')
    points_earned: int = Field(alias='pontos_gerados')
    status: OrderStatus
    created_at: datetime
class OrderSummary(OrderRead):
    customer_name: Optional[str] = Field(default=None, alias='usuario_nome')
    customer_email: Optional[str] = Field(default=None, alias='usuario_email')
class OrderDetail(OrderSummary):
    lines: List[OrderLineRead] = Field(default_factory=list, alias='itens')
class PlacedOrderRead(OrderRead):
    discount_applied: Decimal = Field(alias='desconto_aplicado')
    original_total: Decimal = Field(alias='total_original')
    new_points_balance: int = Field(alias='novos_pontos_usuario')
    lines: List[OrderLineRead] = Field(default_factory=list, alias='itens')
class OrderStatusUpdate(WireModel):
    status: OrderStatus

class PlacedOrderResponse(BaseModel):
    success: bool = True
    message: str = 'Pedido criado com sucesso'
    pedido: PlacedOrderRead
class OrderResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    pedido: OrderDetail
class OrderListResponse(BaseModel):
    success: bool = True
    pedidos: List[OrderSummary]
    pagination: Pagination
class CustomerOrdersResponse(BaseModel):
    success: bool = True
    pedidos: List[OrderDetail]
    pagination: Pagination

# --- stats ---
class DashboardStats(BaseModel):
    totalProducts: int
    totalCustomers: int
    totalRevenue: Decimal
    totalOrders: int
class DashboardResponse(BaseModel):
    success: bool = True
    data: DashboardStats
class MonthlyRevenue(BaseModel):
    month_label: str
    month_key: str
    revenue: Decimal
class MonthlyRevenueResponse(BaseModel):
    success: bool = True
    data: List[MonthlyRevenue]

# --- auth ---
class LoginPayload(BaseModel):
    usuario: str = Field(min_length=1)
    senha: str = Field(min_length=6)
class AdminRead(WireModel):
    id: int
    username: str = Field(alias='usuario')
    name: Optional[str] = Field(default=None, alias='nome')
class LoginResponse(BaseModel):
    success: bool = True
    message: str = 'Autenticado com sucesso'
    token: str
    token_type: str = 'bearer'
    admin: AdminRead
