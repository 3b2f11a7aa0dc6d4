"""Domain errors raised by the services layer.

Each error carries the HTTP status it maps to and a message safe to show to
the client. The handlers registered in ``casalar.main`` turn them into the
``{"success": false, "message": ...}`` envelope.
"""
from typing import Any, Optional


class StoreError(Exception):
    status_code = 500
    default_message = 'Erro interno do servidor'

    def __init__(self, message: Optional[str] = None, **detail: Any):
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


class InvalidInput(StoreError):
    status_code = 400
    default_message = 'Dados inválidos'


class NotFound(StoreError):
    status_code = 404
    default_message = 'Recurso não encontrado'


class ProductNotFound(NotFound):
    def __init__(self, product_id: int):
        super().__init__(f'Produto com ID {product_id} não encontrado ou inativo', product_id=product_id)
        self.product_id = product_id


class InsufficientStock(StoreError):
    status_code = 400

    def __init__(self, product_id: int, name: str, available: int):
        super().__init__(
            f'Estoque insuficiente para o produto {name}',
            product_id=product_id, available=available,
        )
        self.product_id = product_id
        self.available = available


class InsufficientPoints(StoreError):
    status_code = 400

    def __init__(self, requested: int, available: int):
        super().__init__('Pontos insuficientes', requested=requested, available=available)
        self.requested = requested
        self.available = available


class Unauthorized(StoreError):
    status_code = 401
    default_message = 'Token de acesso requerido'


class Forbidden(StoreError):
    status_code = 403
    default_message = 'Acesso negado. Apenas administradores.'


class RateLimited(StoreError):
    status_code = 429
    default_message = 'Muitas requisições, tente novamente mais tarde'
