import logging
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.concurrency import run_in_threadpool
from prometheus_fastapi_instrumentator import Instrumentator

from casalar.version import VERSION
from casalar.api import auth, products, orders, customers, stats
from casalar.core.errors import StoreError, RateLimited
from casalar.core.log import configure_logging, log_requests
from casalar.core.ratelimit import build_rate_limiter

configure_logging()
logger = logging.getLogger(__name__)

# Create instrumentator first
instrumentator = Instrumentator()

app = FastAPI(title='Casa & Lar Storefront API', version=VERSION)
app.state.rate_limiter = build_rate_limiter()

# Instrument the app BEFORE adding routes or middleware
instrumentator.instrument(app).expose(
    app,
    include_in_schema=False,
    endpoint='/metrics',
    should_gzip=True,
)


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={'success': False, 'message': message, **extra})


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    if exc.status_code >= 500:
        logger.error('%s %s failed: %s', request.method, request.url.path, exc.message)
    return _error(exc.status_code, exc.message, **exc.detail)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [{'loc': list(e.get('loc', ())), 'msg': e.get('msg'), 'type': e.get('type')} for e in exc.errors()]
    return _error(400, 'Dados inválidos', errors=errors)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = 'Rota não encontrada' if exc.status_code == 404 else str(exc.detail)
    return _error(exc.status_code, message)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception('unhandled error on %s %s', request.method, request.url.path)
    return _error(500, 'Erro interno do servidor')


@app.middleware('http')
async def rate_limit(request: Request, call_next):
    limiter = getattr(request.app.state, 'rate_limiter', None)
    if limiter is not None and request.url.path.startswith('/api/'):
        client = request.client.host if request.client else 'unknown'
        if getattr(limiter, 'blocking', False):
            allowed = await run_in_threadpool(limiter.hit, client)
        else:
            allowed = limiter.hit(client)
        if not allowed:
            logger.warning('rate limit exceeded for %s', client)
            return _error(RateLimited.status_code, RateLimited.default_message)
    return await call_next(request)

app.middleware('http')(log_requests)


@app.get('/api/health')
def health():
    return {'status': 'OK', 'message': 'API da Loja de Utilidades funcionando', 'timestamp': datetime.utcnow().isoformat()}

@app.get('/v1/_info')
def info(): return {'service': 'casalar', 'version': VERSION}

@app.on_event('startup')
async def startup_event():
    for route in app.routes:
        if hasattr(route, 'methods') and hasattr(route, 'path'):
            logger.debug('%s %s', sorted(route.methods), route.path)

app.include_router(auth.router,      prefix='/api/auth',     tags=['auth'])
app.include_router(products.router,  prefix='/api/produtos', tags=['products'])
app.include_router(customers.router, prefix='/api/usuarios', tags=['customers'])
app.include_router(orders.router,    prefix='/api/pedidos',  tags=['orders'])
app.include_router(stats.router,     prefix='/api/stats',    tags=['stats'])
