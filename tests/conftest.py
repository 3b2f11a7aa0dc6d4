import os

os.environ['POSTGRES_DSN'] = 'sqlite://'
os.environ.setdefault('JWT_SECRET', 'test-secret')
os.environ.setdefault('LOG_LEVEL', 'WARNING')

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from casalar.api.deps import get_db
from casalar.core.ratelimit import MemoryRateLimiter
from casalar.db.models import Customer, Product
from casalar.db.session import Base, make_engine
from casalar.main import app
from casalar.security.utils import create_access_token


@pytest.fixture
def engine():
    eng = make_engine('sqlite://')
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    s = session_factory()
    yield s
    s.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = override_get_db
    app.state.rate_limiter = MemoryRateLimiter(limit=1000, window_seconds=900)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    token, _ = create_access_token('admin', 1)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def make_product(db):
    def _make(name='Caneca Esmaltada', price='30.00', stock=5, category='Cozinha', description='', active=True):
        p = Product(name=name, price=Decimal(price), stock=stock, category=category,
                    description=description, active=active)
        db.add(p); db.commit(); db.refresh(p)
        return p
    return _make


@pytest.fixture
def make_customer(db):
    counter = {'n': 0}

    def _make(name='Maria Silva', points=0, email=None):
        counter['n'] += 1
        c = Customer(name=name, email=email or f"cliente{counter['n']}@example.com", points=points)
        db.add(c); db.commit(); db.refresh(c)
        return c
    return _make
