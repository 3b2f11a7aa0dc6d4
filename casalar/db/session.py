from sqlalchemy import MetaData, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool
from casalar.core.config import settings

# stable constraint names so alembic autogenerate diffs cleanly
NAMING = {
    'ix': 'ix_%(column_0_label)s',
    'uq': 'uq_%(table_name)s_%(column_0_name)s',
    'fk': 'fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s',
    'pk': 'pk_%(table_name)s',
}

class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING)


def make_engine(dsn: str) -> Engine:
    if dsn.startswith('sqlite'):
        # one shared connection, otherwise every checkout sees a fresh empty in-memory db
        kw = {'connect_args': {'check_same_thread': False}}
        if dsn in ('sqlite://', 'sqlite:///:memory:'):
            kw['poolclass'] = StaticPool
        return create_engine(dsn, **kw)
    return create_engine(dsn, pool_pre_ping=True)


engine = make_engine(settings.POSTGRES_DSN)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
