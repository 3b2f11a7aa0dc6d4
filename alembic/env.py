from logging.config import fileConfig
from sqlalchemy import engine_from_config, pool
from alembic import context
from casalar.core.config import settings
from casalar.db.session import Base
import casalar.db.models  # noqa

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)
target_metadata = Base.metadata


def _dsn() -> str:
    # `alembic -x dsn=... upgrade head` targets another database without touching the env
    return context.get_x_argument(as_dictionary=True).get("dsn") or settings.POSTGRES_DSN


def _options(dsn: str) -> dict:
    # sqlite cannot ALTER constraints in place
    return {"compare_type": True, "render_as_batch": dsn.startswith("sqlite")}


def run_offline(dsn: str):
    context.configure(url=dsn, target_metadata=target_metadata, literal_binds=True,
                      dialect_opts={"paramstyle": "named"}, **_options(dsn))
    with context.begin_transaction():
        context.run_migrations()


def run_online(dsn: str):
    engine = engine_from_config({"sqlalchemy.url": dsn}, prefix="sqlalchemy.", poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, **_options(dsn))
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_offline(_dsn())
else:
    run_online(_dsn())
