"""
Alembic environment for the project projection and grant tables.

Online migrations run over the service's own async engine; offline mode
renders SQL for ``settings.database_url`` without connecting.
"""

from logging.config import fileConfig
from sqlalchemy.engine import Connection
from alembic import context
import asyncio

from projectgate.config import settings
from projectgate.db.base import Base
import projectgate.models  # noqa: F401 register tables on Base.metadata
from projectgate.db.session import get_engine, dispose_engine

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=settings.database_url,
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=connection.dialect.name == "sqlite",
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    async with get_engine().connect() as connection:
        await connection.run_sync(do_run_migrations)

    await dispose_engine()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())
