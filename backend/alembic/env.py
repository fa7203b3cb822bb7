# backend/alembic/env.py
import os
import sys
from logging.config import fileConfig

from alembic import context

# Migrations run from backend/, where the application modules live
sys.path.insert(0, os.path.realpath(os.path.join(os.path.dirname(__file__), "..")))

from config import Settings  # noqa: E402
from database import Base, build_engine  # noqa: E402
import models.asset  # noqa: E402,F401
import models.product  # noqa: E402,F401
import models.users  # noqa: E402,F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Same DATABASE_URL (environment or .env) as the application
database_url = Settings().database_url


def run_offline() -> None:
    """Emit SQL for the catalog schema without touching a database."""
    context.configure(
        url=database_url,
        target_metadata=Base.metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_online() -> None:
    engine = build_engine(database_url)
    try:
        with engine.connect() as connection:
            # SQLite cannot ALTER constraints in place
            context.configure(
                connection=connection,
                target_metadata=Base.metadata,
                render_as_batch=connection.dialect.name == "sqlite",
            )
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_offline()
else:
    run_online()
