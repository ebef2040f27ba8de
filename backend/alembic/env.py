"""
Alembic migration environment for landvest-core.

The database URL always comes from application settings (DATABASE_URL or
.env), never from alembic.ini, so migrations and the API hit the same
database.
"""

from logging.config import fileConfig

from alembic import context
from dotenv import load_dotenv
from sqlalchemy import create_engine, pool

# Export .env before settings are first read so DATABASE_URL matches the API
load_dotenv()

from app.infrastructure.database import Base
from app.infrastructure.settings import get_settings
import app.models  # noqa: F401  registers every table on Base.metadata

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata
database_url = get_settings().DATABASE_URL

# SQLite cannot ALTER most constraints in place
_configure_kwargs = {
    "target_metadata": target_metadata,
    "compare_type": True,
    "render_as_batch": database_url.startswith("sqlite"),
}


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of connecting"""
    context.configure(
        url=database_url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_kwargs,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = create_engine(database_url, poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(connection=connection, **_configure_kwargs)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
