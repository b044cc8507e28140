import sys
from pathlib import Path
import os

# Add the project root to the Python path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from logging.config import fileConfig
from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.pool import NullPool
from alembic import context
from app.models import Base

load_dotenv()

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# read DB URL directly (don't pass through configparser)
db_url = os.environ.get("DATABASE_URL", "sqlite+aiosqlite:///./property_search.db")

# The app talks to the database through async drivers; alembic needs the sync ones
# e.g. postgresql+asyncpg://...  ->  postgresql://...
sync_db_url = db_url.replace("+asyncpg", "").replace("+aiosqlite", "")

if sync_db_url.startswith("postgresql") and "sslmode=" not in sync_db_url.lower():
    sep = "&" if "?" in sync_db_url else "?"
    sync_db_url = f"{sync_db_url}{sep}sslmode=require"


def run_migrations_offline():
    """Run migrations in 'offline' mode.

    Only the URL is configured; the DDL is rendered to the script output.
    """
    context.configure(
        url=sync_db_url,
        target_metadata=Base.metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    """Run migrations in 'online' mode against a sync engine (no pooling)."""
    connectable = create_engine(sync_db_url, poolclass=NullPool)

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=Base.metadata, compare_type=True)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
