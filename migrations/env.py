import os
from logging.config import fileConfig

from dotenv import load_dotenv
from sqlalchemy import engine_from_config, event
from sqlalchemy import pool

from alembic import context

from quickqr.lib.database import Base
from quickqr.models import UsageEvent  # noqa: F401  (registers the table on Base.metadata)

# Load environment variables from .env.local
load_dotenv(dotenv_path='.env.local')

# this is the Alembic Config object, which provides
# access to the values within the .ini file in use.
config = context.config

# sqlalchemy.url comes from ANALYTICS_DATABASE_URL unless alembic.ini sets one.
# The password stays out of the URL and is supplied by the connect listener.
if not config.get_main_option("sqlalchemy.url"):
    database_url = os.getenv("ANALYTICS_DATABASE_URL", "").strip()
    if not database_url:
        raise RuntimeError("ANALYTICS_DATABASE_URL must be set to run migrations")
    config.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode.

    Emits the SQL to the script output instead of executing it, so no DBAPI
    connection is needed.
    """
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode against a live connection."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    @event.listens_for(connectable, "do_connect")
    def provide_credential(dialect, conn_rec, cargs, cparams):
        """Supply ANALYTICS_DATABASE_PASSWORD at connect time."""
        password = os.getenv("ANALYTICS_DATABASE_PASSWORD")
        if password:
            cparams["password"] = password

    with connectable.connect() as connection:
        context.configure(
            connection=connection, target_metadata=target_metadata
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
