"""Alembic environment for the audit store."""

import sys
from pathlib import Path
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool
from sqlalchemy.engine import make_url

# Ensure src/ is on sys.path for editable installs
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from tala_audit.common.config import TalaSettings
from tala_audit.common.models import Base

# Import all models so they register with Base.metadata
import tala_audit.users.models  # noqa: F401
import tala_audit.audit.models  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _sync_url(async_url: str) -> str:
    """Migrations run synchronously: drop the async driver from the app URL."""
    url = make_url(async_url)
    backend = url.get_backend_name()
    return url.set(drivername=backend).render_as_string(hide_password=False)


def _resolve_url() -> str:
    # Precedence: alembic -x sqlalchemy.url=..., then TALA_DB_URL, then alembic.ini
    cmd_url = context.get_x_argument(as_dictionary=True).get("sqlalchemy.url")
    if cmd_url:
        return cmd_url
    settings = TalaSettings()
    if "db_url" in settings.model_fields_set:
        return _sync_url(settings.db_url)
    return config.get_main_option("sqlalchemy.url")


def _configure(**kwargs) -> None:
    url = make_url(config.get_main_option("sqlalchemy.url"))
    # SQLite cannot ALTER most constraints in place.
    context.configure(
        target_metadata=target_metadata,
        render_as_batch=url.get_backend_name() == "sqlite",
        **kwargs,
    )


config.set_main_option("sqlalchemy.url", _resolve_url().replace("%", "%%"))


def run_migrations_offline() -> None:
    _configure(url=config.get_main_option("sqlalchemy.url"), literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
