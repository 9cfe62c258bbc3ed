# migrations/env.py
# Alembic para rsvp_responses y search_quotas. Usa el mismo engine que la API
# (mismas pragmas de SQLite); `alembic -x db_url=...` migra otra BD sin tocar .env.
from logging.config import fileConfig
import os
import sys

from alembic import context

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from dotenv import load_dotenv

load_dotenv(os.path.join(ROOT_DIR, ".env"))  # DATABASE_URL / FORCE_DB igual que la API.

from rsvp_app.db import Base, engine as app_engine, make_engine, resolve_database_url
import rsvp_app.models  # noqa: F401  (registra las tablas en Base.metadata)

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

_x_url = context.get_x_argument(as_dictionary=True).get("db_url")
engine = make_engine(resolve_database_url(_x_url)) if _x_url else app_engine


def run_migrations_offline() -> None:
    """Emite el SQL para la URL elegida, sin conectarse."""
    context.configure(
        url=str(engine.url),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Ejecuta contra la BD. render_as_batch en SQLite (no soporta ALTER completo)."""
    with engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
