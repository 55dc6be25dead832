from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool

from alembic import context  # type: ignore[attr-defined]
from rental_core.config import DATABASE_URL
from rental_core.models.base import Base
from rental_core.models.expenses import Expense  # noqa: F401
from rental_core.models.ledger import Account, JournalEntry, JournalLine  # noqa: F401
from rental_core.models.locations import Location  # noqa: F401
from rental_core.models.payments import Payment, PaymentAllocation  # noqa: F401
from rental_core.models.pricing import PriceOverride, SeasonalRate  # noqa: F401
from rental_core.models.properties import Amenity, Property, PropertyAmenity  # noqa: F401
from rental_core.models.reservations import Reservation, ReservationNight  # noqa: F401
from rental_core.models.search_logs import SearchLog  # noqa: F401
from rental_core.models.tax import TaxReturn, TaxRule  # noqa: F401
from rental_core.models.users import User  # noqa: F401

# this is the Alembic Config object, which provides
# access to the values within the .ini file in use.
config = context.config

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata
config.set_main_option("sqlalchemy.url", DATABASE_URL)


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode.

    Emits SQL to the script output using just the URL, without a DBAPI.
    """
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
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

    with connectable.connect() as connection:
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
