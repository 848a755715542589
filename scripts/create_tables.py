"""Create the rental booking tables in the configured database."""

import asyncio

from src.rental_booking.infrastructure.database.connection import DatabaseManager
from src.rental_booking.infrastructure.logging import setup_logging_from_env
from src.rental_booking.infrastructure.database.models import Base
from src.rental_booking.presentation.api.config import get_settings


async def create_tables(database_url: str) -> None:
    """Create all tables that do not exist yet."""
    database_manager = DatabaseManager(database_url, echo=True)
    await database_manager.connect()

    try:
        await database_manager.create_tables()
        print(f"✅ Tables created: {', '.join(sorted(Base.metadata.tables))}")

    except Exception as e:
        print(f"❌ Error creating tables: {e}")
        raise
    finally:
        await database_manager.disconnect()


if __name__ == "__main__":
    setup_logging_from_env()
    asyncio.run(create_tables(get_settings().database_url))
