"""Create the tables and seed a demo owner, renter and a few rental items."""

import asyncio
from decimal import Decimal

from src.rental_booking.domain.entities.item import Item
from src.rental_booking.domain.entities.user import User
from src.rental_booking.infrastructure.database.connection import DatabaseManager
from src.rental_booking.infrastructure.logging import setup_logging_from_env
from src.rental_booking.infrastructure.repositories.sql_repositories import (
    SQLAlchemyItemRepository,
    SQLAlchemyUserRepository
)
from src.rental_booking.presentation.api.config import get_settings
from scripts.create_tables import create_tables


DEMO_USERS = [
    ("owner@example.com", "Olivia", "Owner"),
    ("renter@example.com", "Rene", "Renter"),
]

DEMO_ITEMS = [
    ("Cordless Drill", "tools", Decimal("12.50"), "Berlin"),
    ("Camping Tent (4 person)", "outdoor", Decimal("25.00"), "Berlin"),
    ("DSLR Camera", "electronics", Decimal("40.00"), "Hamburg"),
]


async def seed(database_manager: DatabaseManager) -> None:
    """Insert the demo users and items unless they already exist."""
    async with database_manager.get_session() as session:
        user_repository = SQLAlchemyUserRepository(session)
        item_repository = SQLAlchemyItemRepository(session)

        users = {}
        for email, first_name, last_name in DEMO_USERS:
            user = await user_repository.find_by_email(email)
            if user is None:
                user = await user_repository.save(User(email, first_name, last_name))
                print(f"✅ Created user {email} ({user.id})")
            else:
                print(f"ℹ️ User {email} already exists ({user.id})")
            users[email] = user

        owner = users["owner@example.com"]
        existing = {item.name for item in await item_repository.find_by_owner_id(owner.id)}
        for name, category, price, location in DEMO_ITEMS:
            if name in existing:
                print(f"ℹ️ Item '{name}' already exists")
                continue
            item = await item_repository.save(
                Item(owner.id, name, price, category=category, location=location)
            )
            print(f"✅ Created item '{name}' ({item.id}) at {price}/day")


async def setup_database() -> None:
    """Set up database tables and seed with demo data."""
    settings = get_settings()
    await create_tables(settings.database_url)

    database_manager = DatabaseManager(settings.database_url)
    await database_manager.connect()
    try:
        await seed(database_manager)
    except Exception as e:
        print(f"❌ Error seeding database: {e}")
        raise
    finally:
        await database_manager.disconnect()


if __name__ == "__main__":
    setup_logging_from_env()
    asyncio.run(setup_database())
