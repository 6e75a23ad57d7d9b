"""
Interactive tool for adding rental listings to the database.

    rentseeker-add-listings
    rentseeker-add-listings --database-url sqlite+aiosqlite:///./properties.db
"""
import argparse
import asyncio
import logging
from typing import Callable, List

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from rentseeker.config import settings
from rentseeker.db.repositories.listing_repository import ListingRepository
from rentseeker.db.session import engine_options, init_db
from rentseeker.schemas.listing import ListingCreate

logger = logging.getLogger(__name__)


def _ask(prompt: str, read: Callable[[str], str]) -> str:
    return read(prompt).strip()


def _ask_int(prompt: str, read: Callable[[str], str]) -> int:
    while True:
        value = _ask(prompt, read)
        try:
            return int(value)
        except ValueError:
            print("Please enter a whole number.")


def _ask_bool(prompt: str, read: Callable[[str], str]) -> bool:
    return _ask(prompt, read).lower() in ("true", "yes", "y", "1")


def prompt_listing(read: Callable[[str], str] = input) -> ListingCreate:
    property_type = _ask("Enter property type (flat/house): ", read)
    price = _ask_int("Enter price per month: ", read)
    bedrooms = _ask_int("Enter number of bedrooms (0 for studio): ", read)
    furnished = _ask_bool("Is it furnished? (true/false): ", read)
    location = _ask("Enter location: ", read)
    description = _ask("Enter description: ", read)
    web_link = _ask("Enter web link to property listing: ", read)

    print("Enter photo URLs (one per line, empty line to finish):")
    photo_urls: List[str] = []
    while True:
        url = _ask("", read)
        if not url:
            break
        photo_urls.append(url)

    return ListingCreate(
        type=property_type,
        price_per_month=price,
        bedrooms=bedrooms,
        furnished=furnished,
        location=location,
        description=description,
        photo_urls=photo_urls,
        web_link=web_link,
    )


async def add_listings(database_url: str, read: Callable[[str], str] = input) -> int:
    engine = create_async_engine(database_url, **engine_options(database_url))
    session_factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    added = 0

    try:
        await init_db(engine)
        async with session_factory() as db:
            repository = ListingRepository(db)
            while True:
                try:
                    listing = await repository.add_listing(prompt_listing(read))
                    added += 1
                    print(f"Property added successfully! (id {listing.id})")
                except ValidationError as e:
                    print(f"Error adding property: {e}")

                if _ask("Add another property? (y/n): ", read).lower() != "y":
                    break
    finally:
        await engine.dispose()

    return added


def main():
    parser = argparse.ArgumentParser(description="Add rental listings to the RentSeeker database")
    parser.add_argument("--database-url", default=settings.DATABASE_URL, help="SQLAlchemy async database URL")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    count = asyncio.run(add_listings(args.database_url))
    print(f"Added {count} listing(s).")


if __name__ == "__main__":
    main()
