from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import delete, text
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from rentseeker.db.models import SavedListing, UserPreference
from rentseeker.db.repositories.base import rollback_on_error
from rentseeker.schemas.listing import Listing
from rentseeker.schemas.search import SavedPreferences
from rentseeker.services.query_builder import build_saved_listings_query

logger = logging.getLogger(__name__)


def _utcnow():
    # Stored naive so SQLite and PostgreSQL round-trip the same value
    return datetime.now(timezone.utc).replace(tzinfo=None)


class PreferenceRepository:
    """
    Saved search preferences (one record per user) and saved listing references.
    Errors from the database propagate; the dialogue decides how to degrade.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Saved preferences
    # ------------------------------------------------------------------
    async def save(self, user_id: int, snapshot: SavedPreferences) -> SavedPreferences:
        """
        Inserts or overwrites the user's record. Every field is replaced,
        including the last-search timestamp.
        """
        async with rollback_on_error(self.db, f"saving preferences for user {user_id}"):
            record = await self.db.get(UserPreference, user_id)
            if record is None:
                record = UserPreference(user_id=user_id)
                self.db.add(record)

            record.property_types = dict(snapshot.property_types)
            record.bedroom_options = dict(snapshot.bedroom_options)
            record.furnished_options = dict(snapshot.furnished_options)
            record.min_price = snapshot.min_price
            record.max_price = snapshot.max_price
            record.location = snapshot.location
            record.last_search = _utcnow()
            saved = self._to_schema(record)

            await self.db.commit()

        logger.info(f"💾 Saved preferences for user {user_id}")
        return saved

    async def load(self, user_id: int) -> Optional[SavedPreferences]:
        """Returns None when the user has never saved preferences."""
        async with rollback_on_error(self.db, f"loading preferences for user {user_id}"):
            record = await self.db.get(UserPreference, user_id, populate_existing=True)
        if record is None:
            return None
        return self._to_schema(record)

    async def clear(self, user_id: int) -> None:
        async with rollback_on_error(self.db, f"clearing preferences for user {user_id}"):
            await self.db.execute(delete(UserPreference).where(UserPreference.user_id == user_id))
            await self.db.commit()
        logger.info(f"🧹 Cleared preferences for user {user_id}")

    @staticmethod
    def _to_schema(record: UserPreference) -> SavedPreferences:
        return SavedPreferences(
            user_id=record.user_id,
            property_types=record.property_types or {},
            bedroom_options=record.bedroom_options or {},
            furnished_options=record.furnished_options or {},
            min_price=record.min_price,
            max_price=record.max_price,
            location=record.location or "",
            last_search=record.last_search,
        )

    # ------------------------------------------------------------------
    # Saved listings
    # ------------------------------------------------------------------
    async def save_listing_reference(self, user_id: int, listing_id: int) -> None:
        """Saving the same pair twice still leaves a single reference."""
        query = text("""
            INSERT INTO saved_listings (user_id, listing_id)
            VALUES (:user_id, :listing_id)
            ON CONFLICT (user_id, listing_id) DO NOTHING
        """)
        async with rollback_on_error(self.db, f"saving listing {listing_id} for user {user_id}"):
            await self.db.execute(query, {"user_id": user_id, "listing_id": listing_id})
            await self.db.commit()
        logger.info(f"User {user_id} saved listing {listing_id}")

    async def delete_listing_reference(self, user_id: int, listing_id: int) -> None:
        async with rollback_on_error(self.db, f"deleting listing {listing_id} for user {user_id}"):
            await self.db.execute(
                delete(SavedListing).where(
                    SavedListing.user_id == user_id,
                    SavedListing.listing_id == listing_id,
                )
            )
            await self.db.commit()
        logger.info(f"User {user_id} removed saved listing {listing_id}")

    async def list_saved_references(self, user_id: int) -> List[Listing]:
        query, params = build_saved_listings_query(user_id)
        async with rollback_on_error(self.db, f"listing saved listings for user {user_id}"):
            result = await self.db.execute(query, params)
            rows = result.mappings().all()
        return [Listing.model_validate(dict(row)) for row in rows]
