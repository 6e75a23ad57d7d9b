from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
import logging

from rentseeker.db.models import Listing as ListingRecord
from rentseeker.db.repositories.base import rollback_on_error
from rentseeker.schemas.listing import Listing, ListingCreate
from rentseeker.schemas.search import QueryFilter
from rentseeker.services.query_builder import build_listing_query

logger = logging.getLogger(__name__)


class ListingRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def add_listing(self, listing: ListingCreate) -> Listing:
        """
        Inserts a listing. Photo URLs were already filtered by ListingCreate,
        so a bad URL never stops the listing from being stored.
        """
        async with rollback_on_error(self.db, "adding a listing"):
            record = ListingRecord(**listing.model_dump())
            self.db.add(record)
            await self.db.commit()
            await self.db.refresh(record)

        logger.info(f"Added listing {record.id}: {record.type} in {record.location} (£{record.price_per_month})")
        return Listing.model_validate(record, from_attributes=True)

    async def get_listing(self, listing_id: int) -> Optional[Listing]:
        record = await self.db.get(ListingRecord, listing_id)
        if record is None:
            return None
        return Listing.model_validate(record, from_attributes=True)

    async def find_listings(self, query_filter: QueryFilter) -> List[Listing]:
        """
        Runs the filtered query. Storage errors are left to the caller.
        """
        query, params = build_listing_query(query_filter)
        logger.debug(f"Executing listing query with params: {params}")

        async with rollback_on_error(self.db, "searching listings"):
            result = await self.db.execute(query, params)
            rows = result.mappings().all()
        return [Listing.model_validate(dict(row)) for row in rows]
