from typing import Callable, List, Protocol, Tuple
import logging

from rentseeker.schemas.listing import Listing
from rentseeker.schemas.search import QueryFilter

logger = logging.getLogger(__name__)


class ListingSource(Protocol):
    async def find_listings(self, query_filter: QueryFilter) -> List[Listing]: ...


def _drop_bedrooms(f: QueryFilter) -> QueryFilter:
    return f.model_copy(update={"bedrooms": None})


def _drop_types(f: QueryFilter) -> QueryFilter:
    return f.model_copy(update={"types": None})


def _drop_price(f: QueryFilter) -> QueryFilter:
    return f.model_copy(update={"min_price": None, "max_price": None})


def _drop_furnished(f: QueryFilter) -> QueryFilter:
    return f.model_copy(update={"furnished": None})


# Applied cumulatively, in this order, only while results stay empty.
# Location is never relaxed: it is the service area.
RELAXATION_STEPS: List[Tuple[str, Callable[[QueryFilter], QueryFilter]]] = [
    ("bedrooms", _drop_bedrooms),
    ("types", _drop_types),
    ("price", _drop_price),
    ("furnished", _drop_furnished),
]


class SearchEngine:
    def __init__(self, listings: ListingSource):
        self.listings = listings
        self.relaxed: List[str] = []

    async def search(self, query_filter: QueryFilter) -> List[Listing]:
        """
        Runs the filtered query and relaxes it step by step while nothing matches.
        Errors from the store are raised as-is; they never trigger relaxation.
        """
        self.relaxed = []
        logger.info(f"🔍 Initial search with filters: {query_filter.model_dump(exclude_none=True)}")
        results = await self.listings.find_listings(query_filter)

        if not results:
            logger.info("No properties found, relaxing filters")
            current = query_filter
            for name, relax in RELAXATION_STEPS:
                current = relax(current)
                self.relaxed.append(name)
                logger.info(f"Relaxing {name} filter. New filters: {current.model_dump(exclude_none=True)}")

                results = await self.listings.find_listings(current)
                if results:
                    break

        logger.info(f"✅ Found {len(results)} properties")
        return results
