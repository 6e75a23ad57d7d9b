# rentseeker/db/__init__.py
from .base_class import Base
from .session import get_db, init_db, close_db
from .models import Listing, UserPreference, SavedListing
from .repositories.listing_repository import ListingRepository
from .repositories.preference_repository import PreferenceRepository

__all__ = [
    'Base',
    'get_db',
    'init_db',
    'close_db',
    'Listing',
    'UserPreference',
    'SavedListing',
    'ListingRepository',
    'PreferenceRepository'
]
