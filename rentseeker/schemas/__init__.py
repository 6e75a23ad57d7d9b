from .enums import Command, EventKind
from .events import Button, InboundEvent, Options
from .listing import Listing, ListingCreate
from .search import QueryFilter, SavedPreferences, SelectionSet

__all__ = [
    'Button',
    'Command',
    'EventKind',
    'InboundEvent',
    'Listing',
    'ListingCreate',
    'Options',
    'QueryFilter',
    'SavedPreferences',
    'SelectionSet',
]
