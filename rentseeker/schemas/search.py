# rentseeker/schemas/search.py
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class SelectionSet(BaseModel):
    """
    A user's in-progress, not-yet-submitted filter choices.
    Each multi-select map holds option label -> chosen.
    """
    property_types: Dict[str, bool] = Field(default_factory=dict)
    bedroom_options: Dict[str, bool] = Field(default_factory=dict)
    furnished_options: Dict[str, bool] = Field(default_factory=dict)
    price_range: str = ""
    location: str = ""


class QueryFilter(BaseModel):
    """
    Normalized, storage-ready filter. Every field is independently optional;
    None means "no constraint on this dimension".
    """
    types: Optional[List[str]] = None
    bedrooms: Optional[List[int]] = None
    min_price: Optional[int] = None
    max_price: Optional[int] = None
    furnished: Optional[bool] = None
    location: Optional[str] = None


class SavedPreferences(BaseModel):
    """Persisted snapshot of a user's filter choices."""
    user_id: int
    property_types: Dict[str, bool] = Field(default_factory=dict)
    bedroom_options: Dict[str, bool] = Field(default_factory=dict)
    furnished_options: Dict[str, bool] = Field(default_factory=dict)
    min_price: int = 0
    max_price: int = 0
    location: str = ""
    last_search: Optional[datetime] = None
