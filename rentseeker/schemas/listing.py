# rentseeker/schemas/listing.py
import json
import logging
from typing import List, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


def is_valid_photo_url(url: str) -> bool:
    """True for absolute http/https URLs with a host."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def valid_photo_urls(urls: List[str]) -> List[str]:
    """Drops invalid entries, keeping the order of the valid ones."""
    valid = []
    for url in urls or []:
        if is_valid_photo_url(url):
            valid.append(url)
        else:
            logger.warning(f"Dropping invalid photo URL: {url!r}")
    return valid


class ListingCreate(BaseModel):
    """
    A listing as supplied by the ingestion tool.
    Invalid photo URLs never block the listing itself; they are silently dropped.
    """
    type: str = Field(..., description="Free-form category, e.g. 'Flat' or 'House'")
    price_per_month: int = Field(..., ge=0, description="Monthly rent in GBP")
    bedrooms: int = Field(..., ge=0, description="Number of bedrooms, 0 for a studio")
    furnished: bool = False
    location: str
    description: str = ""
    photo_urls: List[str] = Field(default_factory=list)
    web_link: str = ""

    @field_validator("photo_urls", mode="before")
    @classmethod
    def drop_invalid_photo_urls(cls, v):
        if v is None:
            return []
        return valid_photo_urls([str(u).strip() for u in v])


class Listing(BaseModel):
    id: int
    type: str
    price_per_month: int
    bedrooms: int
    furnished: bool
    location: str
    description: Optional[str] = ""
    photo_urls: List[str] = Field(default_factory=list)
    web_link: Optional[str] = ""

    @field_validator("photo_urls", mode="before")
    @classmethod
    def decode_photo_urls(cls, v):
        # Raw SQL on SQLite hands back the JSON column as text
        if v is None:
            return []
        if isinstance(v, str):
            return json.loads(v) if v else []
        return v
