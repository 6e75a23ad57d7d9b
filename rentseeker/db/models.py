# rentseeker/db/models.py
from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)

from rentseeker.db.base_class import Base


class Listing(Base):
    __tablename__ = "listings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(String(50), nullable=False)
    price_per_month = Column(Integer, nullable=False)
    bedrooms = Column(Integer, nullable=False)   # 0 is a studio
    furnished = Column(Boolean, nullable=False, default=False)
    location = Column(String(255), nullable=False)
    description = Column(Text, default="")
    photo_urls = Column(JSON, nullable=False, default=list)
    web_link = Column(String(1024), default="")


class UserPreference(Base):
    __tablename__ = "user_preferences"

    user_id = Column(BigInteger, primary_key=True, autoincrement=False)
    property_types = Column(JSON, nullable=False, default=dict)
    bedroom_options = Column(JSON, nullable=False, default=dict)
    furnished_options = Column(JSON, nullable=False, default=dict)
    min_price = Column(Integer, nullable=False, default=0)
    max_price = Column(Integer, nullable=False, default=0)
    location = Column(String(255), nullable=False, default="")
    last_search = Column(DateTime, nullable=True)


class SavedListing(Base):
    __tablename__ = "saved_listings"
    __table_args__ = (
        UniqueConstraint("user_id", "listing_id", name="uq_saved_listing_user_listing"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, nullable=False, index=True)
    listing_id = Column(Integer, ForeignKey("listings.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, server_default=func.now())
