from rentseeker.schemas.listing import ListingCreate
from rentseeker.schemas.search import QueryFilter
from tests.conftest import make_listing


def test_invalid_photo_urls_are_dropped():
    listing = make_listing(photo_urls=["https://img.example.com/a.jpg", "not a url", "ftp://x/y.png", ""])

    assert listing.photo_urls == ["https://img.example.com/a.jpg"]


async def test_add_listing_keeps_valid_photos(listings):
    added = await listings.add_listing(
        make_listing(photo_urls=["https://img.example.com/1.jpg", "bogus", "http://img.example.com/2.jpg"])
    )

    stored = await listings.get_listing(added.id)
    assert stored.photo_urls == ["https://img.example.com/1.jpg", "http://img.example.com/2.jpg"]


async def test_get_missing_listing_returns_none(listings):
    assert await listings.get_listing(999) is None


async def test_find_listings_decodes_rows(listings):
    await listings.add_listing(make_listing(photo_urls=["https://img.example.com/1.jpg"]))

    found = await listings.find_listings(QueryFilter(location="Bath"))

    assert len(found) == 1
    assert found[0].photo_urls == ["https://img.example.com/1.jpg"]
    assert found[0].furnished is True


async def test_location_matches_by_containment(listings):
    await listings.add_listing(make_listing(location="Widcombe, Bath"))
    await listings.add_listing(make_listing(location="Bristol"))

    found = await listings.find_listings(QueryFilter(location="bath"))

    assert [listing.location for listing in found] == ["Widcombe, Bath"]


async def test_type_matching_is_case_insensitive(listings):
    await listings.add_listing(make_listing(type="flat"))
    await listings.add_listing(make_listing(type="House"))

    found = await listings.find_listings(QueryFilter(types=["Flat"]))

    assert [listing.type for listing in found] == ["flat"]


async def test_results_are_ordered_by_price(listings):
    for price in (1400, 900, 1100):
        await listings.add_listing(make_listing(price_per_month=price))

    found = await listings.find_listings(QueryFilter(min_price=900, max_price=1200))

    assert [listing.price_per_month for listing in found] == [900, 1100]


async def test_combined_filter(listings):
    await listings.add_listing(make_listing(bedrooms=0, furnished=False, price_per_month=700))
    await listings.add_listing(make_listing(bedrooms=2, furnished=False, price_per_month=1200))
    await listings.add_listing(make_listing(bedrooms=2, furnished=True, price_per_month=1250))

    found = await listings.find_listings(
        QueryFilter(types=["Flat"], bedrooms=[0, 2], furnished=False, max_price=1300, location="Bath")
    )

    assert [(listing.bedrooms, listing.price_per_month) for listing in found] == [(0, 700), (2, 1200)]


def test_listing_create_defaults():
    listing = ListingCreate(type="House", price_per_month=2000, bedrooms=4, location="Bath")

    assert listing.furnished is False
    assert listing.photo_urls == []


async def test_location_wildcards_match_literally(listings):
    await listings.add_listing(make_listing(location="Bristol"))
    await listings.add_listing(make_listing(location="Unit_5, Bath"))

    assert await listings.find_listings(QueryFilter(location="%")) == []
    assert await listings.find_listings(QueryFilter(location="Br_stol")) == []
    found = await listings.find_listings(QueryFilter(location="unit_5"))
    assert [listing.location for listing in found] == ["Unit_5, Bath"]
