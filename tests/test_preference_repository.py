from rentseeker.schemas.search import SavedPreferences
from tests.conftest import make_listing


def _prefs(user_id=1, **overrides):
    data = dict(
        user_id=user_id,
        property_types={"Flat": True, "House": False},
        bedroom_options={"2": True},
        furnished_options={"Furnished": True, "Unfurnished": False},
        min_price=800,
        max_price=1500,
        location="Bath",
    )
    data.update(overrides)
    return SavedPreferences(**data)


async def test_load_without_saved_preferences_returns_none(preferences):
    assert await preferences.load(1) is None


async def test_save_then_load_round_trip(preferences):
    await preferences.save(1, _prefs())

    loaded = await preferences.load(1)

    assert loaded.property_types == {"Flat": True, "House": False}
    assert loaded.bedroom_options == {"2": True}
    assert loaded.furnished_options == {"Furnished": True, "Unfurnished": False}
    assert (loaded.min_price, loaded.max_price) == (800, 1500)
    assert loaded.location == "Bath"
    assert loaded.last_search is not None


async def test_second_save_overwrites_every_field(preferences):
    await preferences.save(1, _prefs())
    await preferences.save(1, _prefs(property_types={"House": True}, bedroom_options={}, min_price=0,
                                     max_price=2000, location="Widcombe"))

    loaded = await preferences.load(1)

    assert loaded.property_types == {"House": True}
    assert loaded.bedroom_options == {}
    assert (loaded.min_price, loaded.max_price) == (0, 2000)
    assert loaded.location == "Widcombe"


async def test_preferences_are_per_user(preferences):
    await preferences.save(1, _prefs(location="Bath"))
    await preferences.save(2, _prefs(user_id=2, location="Combe Down"))

    assert (await preferences.load(1)).location == "Bath"
    assert (await preferences.load(2)).location == "Combe Down"


async def test_clear_removes_record(preferences):
    await preferences.save(1, _prefs())

    await preferences.clear(1)

    assert await preferences.load(1) is None


async def test_clear_without_record_succeeds(preferences):
    await preferences.clear(42)

    assert await preferences.load(42) is None


async def test_saving_a_listing_twice_keeps_one_reference(preferences, listings):
    listing = await listings.add_listing(make_listing())

    await preferences.save_listing_reference(1, listing.id)
    await preferences.save_listing_reference(1, listing.id)

    saved = await preferences.list_saved_references(1)
    assert [item.id for item in saved] == [listing.id]


async def test_saved_listings_come_back_in_save_order(preferences, listings):
    first = await listings.add_listing(make_listing(price_per_month=1500))
    second = await listings.add_listing(make_listing(price_per_month=700))

    await preferences.save_listing_reference(1, first.id)
    await preferences.save_listing_reference(1, second.id)
    await preferences.save_listing_reference(2, second.id)

    assert [item.id for item in await preferences.list_saved_references(1)] == [first.id, second.id]
    assert [item.id for item in await preferences.list_saved_references(2)] == [second.id]


async def test_delete_reference(preferences, listings):
    listing = await listings.add_listing(make_listing())
    await preferences.save_listing_reference(1, listing.id)

    await preferences.delete_listing_reference(1, listing.id)

    assert await preferences.list_saved_references(1) == []


async def test_delete_missing_reference_succeeds(preferences):
    await preferences.delete_listing_reference(1, 12345)

    assert await preferences.list_saved_references(1) == []
