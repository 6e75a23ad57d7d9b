"""
Pure transforms from a user's raw selections to a QueryFilter.
Nothing in here touches the database or the network.
"""
from typing import Dict, List, Tuple

from rentseeker.schemas.search import QueryFilter, SavedPreferences, SelectionSet

PRICE_FLOOR = 0
PRICE_CEILING = 1_000_000

STUDIO = "Studio"
FURNISHED = "Furnished"
UNFURNISHED = "Unfurnished"

PROPERTY_TYPE_OPTIONS = ("Flat", "House")
BEDROOM_OPTIONS = (STUDIO, "1", "2", "3", "4", "5+")
FURNISHED_OPTIONS = (FURNISHED, UNFURNISHED)


def selected_labels(options: Dict[str, bool]) -> List[str]:
    """Labels whose value is True. Always a list, possibly empty."""
    return [label for label, chosen in (options or {}).items() if chosen]


def selected_bedroom_values(options: Dict[str, bool]) -> List[int]:
    """
    Selected bedroom labels as integers.
    'Studio' is 0, '5+' is 5; anything else non-numeric is ignored.
    """
    values = []
    for label in selected_labels(options):
        if label == STUDIO:
            values.append(0)
            continue
        try:
            values.append(int(label.rstrip("+")))
        except ValueError:
            continue
    return values


def _split_price_range(text: str) -> List[str]:
    return [part.strip() for part in (text or "").split("-")]


def is_valid_price_range(text: str) -> bool:
    """True when the text is exactly '<int> - <int>' with both sides within the price ceiling."""
    parts = _split_price_range(text)
    if len(parts) != 2:
        return False
    try:
        bounds = [int(part) for part in parts]
    except ValueError:
        return False
    return all(PRICE_FLOOR <= bound <= PRICE_CEILING for bound in bounds)


def parse_price_range(text: str) -> Tuple[int, int]:
    """
    Converts '500-1000' into (500, 1000).
    Anything that does not split into two parts gives the unconstrained default;
    a side that fails to parse takes its own default. Both sides are clamped to
    [PRICE_FLOOR, PRICE_CEILING], then reversed bounds are swapped.
    """
    parts = _split_price_range(text)
    if len(parts) != 2:
        return PRICE_FLOOR, PRICE_CEILING

    try:
        min_price = int(parts[0])
    except ValueError:
        min_price = PRICE_FLOOR
    try:
        max_price = int(parts[1])
    except ValueError:
        max_price = PRICE_CEILING

    # Storage integers are bounded
    min_price = min(max(min_price, PRICE_FLOOR), PRICE_CEILING)
    max_price = min(max(max_price, PRICE_FLOOR), PRICE_CEILING)

    if min_price > max_price:
        min_price, max_price = max_price, min_price
    return min_price, max_price


def furnished_constraint(options: Dict[str, bool]):
    """True/False when exactly one of Furnished/Unfurnished is chosen, else None."""
    chosen = [label for label in selected_labels(options) if label in FURNISHED_OPTIONS]
    if len(chosen) != 1:
        return None
    return chosen[0] == FURNISHED


def build_filter(selections: SelectionSet, default_location: str) -> QueryFilter:
    query_filter = QueryFilter(location=selections.location or default_location)

    types = selected_labels(selections.property_types)
    if types:
        query_filter.types = types

    bedrooms = selected_bedroom_values(selections.bedroom_options)
    if bedrooms:
        query_filter.bedrooms = bedrooms

    if selections.price_range:
        query_filter.min_price, query_filter.max_price = parse_price_range(selections.price_range)

    query_filter.furnished = furnished_constraint(selections.furnished_options)
    return query_filter


def snapshot_preferences(user_id: int, selections: SelectionSet) -> SavedPreferences:
    """Freezes the live selection into a record ready to be saved."""
    if selections.price_range:
        min_price, max_price = parse_price_range(selections.price_range)
    else:
        min_price, max_price = PRICE_FLOOR, PRICE_CEILING

    return SavedPreferences(
        user_id=user_id,
        property_types=dict(selections.property_types),
        bedroom_options=dict(selections.bedroom_options),
        furnished_options=dict(selections.furnished_options),
        min_price=min_price,
        max_price=max_price,
        location=selections.location,
    )


def selections_from_saved(saved: SavedPreferences) -> SelectionSet:
    price_range = ""
    if (saved.min_price, saved.max_price) != (PRICE_FLOOR, PRICE_CEILING):
        price_range = f"{saved.min_price}-{saved.max_price}"

    return SelectionSet(
        property_types=dict(saved.property_types),
        bedroom_options=dict(saved.bedroom_options),
        furnished_options=dict(saved.furnished_options),
        price_range=price_range,
        location=saved.location,
    )
