from sqlalchemy import text

from rentseeker.schemas.search import QueryFilter

LISTING_COLUMNS = """
    l.id, l.type, l.price_per_month, l.bedrooms, l.furnished,
    l.location, l.description, l.photo_urls, l.web_link
"""


def escape_like(value: str) -> str:
    """Makes LIKE wildcards in user text match literally (used with ESCAPE '\\')."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_listing_query(query_filter: QueryFilter):
    """
    Translates a QueryFilter into a parameterised SELECT over 'listings'.
    Every constraint present is AND-ed; absent ones are left out entirely.
    """
    sql_parts = [f"""
        SELECT {LISTING_COLUMNS}
        FROM listings l
        WHERE 1=1
    """]
    params = {}

    # 1. Property Types (case-insensitive, any of)
    if query_filter.types:
        type_clauses = []
        for i, property_type in enumerate(query_filter.types):
            type_clauses.append(f"LOWER(l.type) = LOWER(:type_{i})")
            params[f"type_{i}"] = property_type
        sql_parts.append("AND (" + " OR ".join(type_clauses) + ")")

    # 2. Bedrooms (value in selected set)
    if query_filter.bedrooms:
        placeholders = []
        for i, bedrooms in enumerate(query_filter.bedrooms):
            placeholders.append(f":bedrooms_{i}")
            params[f"bedrooms_{i}"] = bedrooms
        sql_parts.append("AND l.bedrooms IN (" + ", ".join(placeholders) + ")")

    # 3. Price (inclusive range)
    if query_filter.min_price is not None:
        sql_parts.append("AND l.price_per_month >= :min_price")
        params["min_price"] = query_filter.min_price
    if query_filter.max_price is not None:
        sql_parts.append("AND l.price_per_month <= :max_price")
        params["max_price"] = query_filter.max_price

    # 4. Furnished
    if query_filter.furnished is not None:
        sql_parts.append("AND l.furnished = :furnished")
        params["furnished"] = query_filter.furnished

    # 5. Location (case-insensitive containment)
    if query_filter.location:
        sql_parts.append("AND LOWER(l.location) LIKE :location ESCAPE '\\'")
        params["location"] = f"%{escape_like(query_filter.location.strip().lower())}%"

    sql_parts.append("ORDER BY l.price_per_month ASC, l.id ASC")

    return text("\n".join(sql_parts)), params


def build_saved_listings_query(user_id: int):
    """Listings a user has saved, in the order they were saved."""
    query = text(f"""
        SELECT {LISTING_COLUMNS}
        FROM listings l
        JOIN saved_listings s ON s.listing_id = l.id
        WHERE s.user_id = :user_id
        ORDER BY s.id ASC
    """)
    return query, {"user_id": user_id}
