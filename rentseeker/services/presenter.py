"""
Everything the user reads: prompts, summaries, listing cards and keyboards.
Messages are sent with HTML parse mode, so free text is escaped.
"""
from html import escape
from typing import Dict, Optional, Sequence, Tuple

from rentseeker.schemas.events import Button, Options
from rentseeker.schemas.listing import Listing
from rentseeker.schemas.search import SavedPreferences, SelectionSet
from rentseeker.services.filters import (
    BEDROOM_OPTIONS,
    FURNISHED_OPTIONS,
    PRICE_CEILING,
    PRICE_FLOOR,
    PROPERTY_TYPE_OPTIONS,
    furnished_constraint,
    selected_labels,
)

# --- FIXED TEXTS ---
HELP_TEXT = """Welcome to RentSeekerBot!

Below are the commands you can use to interact with the bot:

1. /start - Initiates the bot and displays a welcome message.
2. /search - Starts a property search using your saved preferences if they are available. You will be prompted to provide details if no preferences are saved.
3. /save_preferences - Saves your current search preferences for future use.
4. /view_preferences - Displays your currently saved search preferences.
5. /clear_preferences - Clears all your saved search preferences.
6. /saved - View all your saved property listings. To save a listing, use the "Save Listing" button below each listing.
7. /help - Shows this message.
"""

UNKNOWN_COMMAND = "Unknown command. Type /help for available commands."
NOT_UNDERSTOOD = "I'm sorry, I didn't understand that. Please use the provided buttons or follow the instructions."
NEW_SEARCH_INTRO = "Let's start your property search.\nI'll ask you a series of questions to understand your preferences."
PROPERTY_TYPE_PROMPT = "🏠 Select property type(s):"
BEDROOMS_PROMPT = "🛏 Select the number of bedrooms (you can select multiple options):"
PRICE_RANGE_PROMPT = "💰 Let me know the price range for the monthly rent in GBP.\nFormat: min - max (e.g., 1200 - 1800)"
PRICE_RANGE_INVALID = "Invalid price range format. Please use the format: min - max (e.g., 1200 - 1800)"
FURNISHED_PROMPT = "🪑 Do you want to search for furnished or unfurnished accommodation? (You can select both)"
LOCATION_INVALID = "Please type the area you'd like to search in, or use the button below."
SEARCH_FAILED = "Sorry, there was an error while searching for properties. Please try again later."
NO_RESULTS = "Sorry, no properties match your criteria. Try adjusting your preferences and searching again."
RESULTS_DONE = "That's all the properties I found matching your criteria. Would you like to start a new search? Just send /search."
HOURS_LATER = "As the bot is in testing mode, please assume that several hours have passed. So, a few moments later…"
DAY_LATER = "As the bot is in testing mode, please assume that one day has passed. So, a few moments later…"
NEW_PROPERTY_ALERT = "🔔 Alert: New property found matching your criteria!"
SAVED_PREFS_LOAD_FAILED = "Error retrieving saved preferences. Starting new search."
PREFERENCES_SAVED = "Your preferences have been saved successfully!"
PREFERENCES_SAVE_FAILED = "Sorry, there was an error saving your preferences."
NO_SAVED_PREFERENCES = "You haven't saved any preferences yet."
PREFERENCES_LOAD_FAILED = "Sorry, there was an error retrieving your preferences. Please try again later."
PREFERENCES_CLEARED = "Your preferences have been cleared successfully!"
PREFERENCES_CLEAR_FAILED = "Sorry, there was an error clearing your preferences."
NO_SAVED_LISTINGS = "You haven't saved any listings yet."
SAVED_LISTINGS_HEADER = "Here are your saved listings:"
SAVED_LISTINGS_FAILED = "Sorry, there was an error retrieving your saved listings. Please try again."


def welcome_text(first_name: Optional[str], service_area: str) -> str:
    name = escape(first_name or "there")
    return (
        f"🌟 Welcome, {name}!\n\n"
        "I'm delighted to assist you in finding your perfect home.\n"
        f"Please note that currently, the bot is in testing mode, and the property search is restricted to the {escape(service_area)} area.\n"
        "I will begin by asking a few questions to understand your preferences "
        f"and tailor the property search to your needs within {escape(service_area)}.\n\n"
        f"Let's get started on finding your ideal home in {escape(service_area)}!"
    )


def welcome_options() -> Options:
    return [[Button(text="Okay, let's go!", data="start_preferences")]]


def saved_choice_options() -> Options:
    return [[
        Button(text="Use Saved Preferences", data="use_saved_prefs"),
        Button(text="Start New Search", data="start_new_search"),
    ]]


def location_prompt(service_area: str) -> str:
    return (
        f"📍 The bot is in testing mode, so the search area is restricted to {escape(service_area)}. "
        "Please confirm the location:"
    )


def location_options(service_area: str) -> Options:
    return [[Button(text=service_area, data=f"location:{service_area}")]]


# --- MULTI-SELECT KEYBOARDS ---
def button_text(label: str, selected: bool) -> str:
    return f"✅ {label}" if selected else label


def multi_select_options(options: Dict[str, bool], prefix: str, labels: Sequence[str], per_row: int = 3) -> Options:
    """One button per label (✅ when chosen), wrapped into rows, then a Done row."""
    buttons = [
        Button(text=button_text(label, options.get(label, False)), data=f"{prefix}:{label}")
        for label in labels
    ]
    rows = [buttons[i:i + per_row] for i in range(0, len(buttons), per_row)]
    rows.append([Button(text="Done", data=f"{prefix}:done")])
    return rows


def property_type_options(selections: SelectionSet) -> Options:
    return multi_select_options(selections.property_types, "property_type", PROPERTY_TYPE_OPTIONS)


def bedroom_options(selections: SelectionSet) -> Options:
    return multi_select_options(selections.bedroom_options, "bedrooms", BEDROOM_OPTIONS)


def furnished_options(selections: SelectionSet) -> Options:
    return multi_select_options(selections.furnished_options, "furnished", FURNISHED_OPTIONS)


# --- SUMMARIES ---
def _joined(options: Dict[str, bool], empty: str = "Any") -> str:
    labels = selected_labels(options)
    return escape(", ".join(labels)) if labels else empty


def _furnished_status(options: Dict[str, bool]) -> str:
    constraint = furnished_constraint(options)
    if constraint is None:
        return "Any"
    return "Furnished" if constraint else "Unfurnished"


def summary_text(selections: SelectionSet, service_area: str) -> str:
    return (
        "Great! Here's a summary of your preferences:\n\n"
        f"🏠 Property Type: {_joined(selections.property_types)}\n"
        f"💰 Price Range: {escape(selections.price_range) or 'Any'}\n"
        f"🛏 Bedrooms: {_joined(selections.bedroom_options)}\n"
        f"🪑 Furnished: {_furnished_status(selections.furnished_options)}\n"
        f"📍 Location: {escape(selections.location or service_area)}\n\n"
        "I'll now search for properties matching these criteria. Please wait a moment."
    )


def _price_text(prefs: SavedPreferences) -> str:
    if (prefs.min_price, prefs.max_price) == (PRICE_FLOOR, PRICE_CEILING):
        return "Any"
    return f"£{prefs.min_price} - £{prefs.max_price}"


def saved_preferences_text(prefs: SavedPreferences, heading: str = "Your saved preferences:") -> str:
    return (
        f"{heading}\n"
        f"Property Type: {_joined(prefs.property_types)}\n"
        f"Price Range: {_price_text(prefs)}\n"
        f"Bedrooms: {_joined(prefs.bedroom_options)}\n"
        f"Furnished: {_furnished_status(prefs.furnished_options)}\n"
        f"Location: {escape(prefs.location) or 'Any'}"
    )


def saved_choice_text(prefs: SavedPreferences) -> str:
    return (
        saved_preferences_text(prefs, heading="You have saved preferences:")
        + "\n\nWould you like to use these preferences or start a new search?"
    )


def relaxed_text(relaxed: Sequence[str]) -> str:
    return (
        "I couldn't find an exact match, so I widened the search by ignoring: "
        + ", ".join(relaxed) + "."
    )


# --- LISTINGS ---
def furnished_label(furnished: bool) -> str:
    return "Furnished" if furnished else "Unfurnished"


def bedrooms_label(bedrooms: int) -> str:
    if bedrooms == 0:
        return "Studio"
    return f"{bedrooms} bedroom" + ("s" if bedrooms != 1 else "")


def listing_card(listing: Listing, is_saved: bool = False) -> Tuple[str, Options]:
    """HTML card for one listing, with a Save (or Delete, for saved views) button."""
    text = (
        f"🏠 {escape(listing.type)}\n"
        f"💰 £{listing.price_per_month} per month\n"
        f"🛏 {bedrooms_label(listing.bedrooms)}\n"
        f"📍 {escape(listing.location)}\n"
        f"🔑 {furnished_label(listing.furnished)}\n\n"
        f"📝 Description: {escape(listing.description or '')}"
    )
    if listing.web_link:
        text += f"\n\n🔗 <a href=\"{escape(listing.web_link, quote=True)}\">View on website</a>"

    if is_saved:
        options = [[Button(text="Delete Listing", data=f"delete:{listing.id}")]]
    else:
        options = [[Button(text="Save Listing", data=f"save:{listing.id}")]]
    return text, options


def saved_marker_options() -> Options:
    return [[Button(text="Saved ✅", data="noop")]]
