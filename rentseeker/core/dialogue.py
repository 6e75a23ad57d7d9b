import asyncio
from html import escape
from typing import List, Optional, Protocol
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rentseeker.config import settings
from rentseeker.core.conversation import ConversationStateMachine, Outcome, StepResult
from rentseeker.core.session_store import SessionStore
from rentseeker.core.state import IllegalTransition, Stage, UserSession
from rentseeker.db.repositories.listing_repository import ListingRepository
from rentseeker.db.repositories.preference_repository import PreferenceRepository
from rentseeker.schemas.enums import Command, EventKind
from rentseeker.schemas.events import InboundEvent, Options
from rentseeker.schemas.listing import Listing
from rentseeker.schemas.search import SelectionSet
from rentseeker.services import presenter
from rentseeker.services.filters import build_filter, selections_from_saved, snapshot_preferences
from rentseeker.services.search_engine import ListingSource, SearchEngine

logger = logging.getLogger(__name__)

INITIAL_BATCH = 3
SECOND_BATCH = 2


class MessageSink(Protocol):
    """Outbound side of the transport."""

    async def send_text(self, chat_id: int, text: str, options: Optional[Options] = None): ...

    async def send_media(self, chat_id: int, photo_urls: List[str]): ...

    async def edit_options(self, chat_id: int, message_id: int, options: Options): ...

    async def edit_text(self, chat_id: int, message_id: int, text: str, options: Optional[Options] = None): ...

    async def answer_callback(self, callback_id: str, text: str = ""): ...


class ListingCatalog(ListingSource, Protocol):
    """Search plus single-listing lookup, used to re-render cards."""

    async def get_listing(self, listing_id: int) -> Optional[Listing]: ...


class DialogueOrchestrator:
    """
    Routes inbound events to the state machine, runs searches and talks back
    through the sink. Every event for a user runs under that user's lock.
    """

    def __init__(
        self,
        sessions: SessionStore,
        sink: MessageSink,
        listings: ListingCatalog,
        preferences: PreferenceRepository,
        service_area: Optional[str] = None,
        presentation_delay: Optional[float] = None,
        message_interval: Optional[float] = None,
    ):
        self.sessions = sessions
        self.sink = sink
        self.listings = listings
        self.preferences = preferences
        self.machine = ConversationStateMachine()
        self.service_area = service_area or settings.SERVICE_AREA
        self.presentation_delay = (
            settings.PRESENTATION_DELAY_SECONDS if presentation_delay is None else presentation_delay
        )
        self.message_interval = (
            settings.MESSAGE_INTERVAL_SECONDS if message_interval is None else message_interval
        )

    @classmethod
    def from_db(cls, db: AsyncSession, sessions: SessionStore, sink: MessageSink, **kwargs):
        return cls(sessions, sink, ListingRepository(db), PreferenceRepository(db), **kwargs)

    # ==================================================================
    # ENTRY POINTS
    # ==================================================================
    async def start_session(self, user_id: int, chat_id: Optional[int] = None, first_name: Optional[str] = None):
        async with self.sessions.lock(user_id):
            session = await self.sessions.get(user_id)
            await self._start(session, chat_id or user_id, first_name)
            await self.sessions.put(user_id, session)

    async def handle_event(self, user_id: int, event: InboundEvent):
        async with self.sessions.lock(user_id):
            session = await self.sessions.get(user_id)
            logger.info(f"🟢 User {user_id} [{session.stage.value}] {event.kind.value}: {event.payload}")

            if event.kind == EventKind.COMMAND:
                await self._on_command(session, user_id, event)
            elif event.kind == EventKind.SELECTION:
                await self._on_selection(session, user_id, event)
            else:
                await self._on_text(session, event)

            await self.sessions.put(user_id, session)

    async def current_stage(self, user_id: int) -> Stage:
        session = await self.sessions.get(user_id)
        return session.stage

    # ==================================================================
    # 1. COMMANDS
    # ==================================================================
    async def _on_command(self, session: UserSession, user_id: int, event: InboundEvent):
        chat_id = event.chat_id
        try:
            command = Command(event.payload.lower())
        except ValueError:
            await self.sink.send_text(chat_id, presenter.UNKNOWN_COMMAND)
            return

        if command == Command.START:
            await self._start(session, chat_id, event.first_name)
        elif command == Command.HELP:
            await self.sink.send_text(chat_id, presenter.HELP_TEXT)
        elif command == Command.SEARCH:
            await self._search_command(session, user_id, chat_id)
        elif command == Command.SAVE_PREFERENCES:
            await self._save_preferences(session, user_id, chat_id)
        elif command == Command.VIEW_PREFERENCES:
            await self._view_preferences(user_id, chat_id)
        elif command == Command.CLEAR_PREFERENCES:
            await self._clear_preferences(user_id, chat_id)
        elif command == Command.SAVED:
            await self._view_saved_listings(user_id, chat_id)

    async def _start(self, session: UserSession, chat_id: int, first_name: Optional[str]):
        self.machine.restart(session)
        await self.sink.send_text(
            chat_id,
            presenter.welcome_text(first_name, self.service_area),
            presenter.welcome_options(),
        )

    async def _search_command(self, session: UserSession, user_id: int, chat_id: int):
        self.machine.restart(session)

        # "Can't check" is treated exactly like "nothing saved"
        try:
            saved = await self.preferences.load(user_id)
        except SQLAlchemyError as e:
            logger.error(f"Could not check saved preferences for user {user_id}: {e}")
            saved = None

        if saved is None:
            await self._start_new_search(session, chat_id)
            return

        self.machine.offer_saved(session)
        await self.sink.send_text(chat_id, presenter.saved_choice_text(saved), presenter.saved_choice_options())

    async def _save_preferences(self, session: UserSession, user_id: int, chat_id: int):
        snapshot = snapshot_preferences(user_id, session.selections)
        try:
            await self.preferences.save(user_id, snapshot)
        except SQLAlchemyError as e:
            logger.error(f"Failed to save preferences for user {user_id}: {e}")
            await self.sink.send_text(chat_id, presenter.PREFERENCES_SAVE_FAILED)
            return
        await self.sink.send_text(chat_id, presenter.PREFERENCES_SAVED)

    async def _view_preferences(self, user_id: int, chat_id: int):
        try:
            saved = await self.preferences.load(user_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to load preferences for user {user_id}: {e}")
            await self.sink.send_text(chat_id, presenter.PREFERENCES_LOAD_FAILED)
            return

        if saved is None:
            await self.sink.send_text(chat_id, presenter.NO_SAVED_PREFERENCES)
            return
        await self.sink.send_text(chat_id, presenter.saved_preferences_text(saved))

    async def _clear_preferences(self, user_id: int, chat_id: int):
        try:
            await self.preferences.clear(user_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to clear preferences for user {user_id}: {e}")
            await self.sink.send_text(chat_id, presenter.PREFERENCES_CLEAR_FAILED)
            return
        await self.sink.send_text(chat_id, presenter.PREFERENCES_CLEARED)

    async def _view_saved_listings(self, user_id: int, chat_id: int):
        try:
            listings = await self.preferences.list_saved_references(user_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to load saved listings for user {user_id}: {e}")
            await self.sink.send_text(chat_id, presenter.SAVED_LISTINGS_FAILED)
            return

        if not listings:
            await self.sink.send_text(chat_id, presenter.NO_SAVED_LISTINGS)
            return

        await self.sink.send_text(chat_id, presenter.SAVED_LISTINGS_HEADER)
        await self._present_listings(chat_id, listings, is_saved=True)

    # ==================================================================
    # 2. BUTTON PRESSES
    # ==================================================================
    async def _on_selection(self, session: UserSession, user_id: int, event: InboundEvent):
        action, _, value = event.payload.partition(":")

        # Card buttons only edit their own message and answer with the outcome
        if action in ("save", "delete"):
            handler = self._save_listing if action == "save" else self._delete_listing
            answer = await handler(user_id, value, event)
            await self._answer_callback(event, answer)
            return

        # Acknowledged up front: a search and the paced results may follow
        await self._answer_callback(event)

        try:
            if action in ("start_preferences", "start_new_search"):
                await self._start_new_search(session, event.chat_id)
            elif action == "use_saved_prefs":
                await self._use_saved_preferences(session, user_id, event.chat_id)
            elif action == "noop":
                pass
            else:
                result = self.machine.select(session, action, value)
                await self._respond(session, event, result)
        except IllegalTransition as e:
            logger.info(f"Ignoring '{event.payload}' for user {user_id}: {e}")
            await self.sink.send_text(event.chat_id, presenter.NOT_UNDERSTOOD)

    async def _answer_callback(self, event: InboundEvent, text: str = ""):
        if event.callback_id:
            await self.sink.answer_callback(event.callback_id, text)

    async def _use_saved_preferences(self, session: UserSession, user_id: int, chat_id: int):
        if session.stage != Stage.AWAITING_SAVED_CHOICE:
            raise IllegalTransition(session.stage, Stage.SHOWING_SUMMARY)

        try:
            saved = await self.preferences.load(user_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to load saved preferences for user {user_id}: {e}")
            saved = None

        if saved is None:
            await self.sink.send_text(chat_id, presenter.SAVED_PREFS_LOAD_FAILED)
            await self._start_new_search(session, chat_id)
            return

        self.machine.reuse_saved(session, selections_from_saved(saved))
        await self._perform_search(session.selections, chat_id)

    async def _save_listing(self, user_id: int, value: str, event: InboundEvent) -> str:
        try:
            listing_id = int(value)
        except ValueError:
            return "Invalid property ID"

        try:
            await self.preferences.save_listing_reference(user_id, listing_id)
            card = await self._card_text(listing_id, event)
        except SQLAlchemyError as e:
            logger.error(f"Failed to save listing {listing_id} for user {user_id}: {e}")
            return "Error saving listing"

        if event.message_id:
            await self.sink.edit_text(
                event.chat_id,
                event.message_id,
                card + "\n\n✅ Saved",
                presenter.saved_marker_options(),
            )
        return "Listing saved successfully!"

    async def _delete_listing(self, user_id: int, value: str, event: InboundEvent) -> str:
        try:
            listing_id = int(value)
        except ValueError:
            return "Invalid property ID"

        try:
            await self.preferences.delete_listing_reference(user_id, listing_id)
            card = await self._card_text(listing_id, event)
        except SQLAlchemyError as e:
            logger.error(f"Failed to delete listing {listing_id} for user {user_id}: {e}")
            return "Error deleting listing"

        if event.message_id:
            await self.sink.edit_text(event.chat_id, event.message_id, card + "\n\n❌ Deleted")
        return "Listing deleted successfully!"

    async def _card_text(self, listing_id: int, event: InboundEvent) -> str:
        """
        The listing's card rendered again from storage. Telegram sends the
        message back as plain text, which would lose the website link.
        """
        listing = await self.listings.get_listing(listing_id)
        if listing is None:
            return escape(event.message_text or "")
        text, _ = presenter.listing_card(listing)
        return text

    # ==================================================================
    # 3. FREE TEXT
    # ==================================================================
    async def _on_text(self, session: UserSession, event: InboundEvent):
        result = self.machine.submit_text(session, event.payload)
        await self._respond(session, event, result)

    # ==================================================================
    # 4. PROMPTS
    # ==================================================================
    async def _respond(self, session: UserSession, event: InboundEvent, result: StepResult):
        chat_id = event.chat_id

        if result.outcome == Outcome.TOGGLED:
            options = self._stage_options(session)
            if event.message_id:
                await self.sink.edit_options(chat_id, event.message_id, options)
            else:
                await self._ask(session, chat_id)
        elif result.outcome == Outcome.ADVANCED:
            await self._ask(session, chat_id)
        elif result.outcome == Outcome.INVALID:
            if session.stage == Stage.AWAITING_PRICE_RANGE:
                await self.sink.send_text(chat_id, presenter.PRICE_RANGE_INVALID)
            else:
                await self.sink.send_text(
                    chat_id, presenter.LOCATION_INVALID, presenter.location_options(self.service_area)
                )
        else:
            await self.sink.send_text(chat_id, presenter.NOT_UNDERSTOOD)

    def _stage_options(self, session: UserSession) -> Optional[Options]:
        if session.stage == Stage.AWAITING_PROPERTY_TYPE:
            return presenter.property_type_options(session.selections)
        if session.stage == Stage.AWAITING_BEDROOMS:
            return presenter.bedroom_options(session.selections)
        if session.stage == Stage.AWAITING_FURNISHED:
            return presenter.furnished_options(session.selections)
        if session.stage == Stage.AWAITING_LOCATION:
            return presenter.location_options(self.service_area)
        return None

    async def _ask(self, session: UserSession, chat_id: int):
        """Sends the question for the stage the session has just reached."""
        stage = session.stage
        options = self._stage_options(session)

        if stage == Stage.AWAITING_PROPERTY_TYPE:
            await self.sink.send_text(chat_id, presenter.PROPERTY_TYPE_PROMPT, options)
        elif stage == Stage.AWAITING_BEDROOMS:
            await self.sink.send_text(chat_id, presenter.BEDROOMS_PROMPT, options)
        elif stage == Stage.AWAITING_PRICE_RANGE:
            await self.sink.send_text(chat_id, presenter.PRICE_RANGE_PROMPT)
        elif stage == Stage.AWAITING_FURNISHED:
            await self.sink.send_text(chat_id, presenter.FURNISHED_PROMPT, options)
        elif stage == Stage.AWAITING_LOCATION:
            await self.sink.send_text(chat_id, presenter.location_prompt(self.service_area), options)
        elif stage == Stage.SHOWING_SUMMARY:
            await self.sink.send_text(chat_id, presenter.summary_text(session.selections, self.service_area))
            await self._perform_search(session.selections, chat_id)

    async def _start_new_search(self, session: UserSession, chat_id: int):
        self.machine.begin(session)
        await self.sink.send_text(chat_id, presenter.NEW_SEARCH_INTRO)
        await self._ask(session, chat_id)

    # ==================================================================
    # 5. SEARCH & RESULTS
    # ==================================================================
    async def _perform_search(self, selections: SelectionSet, chat_id: int):
        query_filter = build_filter(selections, self.service_area)
        engine = SearchEngine(self.listings)

        try:
            listings = await engine.search(query_filter)
        except SQLAlchemyError as e:
            logger.error(f"Search failed for chat {chat_id}: {e}")
            await self.sink.send_text(chat_id, presenter.SEARCH_FAILED)
            return
        except Exception as e:
            logger.exception(f"Unexpected error while searching for chat {chat_id}: {e}")
            await self.sink.send_text(chat_id, presenter.SEARCH_FAILED)
            return

        if not listings:
            await self.sink.send_text(chat_id, presenter.NO_RESULTS)
            return

        if engine.relaxed:
            await self.sink.send_text(chat_id, presenter.relaxed_text(engine.relaxed))
        await self.present_results(chat_id, listings)

    async def present_results(self, chat_id: int, listings: List[Listing]):
        """
        Shows results in stages: the first few straight away, a couple more
        "a few hours later", and the rest as a "new property" alert.
        """
        await self._present_listings(chat_id, listings[:INITIAL_BATCH])

        if len(listings) > INITIAL_BATCH:
            await self.sink.send_text(chat_id, presenter.HOURS_LATER)
            await asyncio.sleep(self.presentation_delay)
            second_end = INITIAL_BATCH + SECOND_BATCH
            await self._present_listings(chat_id, listings[INITIAL_BATCH:second_end])

            if len(listings) > second_end:
                await self.sink.send_text(chat_id, presenter.DAY_LATER)
                await asyncio.sleep(self.presentation_delay)
                await self.sink.send_text(chat_id, presenter.NEW_PROPERTY_ALERT)
                await self._present_listings(chat_id, listings[second_end:])

        await self.sink.send_text(chat_id, presenter.RESULTS_DONE)

    async def _present_listings(self, chat_id: int, listings: List[Listing], is_saved: bool = False):
        for listing in listings:
            if listing.photo_urls:
                await self.sink.send_media(chat_id, listing.photo_urls)

            text, options = presenter.listing_card(listing, is_saved=is_saved)
            await self.sink.send_text(chat_id, text, options)

            # Spacing between cards keeps us under Telegram's rate limits
            await asyncio.sleep(self.message_interval)
