from typing import Optional
import logging

from rentseeker.schemas.enums import EventKind
from rentseeker.schemas.events import InboundEvent

logger = logging.getLogger(__name__)


def _command_name(text: str) -> str:
    # "/search@RentSeekerBot extra words" -> "search"
    first_word = text.split()[0]
    return first_word[1:].split("@", 1)[0]


def parse_update(payload: dict) -> Optional[InboundEvent]:
    """
    Converts a Telegram update into an InboundEvent.
    Returns None for updates the bot does not act on (edits, stickers, ...).
    """
    try:
        # --- A. BUTTON PRESSES ---
        query = payload.get("callback_query")
        if query:
            message = query.get("message") or {}
            return InboundEvent(
                user_id=query["from"]["id"],
                chat_id=message.get("chat", {}).get("id", query["from"]["id"]),
                kind=EventKind.SELECTION,
                payload=query.get("data") or "",
                first_name=query["from"].get("first_name"),
                message_id=message.get("message_id"),
                message_text=message.get("text"),
                callback_id=query["id"],
            )

        # --- B. MESSAGES ---
        message = payload.get("message")
        if not message or "text" not in message:
            return None

        text = message["text"]
        sender = message["from"]
        is_command = text.startswith("/") and any(
            entity.get("type") == "bot_command" and entity.get("offset") == 0
            for entity in message.get("entities", [])
        )

        return InboundEvent(
            user_id=sender["id"],
            chat_id=message["chat"]["id"],
            kind=EventKind.COMMAND if is_command else EventKind.TEXT,
            payload=_command_name(text) if is_command else text,
            first_name=sender.get("first_name"),
            message_id=message.get("message_id"),
        )

    except (KeyError, IndexError, TypeError) as e:
        logger.warning(f"Malformed Telegram update: {e}")
        return None
