from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from rentseeker.config import settings
from rentseeker.core.dialogue import DialogueOrchestrator, MessageSink
from rentseeker.core.session_store import SessionStore
from rentseeker.core.update_parser import parse_update
from rentseeker.db.session import get_db
from rentseeker.schemas.enums import Command, EventKind
from rentseeker.services.telegram_client import TelegramClient

# Initialize Router and Logger
router = APIRouter()
logger = logging.getLogger(__name__)


# --- DEPENDENCIES ---
def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_message_sink() -> MessageSink:
    return TelegramClient(settings.TELEGRAM_BOT_TOKEN)


# ==============================================================================
# MESSAGE RECEIVER (POST)
# ==============================================================================
@router.post("/webhook")
async def receive_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    sessions: SessionStore = Depends(get_session_store),
    sink: MessageSink = Depends(get_message_sink),
    secret_token: Optional[str] = Header(None, alias="X-Telegram-Bot-Api-Secret-Token"),
):
    """
    Receives Telegram updates and runs them through the dialogue.
    Always answers 200 once the sender is verified, so Telegram does not retry.
    """
    if settings.TELEGRAM_WEBHOOK_SECRET and secret_token != settings.TELEGRAM_WEBHOOK_SECRET:
        logger.warning("Webhook call rejected: invalid secret token.")
        raise HTTPException(status_code=403, detail="Verification failed")

    try:
        payload = await request.json()
        event = parse_update(payload)
        if event is None:
            return {"status": "ignored", "reason": "unsupported_update"}

        orchestrator = DialogueOrchestrator.from_db(db, sessions, sink)

        if event.kind == EventKind.COMMAND and event.payload.lower() == Command.START.value:
            await orchestrator.start_session(event.user_id, event.chat_id, event.first_name)
        else:
            await orchestrator.handle_event(event.user_id, event)

    except Exception as e:
        logger.exception(f"Error processing webhook: {e}")
        return {"status": "error", "detail": str(e)}

    return {"status": "received"}
