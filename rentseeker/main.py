from contextlib import asynccontextmanager
import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rentseeker import __version__
from rentseeker.api.endpoints import telegram
from rentseeker.config import settings
from rentseeker.core.session_store import InMemorySessionStore
from rentseeker.db.session import close_db, init_db
from rentseeker.services.telegram_client import TelegramClient

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not settings.TELEGRAM_BOT_TOKEN:
        logger.error("TELEGRAM_BOT_TOKEN is not set; replies cannot be delivered.")

    await init_db()
    app.state.session_store = InMemorySessionStore()

    if settings.TELEGRAM_WEBHOOK_URL and settings.TELEGRAM_BOT_TOKEN:
        await TelegramClient(settings.TELEGRAM_BOT_TOKEN).set_webhook(
            settings.TELEGRAM_WEBHOOK_URL, settings.TELEGRAM_WEBHOOK_SECRET
        )

    logger.info(f"RentSeeker started ({settings.ENVIRONMENT}), search area: {settings.SERVICE_AREA}")
    yield
    await close_db()


# Initialize the App
app = FastAPI(
    title="RentSeeker Bot API",
    description="Telegram chatbot for searching rental properties",
    version=__version__,
    lifespan=lifespan,
)

# --- CORS MIDDLEWARE ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- ROUTER REGISTRATION ---
# Resulting URL: http://localhost:8000/api/v1/webhook
app.include_router(
    telegram.router,
    prefix="/api/v1",
    tags=["Telegram"]
)


# --- ROOT ENDPOINT ---
@app.get("/")
async def health_check():
    return {
        "status": "active",
        "service": "RentSeeker Telegram API",
        "version": __version__
    }


def run():
    uvicorn.run("rentseeker.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)


# --- ENTRY POINT ---
if __name__ == "__main__":
    run()
