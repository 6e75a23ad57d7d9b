import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from rentseeker.core.session_store import InMemorySessionStore
from rentseeker.db import models  # noqa: F401
from rentseeker.db.base_class import Base
from rentseeker.db.repositories.listing_repository import ListingRepository
from rentseeker.db.repositories.preference_repository import PreferenceRepository
from rentseeker.schemas.listing import ListingCreate


class RecordingSink:
    """Collects everything the dialogue tries to send."""

    def __init__(self):
        self.sent = []       # (chat_id, text, options)
        self.media = []      # (chat_id, photo_urls)
        self.edits = []      # (chat_id, message_id, text or None, options)
        self.answers = []    # (callback_id, text)

    async def send_text(self, chat_id, text, options=None):
        self.sent.append((chat_id, text, options))
        return len(self.sent)

    async def send_media(self, chat_id, photo_urls):
        self.media.append((chat_id, list(photo_urls)))

    async def edit_options(self, chat_id, message_id, options):
        self.edits.append((chat_id, message_id, None, options))

    async def edit_text(self, chat_id, message_id, text, options=None):
        self.edits.append((chat_id, message_id, text, options))

    async def answer_callback(self, callback_id, text=""):
        self.answers.append((callback_id, text))

    @property
    def texts(self):
        return [text for _, text, _ in self.sent]

    @property
    def last_text(self):
        return self.sent[-1][1]

    @property
    def last_options(self):
        return self.sent[-1][2]


def make_listing(**overrides) -> ListingCreate:
    data = dict(
        type="Flat",
        price_per_month=1000,
        bedrooms=2,
        furnished=True,
        location="Bath",
        description="A nice flat",
        photo_urls=[],
        web_link="https://example.com/property",
    )
    data.update(overrides)
    return ListingCreate(**data)


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db(engine):
    factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    async with factory() as session:
        yield session


@pytest.fixture
def listings(db):
    return ListingRepository(db)


@pytest.fixture
def preferences(db):
    return PreferenceRepository(db)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def sessions():
    return InMemorySessionStore()
