"""Shared fixtures for all tests."""

import os
import uuid
from collections import defaultdict

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from contrato.config import PACKAGE_DATA_DIR
from contrato.database.engine import configure_sqlite
from contrato.database.models import Base, Character
from contrato.game.character.attributes import apply_derived_attributes
from contrato.game.rules import load_rules
from contrato.integrations.calendar import HuntCalendar
from contrato.integrations.chat import ChatLog
from contrato.integrations.i18n import Localizer
from contrato.integrations.notifications import NotificationLog


class ScriptedDice:
    """Die roller returning queued values per die size."""

    def __init__(self) -> None:
        self._queued: dict[int, list[int]] = defaultdict(list)
        self.calls: list[int] = []

    def script(self, sides: int, *values: int) -> "ScriptedDice":
        self._queued[sides].extend(values)
        return self

    def roll_die(self, sides: int) -> int:
        self.calls.append(sides)
        if not self._queued[sides]:
            raise AssertionError(f"No scripted value left for d{sides}")
        return self._queued[sides].pop(0)


# Point settings at a throwaway database before anything caches them
@pytest.fixture(scope="session", autouse=True)
def use_test_database(tmp_path_factory):
    """Force all tests to use a temporary database instead of ./data."""
    test_db_dir = tmp_path_factory.mktemp("contrato_test")
    test_db_path = test_db_dir / "test_contrato.db"

    os.environ["CONTRATO_DATABASE_URL"] = f"sqlite+aiosqlite:///{test_db_path}"

    import contrato.database.engine as engine_module

    engine_module._engine = None
    engine_module._async_session_factory = None

    from contrato.config import get_settings

    get_settings.cache_clear()

    yield

    engine_module._engine = None
    engine_module._async_session_factory = None
    get_settings.cache_clear()


@pytest.fixture
async def db_session():
    """Create a test database session with in-memory SQLite."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )
    configure_sqlite(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as session:
        yield session
        await session.rollback()

    await engine.dispose()


@pytest.fixture
def localizer():
    """Portuguese string table shipped with the package."""
    return Localizer.from_directory(PACKAGE_DATA_DIR / "lang", "pt-BR")


@pytest.fixture
def rules(localizer):
    """Packaged rules configuration with localized labels."""
    return load_rules(PACKAGE_DATA_DIR / "rules.yaml", localizer)


@pytest.fixture
def dice():
    """Scripted dice; tests queue the values they need."""
    return ScriptedDice()


@pytest.fixture
def chat():
    """In-memory chat log."""
    return ChatLog()


@pytest.fixture
def calendar():
    """Active in-fiction calendar."""
    return HuntCalendar()


@pytest.fixture
def notifier():
    """Records user-facing warnings."""
    return NotificationLog()


@pytest.fixture
async def test_character(db_session: AsyncSession):
    """Create a normalized test character (6/6, pool 7/7, skill briga 3)."""
    character = Character(
        id=uuid.uuid4(),
        name="Lúcia",
        skills={"briga": 3},
        notes="",
        last_hunt_frequency="none",
    )
    apply_derived_attributes(character)
    db_session.add(character)
    await db_session.commit()
    await db_session.refresh(character)
    return character


@pytest.fixture
async def failing_history_store(db_session: AsyncSession):
    """Make the database refuse every history insert."""
    await db_session.execute(
        text(
            "CREATE TRIGGER refuse_history BEFORE INSERT ON history_entries "
            "BEGIN SELECT RAISE(ABORT, 'history store down'); END"
        )
    )
    await db_session.commit()
    return db_session
