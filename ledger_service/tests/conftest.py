import pytest
from sqlmodel import Session, SQLModel

from ..core.config import Settings
from ..core.db import create_engine_for_url
from ..models import Role
from ..services import Principal, TransactionEngine
from .helpers import add_principal


@pytest.fixture
def engine(tmp_path):
    test_db = tmp_path / "ledger.db"
    engine = create_engine_for_url(f"sqlite:///{test_db}")
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def settings() -> Settings:
    return Settings(max_commit_attempts=3, retry_backoff_seconds=0)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def ledger(session, settings) -> TransactionEngine:
    return TransactionEngine(session, settings)


@pytest.fixture
def alice(session) -> Principal:
    return add_principal(session, "Alice")


@pytest.fixture
def bob(session) -> Principal:
    return add_principal(session, "Bob")


@pytest.fixture
def system(session) -> Principal:
    return add_principal(session, "System", Role.SYSTEM)
