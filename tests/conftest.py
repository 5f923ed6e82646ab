"""Test configuration."""
import os
from collections.abc import AsyncIterator, Callable, Iterator
from pathlib import Path
from uuid import uuid4

from alembic import command
from alembic.config import Config
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

# --- Default environment
os.environ.setdefault("DATABASE_URL", "sqlite:///./backoffice_test.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("BACKOFFICE_ENV", "test")

from backoffice.main import app  # noqa: E402
from backoffice.core import transaction  # noqa: E402
from backoffice.db import get_db  # noqa: E402
from backoffice.models import (  # noqa: E402
    ApiKey,
    Base,
    ChartOfAccount,
    ChartOfAccountType,
    User,
)
from backoffice.utils.apikey import hash_key  # noqa: E402

DB_PATH = Path("./backoffice_test.db")


def _run_migrations() -> None:
    cfg = Config(str(Path(__file__).resolve().parents[1] / "alembic.ini"))
    cfg.set_main_option("sqlalchemy.url", os.environ["DATABASE_URL"])
    command.upgrade(cfg, "head")


# --- (1) Reset the file DB at session start
if DB_PATH.exists():
    DB_PATH.unlink()

engine = create_engine(
    os.environ["DATABASE_URL"],
    connect_args={"check_same_thread": False},
    future=True,
)
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False,
                                   future=True, expire_on_commit=False)

# --- (2) Build the schema through Alembic only
_run_migrations()

# Audited actions open their own unit of work; point it at the test database.
transaction.set_session_factory(TestingSessionLocal)


@pytest.fixture(autouse=True)
def clean_tables() -> Iterator[None]:
    yield
    # Core deletes bypass the ORM append-only guards.
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def db_session() -> Iterator[Session]:
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def override_db_dependency() -> Iterator[None]:
    def _get_db() -> Iterator[Session]:
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    yield
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
async def client() -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as async_client:
        yield async_client


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def make_user(db_session: Session) -> Callable[..., User]:
    def _factory(name: str = "Operator", *, is_active: bool = True) -> User:
        user = User(name=name, email=f"{uuid4().hex[:8]}@example.com", is_active=is_active)
        db_session.add(user)
        db_session.commit()
        return user

    return _factory


@pytest.fixture
def operator(make_user: Callable[..., User]) -> User:
    return make_user("Ada Operator")


@pytest.fixture
def make_api_key(db_session: Session) -> Callable[..., ApiKey]:
    def _factory(user: User, key: str, *, is_active: bool = True) -> ApiKey:
        api_key = ApiKey(
            name=f"key-{uuid4().hex[:8]}",
            prefix="test",
            key_hash=hash_key(key),
            user_id=user.id,
            is_active=is_active,
        )
        db_session.add(api_key)
        db_session.commit()
        return api_key

    return _factory


@pytest.fixture
def auth_headers(operator: User, make_api_key: Callable[..., ApiKey]) -> dict[str, str]:
    token = f"operator-{uuid4().hex}"
    make_api_key(operator, token)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_account(db_session: Session) -> Callable[..., ChartOfAccount]:
    def _factory(
        name: str | None = None,
        account_type: ChartOfAccountType = ChartOfAccountType.ASSET,
        *,
        is_default: bool = False,
    ) -> ChartOfAccount:
        account_name = name or f"Account {uuid4().hex[:6]}"
        account = ChartOfAccount(
            account_name=account_name,
            account_type=account_type,
            path=account_name,
            depth=0,
            is_default=is_default,
        )
        db_session.add(account)
        db_session.commit()
        return account

    return _factory


@pytest.fixture
def ledger_accounts(make_account: Callable[..., ChartOfAccount]) -> dict[str, ChartOfAccount]:
    """Cash, bank, an expense account and the default equity account."""

    return {
        "cash": make_account("Cash", ChartOfAccountType.ASSET),
        "bank": make_account("Bank", ChartOfAccountType.ASSET),
        "expense": make_account("Operating Expenses", ChartOfAccountType.EXPENSE),
        "equity": make_account("Owner's Equity", ChartOfAccountType.EQUITY, is_default=True),
    }
