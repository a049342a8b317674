"""
TaxDesk - Test Configuration

Pytest fixtures and configuration. Every test gets its own in-memory
SQLite database.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import AsyncGenerator, Optional
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

import taxdesk.models  # noqa: F401
from taxdesk.database import Base, get_async_session
from taxdesk.models.client import Client, GSTStatus
from taxdesk.models.gst_return import GSTReturn, ReturnStatus, ReturnType
from taxdesk.models.invoice import Invoice, InvoiceStatus
from taxdesk.models.notice import Notice, NoticeStatus
from taxdesk.models.payment import GSTPayment, PaymentStatus, PaymentType
from taxdesk.models.registration import GSTRegistration, RegistrationStatus
from taxdesk.models.user import User
from main import app


TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture(scope="function")
async def session_factory():
    """Session factory bound to a fresh in-memory database."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database session override."""

    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_async_session] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ===========================================
# DATA FIXTURES
# ===========================================

class Seed:
    """Inserts test rows with sensible defaults."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _save(self, obj):
        self.db.add(obj)
        await self.db.commit()
        await self.db.refresh(obj)
        return obj

    async def user(self, name: str = "Priya Sharma", email: Optional[str] = None) -> User:
        return await self._save(User(
            id=uuid4(),
            name=name,
            email=email or f"{uuid4().hex[:8]}@taxdesk.test",
        ))

    async def client(
        self,
        user: User,
        business_name: str = "Acme Traders",
        gst_status: GSTStatus = GSTStatus.ACTIVE,
        pan: Optional[str] = "AAACA1234A",
        created_at: Optional[datetime] = None,
    ) -> Client:
        client = Client(
            id=uuid4(),
            user_id=user.id,
            business_name=business_name,
            gstin="27AAACA1234A1Z5",
            pan=pan,
            gst_status=gst_status,
        )
        if created_at is not None:
            client.created_at = created_at
        return await self._save(client)

    async def gst_return(
        self,
        client: Client,
        due_date: date,
        status: ReturnStatus = ReturnStatus.DRAFT,
        return_type: ReturnType = ReturnType.GSTR_3B,
        period: str = "Oct 2024",
        filed_at: Optional[datetime] = None,
    ) -> GSTReturn:
        return await self._save(GSTReturn(
            id=uuid4(),
            client_id=client.id,
            return_type=return_type,
            period=period,
            due_date=due_date,
            status=status,
            filed_at=filed_at,
        ))

    async def notice(
        self,
        client: Client,
        due_date: date,
        status: NoticeStatus = NoticeStatus.RECEIVED,
        notice_number: str = "N-001",
        notice_type: str = "ASMT-10",
        received_on: Optional[date] = None,
    ) -> Notice:
        return await self._save(Notice(
            id=uuid4(),
            client_id=client.id,
            notice_number=notice_number,
            notice_type=notice_type,
            subject="Mismatch in ITC claimed",
            received_on=received_on or date(2024, 11, 1),
            due_date=due_date,
            status=status,
        ))

    async def invoice(
        self,
        client: Client,
        due_date: date,
        amount: Decimal = Decimal("1500.00"),
        status: InvoiceStatus = InvoiceStatus.SENT,
        invoice_number: str = "INV-001",
        issue_date: Optional[date] = None,
    ) -> Invoice:
        return await self._save(Invoice(
            id=uuid4(),
            client_id=client.id,
            invoice_number=invoice_number,
            issue_date=issue_date or date(2024, 11, 1),
            due_date=due_date,
            amount=amount,
            status=status,
        ))

    async def payment(
        self,
        client: Client,
        amount: Decimal,
        status: PaymentStatus = PaymentStatus.PAID,
        payment_type: PaymentType = PaymentType.TAX,
        gst_return: Optional[GSTReturn] = None,
        created_at: Optional[datetime] = None,
    ) -> GSTPayment:
        payment = GSTPayment(
            id=uuid4(),
            client_id=client.id,
            return_id=gst_return.id if gst_return else None,
            payment_type=payment_type,
            amount=amount,
            status=status,
        )
        if created_at is not None:
            payment.created_at = created_at
        return await self._save(payment)

    async def registration(
        self,
        client: Client,
        status: RegistrationStatus = RegistrationStatus.SUBMITTED,
    ) -> GSTRegistration:
        return await self._save(GSTRegistration(
            id=uuid4(),
            client_id=client.id,
            status=status,
        ))


@pytest.fixture
def seed(db_session: AsyncSession) -> Seed:
    return Seed(db_session)


@pytest_asyncio.fixture
async def practitioner(seed: Seed) -> User:
    """Create a test practitioner."""
    return await seed.user()


@pytest_asyncio.fixture
async def acme(seed: Seed, practitioner: User) -> Client:
    """Create a test client owned by the practitioner."""
    return await seed.client(practitioner, "Acme Traders")
