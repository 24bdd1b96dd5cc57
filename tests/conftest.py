"""
Test configuration and fixtures.
Uses SQLite in-memory for fast tests. ServiceM8 is replaced by FakeProvider.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from portal.database import Base, enable_sqlite_savepoints
from portal.integrations.provider_base import JobProvider
from portal.integrations.servicem8 import ServiceM8Error
from portal.models.customer import Customer
import portal.models  # noqa: F401

FAKE_BASE_URL = "https://api.servicem8.test/api_1.0"


class FakeProvider(JobProvider):
    """
    In-memory ServiceM8 stand-in.

    jobs:        {company_uuid: [job dict, ...]}
    attachments: {job_uuid: [attachment dict, ...]}
    failing_companies / failing_attachment_jobs raise ServiceM8Error.
    """

    def __init__(self, jobs=None, attachments=None, companies=None):
        self.jobs = jobs or {}
        self.attachments = attachments or {}
        self.companies = companies or {}
        self.failing_companies: set[str] = set()
        self.failing_attachment_jobs: set[str] = set()
        self.calls: list[tuple[str, str]] = []

    async def get_jobs_by_company(self, company_uuid: str) -> list[dict]:
        self.calls.append(("get_jobs_by_company", company_uuid))
        if company_uuid in self.failing_companies:
            raise ServiceM8Error("ServiceM8 request timed out: /job.json")
        return list(self.jobs.get(company_uuid, []))

    async def get_job(self, job_uuid: str) -> dict:
        self.calls.append(("get_job", job_uuid))
        for jobs in self.jobs.values():
            for job in jobs:
                if job.get("uuid") == job_uuid:
                    return dict(job)
        raise ServiceM8Error(f"ServiceM8 returned HTTP 404 for /job.json/{job_uuid}", 404)

    async def get_job_attachments(self, job_uuid: str) -> list[dict]:
        self.calls.append(("get_job_attachments", job_uuid))
        if job_uuid in self.failing_attachment_jobs:
            raise ServiceM8Error("ServiceM8 returned HTTP 503 for /attachment.json", 503)
        return list(self.attachments.get(job_uuid, []))

    async def get_company(self, company_uuid: str) -> dict:
        self.calls.append(("get_company", company_uuid))
        if company_uuid in self.failing_companies:
            raise ServiceM8Error("ServiceM8 request timed out: /company.json")
        if company_uuid not in self.companies:
            raise ServiceM8Error(f"ServiceM8 returned HTTP 404 for /company.json/{company_uuid}", 404)
        return self.companies[company_uuid]

    async def get_all_companies(self) -> list[dict]:
        self.calls.append(("get_all_companies", ""))
        return list(self.companies.values())

    def attachment_file_url(self, attachment_uuid: str) -> str:
        return f"{FAKE_BASE_URL}/attachment.json/{attachment_uuid}/file"


@pytest.fixture
async def db():
    """In-memory SQLite database with working SAVEPOINTs."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    enable_sqlite_savepoints(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session
    await engine.dispose()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def make_customer(db):
    """Factory for persisted customers."""
    counter = {"n": 0}

    async def _make(company_uuid=None, **overrides):
        counter["n"] += 1
        customer = Customer(
            name=overrides.pop("name", f"Customer {counter['n']}"),
            email=overrides.pop("email", f"customer{counter['n']}@example.com"),
            phone=overrides.pop("phone", "+61400000000"),
            servicem8_company_uuid=company_uuid,
            **overrides,
        )
        db.add(customer)
        await db.flush()
        return customer

    return _make


@pytest.fixture
def sample_job():
    """The canonical Work Order job from the ServiceM8 job.json payload."""
    return {
        "uuid": "J1",
        "job_address": "123 Main St",
        "status": "Work Order",
        "job_is_quoted": False,
        "total_price": "450.00",
        "job_description": "Replace hot water unit",
        "work_start_date": "2026-03-02 09:00:00",
        "date_created": "2026-02-20 14:12:00",
        "work_end_date": "0000-00-00 00:00:00",
        "billing_address": "PO Box 1",
    }
