"""Pytest configuration and fixtures."""
import os

os.environ["ADMIN_EMAIL"] = "compliance@spacos.test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import spacos.models  # noqa: F401
from spacos.db.base import Base, get_db
from spacos.main import app
from spacos.models.company import Company
from spacos.models.contact import Contact
from spacos.models.filing import Filing, FilingType, FilingStatus
from spacos.models.organization import Organization, OrganizationType
from spacos.models.spac import Spac, SpacStatus
from spacos.models.target import Target
from spacos.services.edgar_client import get_edgar_client

# One in-memory database shared by the test session and every request session
test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


class FakeEdgarClient:
    """Stands in for EdgarClient; returns canned submissions rows."""

    def __init__(self):
        self.filings: list[dict] = []
        self.error: Exception = None
        self.calls: list[dict] = []

    def search_filings(self, cik, form_types=None, start_date=None, end_date=None, limit=None):
        self.calls.append({"cik": cik, "form_types": form_types, "limit": limit})
        if self.error:
            raise self.error
        rows = [f for f in self.filings if not form_types or f["form_type"] in form_types]
        return rows[:limit] if limit else rows

    def get_company_info(self, cik):
        self.calls.append({"cik": cik})
        if self.error:
            raise self.error
        return {"cik": cik, "name": "ALPHA ACQUISITION CORP", "sic": "6770", "tickers": ["ALPA"], "exchanges": ["Nasdaq"]}

    def close(self):
        pass


def edgar_row(accession_number, form_type="8-K", filing_date="2024-03-01", description="Current report"):
    """One row as returned by EdgarClient.search_filings."""
    return {
        "accession_number": accession_number,
        "form_type": form_type,
        "filing_date": filing_date,
        "primary_document": "doc.htm",
        "description": description,
        "cik": "1234567",
        "company_name": "Alpha Acquisition Corp",
        "url": f"https://www.sec.gov/Archives/edgar/data/1234567/{accession_number.replace('-', '')}/doc.htm",
    }


@pytest.fixture
def db():
    """Fresh schema per test on the in-memory test engine."""
    Base.metadata.create_all(bind=test_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def edgar():
    return FakeEdgarClient()


@pytest.fixture
def client(db, edgar):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_edgar_client] = lambda: edgar
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def now():
    return datetime.utcnow()


@pytest.fixture
def make_organization(db):
    def _make(name="Alpha Sponsor LLC", slug=None, type=OrganizationType.SPAC_SPONSOR, **kwargs):
        org = Organization(name=name, slug=slug or name.lower().replace(" ", "-"), type=type, **kwargs)
        db.add(org)
        db.commit()
        db.refresh(org)
        return org
    return _make


@pytest.fixture
def make_spac(db):
    def _make(name="Alpha Acquisition Corp", ticker="ALPA", status=SpacStatus.SEARCHING, **kwargs):
        spac = Spac(name=name, ticker=ticker, status=status, **kwargs)
        db.add(spac)
        db.commit()
        db.refresh(spac)
        return spac
    return _make


@pytest.fixture
def make_target(db):
    def _make(name="Beta Robotics", **kwargs):
        target = Target(name=name, **kwargs)
        db.add(target)
        db.commit()
        db.refresh(target)
        return target
    return _make


@pytest.fixture
def make_contact(db):
    def _make(first_name="Jane", last_name="Doe", email="jane.doe@example.com", **kwargs):
        contact = Contact(first_name=first_name, last_name=last_name, email=email, **kwargs)
        db.add(contact)
        db.commit()
        db.refresh(contact)
        return contact
    return _make


@pytest.fixture
def make_company(db):
    def _make(name="Gamma Capital", **kwargs):
        company = Company(name=name, **kwargs)
        db.add(company)
        db.commit()
        db.refresh(company)
        return company
    return _make


@pytest.fixture
def make_filing(db):
    def _make(spac_id, type=FilingType.S4, status=FilingStatus.DRAFTING, **kwargs):
        filing = Filing(spac_id=spac_id, type=type, status=status, **kwargs)
        db.add(filing)
        db.commit()
        db.refresh(filing)
        return filing
    return _make


@pytest.fixture
def in_days(now):
    """Datetime offset from now by a (possibly fractional) number of days."""
    def _in(days):
        return now + timedelta(days=days)
    return _in
