"""
SPAC OS API

FastAPI application for SPAC and private-equity deal teams: SPAC lifecycle,
targets, CRM, SEC filings, tasks, compliance alerts and financial analysis.
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Depends, Query
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import or_
from sqlalchemy.orm import Session
import structlog

from spacos.core.config import get_settings
from spacos.core.logging import configure_structlog, LoggingMiddleware
from spacos.db.base import get_db, init_db
from spacos.models.company import Company
from spacos.models.contact import Contact
from spacos.models.spac import Spac
from spacos.models.target import Target
from spacos.services.edgar_client import get_edgar_client
from spacos.api import (
    organizations, spacs, targets, companies, contacts, interactions, filings,
    tasks, alerts, financial, mandates, ownership, insights, emails, meetings,
    compliance, notes,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Validates configuration on startup (fail-fast) and creates tables.
    """
    settings = get_settings()
    configure_structlog()
    logger.info(
        "app.starting",
        app_name=settings.APP_NAME,
        environment=settings.ENVIRONMENT.value,
        sec_user_agent=settings.sec_user_agent,
    )
    init_db()

    yield

    get_edgar_client().close()
    logger.info("app.shutdown")


settings = get_settings()

app = FastAPI(
    title="SPAC OS API",
    description="API for SPAC lifecycle, deal pipeline, CRM and SEC compliance tracking",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(LoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for module in (
    organizations, spacs, targets, companies, contacts, interactions, filings,
    tasks, alerts, financial, mandates, ownership, insights, emails, meetings,
    compliance, notes,
):
    app.include_router(module.router, prefix="/api")


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "name": "SPAC OS API",
        "version": "1.0.0",
        "docs": "/docs",
    }


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/api/search")
def search(
    q: str = Query(..., min_length=1),
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
):
    """
    Global search across SPACs, targets, contacts and companies.

    Returns combined results from multiple entities.
    """
    term = f"%{q}%"

    spac_results = db.query(Spac).filter(
        Spac.deleted_at.is_(None),
        or_(Spac.name.ilike(term), Spac.ticker.ilike(term)),
    ).limit(limit).all()

    target_results = db.query(Target).filter(
        Target.deleted_at.is_(None),
        or_(Target.name.ilike(term), Target.industry.ilike(term)),
    ).limit(limit).all()

    contact_results = db.query(Contact).filter(
        Contact.deleted_at.is_(None),
        or_(
            Contact.first_name.ilike(term),
            Contact.last_name.ilike(term),
            Contact.email.ilike(term),
        ),
    ).limit(limit).all()

    company_results = db.query(Company).filter(Company.name.ilike(term)).limit(limit).all()

    results = {
        "spacs": [
            {"id": s.id, "type": "spac", "title": s.name, "subtitle": s.ticker}
            for s in spac_results
        ],
        "targets": [
            {"id": t.id, "type": "target", "title": t.name, "subtitle": t.industry}
            for t in target_results
        ],
        "contacts": [
            {"id": c.id, "type": "contact", "title": c.full_name, "subtitle": c.email}
            for c in contact_results
        ],
        "companies": [
            {"id": c.id, "type": "company", "title": c.name, "subtitle": c.industry}
            for c in company_results
        ],
    }
    return {
        "query": q,
        "results": results,
        "total": sum(len(v) for v in results.values()),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
