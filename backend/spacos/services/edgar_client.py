"""
SEC EDGAR client used to sync SPAC filings.

EDGAR asks automated clients to identify themselves with a User-Agent
carrying a contact e-mail and to stay under 10 requests per second.
429 responses and timeouts are retried with exponential backoff.
"""
import threading
import time
from collections import deque
from datetime import datetime, timedelta
from typing import Optional

import httpx
import structlog
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from spacos.core.config import get_settings
from spacos.models.filing import FilingType

logger = structlog.get_logger(__name__)

# EDGAR form type -> FilingType
EDGAR_FORM_TYPES = {
    "S-1": FilingType.S1,
    "S-1/A": FilingType.S1,
    "S-4": FilingType.S4,
    "S-4/A": FilingType.S4,
    "DEF 14A": FilingType.DEF14A,
    "PREM14A": FilingType.PREM14A,
    "DEFA14A": FilingType.DEFA14A,
    "8-K": FilingType.FORM_8K,
    "8-K/A": FilingType.FORM_8K,
    "10-K": FilingType.FORM_10K,
    "10-K/A": FilingType.FORM_10K,
    "10-Q": FilingType.FORM_10Q,
    "10-Q/A": FilingType.FORM_10Q,
    "425": FilingType.FORM_425,
    "SC 13D": FilingType.SC_13D,
    "SC 13D/A": FilingType.SC_13D,
    "SC 13G": FilingType.SC_13G,
    "SC 13G/A": FilingType.SC_13G,
    "3": FilingType.FORM_3,
    "4": FilingType.FORM_4,
    "5": FilingType.FORM_5,
}


class SECRateLimitError(Exception):
    """EDGAR answered 429."""
    pass


class SECBlockedError(Exception):
    """EDGAR answered 403, usually a non-compliant User-Agent."""
    pass


def map_form_type(form: str) -> FilingType:
    """Map an EDGAR form string to a FilingType, OTHER when unknown."""
    return EDGAR_FORM_TYPES.get((form or "").strip().upper(), FilingType.OTHER)


class RateLimiter:
    """Sliding-window limiter: at most max_requests per window seconds."""

    def __init__(self, max_requests: int, window: float):
        self.max_requests = max_requests
        self.window = window
        self._sent: deque[float] = deque()
        self._lock = threading.Lock()

    def wait(self):
        # Held across the sleep
        with self._lock:
            now = time.monotonic()
            while self._sent and now - self._sent[0] >= self.window:
                self._sent.popleft()

            if len(self._sent) >= self.max_requests:
                delay = self.window - (now - self._sent[0])
                if delay > 0:
                    logger.debug("edgar.throttled", delay=round(delay, 3))
                    time.sleep(delay)
                self._sent.popleft()

            self._sent.append(time.monotonic())


class ResponseCache:
    """Parsed JSON responses keyed by URL, expiring after ttl seconds."""

    def __init__(self, ttl: int):
        self.ttl = timedelta(seconds=ttl)
        self._entries: dict[str, tuple[dict, datetime]] = {}

    def get(self, url: str) -> Optional[dict]:
        entry = self._entries.get(url)
        if entry is None:
            return None
        payload, stored_at = entry
        if datetime.utcnow() - stored_at >= self.ttl:
            del self._entries[url]
            return None
        return payload

    def put(self, url: str, payload: dict):
        self._entries[url] = (payload, datetime.utcnow())

    def clear(self):
        self._entries.clear()


class EdgarClient:
    """
    Read-only access to the EDGAR submissions API.

    One lazily created httpx.Client is shared by all calls; close() releases
    it and is called on application shutdown.
    """

    def __init__(self):
        settings = get_settings()
        self.base_url = settings.SEC_BASE_URL.rstrip("/")
        self.data_url = settings.SEC_DATA_URL.rstrip("/")
        self.user_agent = settings.sec_user_agent
        self.limiter = RateLimiter(settings.SEC_RATE_LIMIT_REQUESTS, settings.SEC_RATE_LIMIT_WINDOW)
        self.cache = ResponseCache(settings.SEC_CACHE_TTL)
        self._client: Optional[httpx.Client] = None

    @property
    def http(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                headers={"User-Agent": self.user_agent, "Accept-Encoding": "gzip, deflate"},
                follow_redirects=True,
                timeout=30.0,
            )
        return self._client

    @retry(
        stop=stop_after_attempt(5),
        wait=wait_exponential(multiplier=1, min=2, max=60),
        retry=retry_if_exception_type((SECRateLimitError, httpx.TimeoutException)),
        reraise=True,
    )
    def get_json(self, url: str) -> dict:
        """
        GET a JSON document, served from cache when fresh.

        Raises:
            SECRateLimitError: On 429, after retries are exhausted
            httpx.TimeoutException: On timeout, after retries are exhausted
            SECBlockedError: On 403
            httpx.HTTPError: On any other failed request
        """
        cached = self.cache.get(url)
        if cached is not None:
            return cached

        self.limiter.wait()
        response = self.http.get(url)

        if response.status_code == 429:
            logger.warning("edgar.rate_limited", url=url)
            raise SECRateLimitError(f"EDGAR rate limit hit for {url}")
        if response.status_code == 403:
            logger.error("edgar.blocked", url=url, user_agent=self.user_agent)
            raise SECBlockedError(f"EDGAR refused the request; check the User-Agent '{self.user_agent}'")
        response.raise_for_status()

        payload = response.json()
        self.cache.put(url, payload)
        return payload

    def filing_url(self, cik: str, accession_number: str, primary_document: Optional[str] = None) -> str:
        """Public URL of a filing's primary document, or of its index page."""
        folder = accession_number.replace("-", "")
        cik_path = str(int(cik)) if cik.isdigit() else cik
        base = f"{self.base_url}/Archives/edgar/data/{cik_path}/{folder}"
        if primary_document:
            return f"{base}/{primary_document}"
        return f"{base}/{accession_number}-index.htm"

    def submissions(self, cik: str) -> dict:
        return self.get_json(f"{self.data_url}/submissions/CIK{cik.zfill(10)}.json")

    def search_filings(
        self,
        cik: str,
        form_types: Optional[list[str]] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[dict]:
        """
        Recent filings of a company, newest first.

        Args:
            cik: Company CIK, with or without leading zeros
            form_types: EDGAR form strings to keep, e.g. ["8-K", "S-4"]
            start_date: Earliest filing date, YYYY-MM-DD
            end_date: Latest filing date, YYYY-MM-DD
            limit: Maximum number of rows
        """
        data = self.submissions(cik)
        recent = data.get("filings", {}).get("recent") or {}

        columns = (
            recent.get("accessionNumber", []),
            recent.get("form", []),
            recent.get("filingDate", []),
            recent.get("primaryDocument", []),
            recent.get("primaryDocDescription", []),
        )
        results = []
        for accession, form, filed_on, document, description in zip(*columns):
            if form_types and form not in form_types:
                continue
            if (start_date and filed_on < start_date) or (end_date and filed_on > end_date):
                continue

            results.append({
                "accession_number": accession,
                "form_type": form,
                "filing_date": filed_on,
                "primary_document": document,
                "description": description,
                "cik": cik,
                "company_name": data.get("name"),
                "url": self.filing_url(cik, accession, document),
            })
            if limit and len(results) >= limit:
                break

        logger.debug("edgar.filings_listed", cik=cik, count=len(results))
        return results

    def get_company_info(self, cik: str) -> dict:
        """Registrant name, SIC code and listings for a CIK."""
        data = self.submissions(cik)
        return {
            "cik": cik,
            "name": data.get("name"),
            "sic": data.get("sic"),
            "sic_description": data.get("sicDescription"),
            "tickers": data.get("tickers", []),
            "exchanges": data.get("exchanges", []),
        }

    def close(self):
        if self._client is not None:
            self._client.close()
            self._client = None


_client: Optional[EdgarClient] = None


def get_edgar_client() -> EdgarClient:
    """Process-wide EdgarClient, also used as a FastAPI dependency."""
    global _client
    if _client is None:
        _client = EdgarClient()
    return _client
