"""
Unit tests for edgar_client.py.

Tests cover:
- EDGAR form type mapping
- Filing URLs
- Submissions parsing and filtering
- User-Agent header, caching and 403 handling
- Retries on 429 and timeouts, re-raising the last error
- Rate limiter window, thread safety and response cache expiry
"""
import json
import threading
from datetime import datetime, timedelta

import httpx
import pytest
from tenacity import wait_none
from spacos.models.filing import FilingType
from spacos.services import edgar_client as edgar_client_module
from spacos.services.edgar_client import (
    EdgarClient, RateLimiter, ResponseCache, SECBlockedError, SECRateLimitError, map_form_type,
)

SUBMISSIONS = {
    "name": "ALPHA ACQUISITION CORP",
    "filings": {
        "recent": {
            "accessionNumber": ["0001193125-24-000003", "0001193125-24-000002", "0001193125-24-000001"],
            "form": ["8-K", "S-4/A", "10-Q"],
            "filingDate": ["2024-03-01", "2024-02-15", "2024-01-10"],
            "primaryDocument": ["d8k.htm", "ds4a.htm", "d10q.htm"],
            "primaryDocDescription": ["8-K", "S-4/A", "10-Q"],
        }
    },
}


@pytest.fixture
def requests():
    return []


@pytest.fixture
def edgar_client(requests):
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if "CIK0000000403" in request.url.path:
            return httpx.Response(403)
        return httpx.Response(200, text=json.dumps(SUBMISSIONS))

    client = EdgarClient()
    client._client = httpx.Client(
        transport=httpx.MockTransport(handler),
        headers={"User-Agent": client.user_agent},
    )
    yield client
    client.close()


class TestMapFormType:

    @pytest.mark.parametrize("form,expected", [
        ("8-K", FilingType.FORM_8K),
        ("8-K/A", FilingType.FORM_8K),
        ("S-4", FilingType.S4),
        ("DEF 14A", FilingType.DEF14A),
        (" sc 13d ", FilingType.SC_13D),
        ("425", FilingType.FORM_425),
    ])
    def test_known_forms(self, form, expected):
        assert map_form_type(form) == expected

    def test_unknown_form(self):
        assert map_form_type("CORRESP") == FilingType.OTHER
        assert map_form_type("") == FilingType.OTHER


class TestFilingUrl:

    def test_primary_document(self):
        client = EdgarClient()
        url = client.filing_url("0001234567", "0001193125-24-000001", "d8k.htm")
        assert url == "https://www.sec.gov/Archives/edgar/data/1234567/000119312524000001/d8k.htm"

    def test_index_page(self):
        client = EdgarClient()
        url = client.filing_url("1234567", "0001193125-24-000001")
        assert url.endswith("/000119312524000001/0001193125-24-000001-index.htm")


class TestSearchFilings:

    def test_all_filings(self, edgar_client):
        filings = edgar_client.search_filings("1234567")

        assert [f["form_type"] for f in filings] == ["8-K", "S-4/A", "10-Q"]
        assert filings[0]["company_name"] == "ALPHA ACQUISITION CORP"
        assert filings[0]["url"].endswith("/000119312524000003/d8k.htm")

    def test_form_filter_and_limit(self, edgar_client):
        filings = edgar_client.search_filings("1234567", form_types=["8-K", "10-Q"], limit=1)
        assert [f["accession_number"] for f in filings] == ["0001193125-24-000003"]

    def test_date_range(self, edgar_client):
        filings = edgar_client.search_filings("1234567", start_date="2024-02-01", end_date="2024-02-28")
        assert [f["form_type"] for f in filings] == ["S-4/A"]

    def test_submissions_url_and_user_agent(self, edgar_client, requests):
        edgar_client.search_filings("1234567")

        assert str(requests[0].url) == "https://data.sec.gov/submissions/CIK0001234567.json"
        assert "compliance@spacos.test" in requests[0].headers["User-Agent"]

    def test_responses_are_cached(self, edgar_client, requests):
        edgar_client.search_filings("1234567")
        edgar_client.get_company_info("1234567")
        assert len(requests) == 1

    def test_blocked(self, edgar_client):
        with pytest.raises(SECBlockedError):
            edgar_client.search_filings("403")


class TestRetries:

    @pytest.fixture(autouse=True)
    def no_backoff(self, monkeypatch):
        monkeypatch.setattr(EdgarClient.get_json.retry, "wait", wait_none())

    def make_client(self, handler):
        client = EdgarClient()
        client._client = httpx.Client(transport=httpx.MockTransport(handler))
        return client

    def test_rate_limit_reraised_after_retries(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(429)

        client = self.make_client(handler)
        with pytest.raises(SECRateLimitError):
            client.search_filings("1234567")
        assert len(calls) == 5

    def test_recovers_after_rate_limit(self):
        statuses = [429, 429]

        def handler(request):
            if statuses:
                return httpx.Response(statuses.pop())
            return httpx.Response(200, text=json.dumps(SUBMISSIONS))

        client = self.make_client(handler)
        assert len(client.search_filings("1234567")) == 3

    def test_timeout_reraised_after_retries(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = self.make_client(handler)
        with pytest.raises(httpx.TimeoutException):
            client.search_filings("1234567")


class FakeClock:
    """Replaces the time module inside edgar_client."""

    def __init__(self, now=100.0):
        self.now = now
        self.sleeps = []

    def monotonic(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)


class TestRateLimiter:

    def test_sleeps_when_window_full(self, monkeypatch):
        clock = FakeClock()
        monkeypatch.setattr(edgar_client_module, "time", clock)

        limiter = RateLimiter(max_requests=2, window=1)
        limiter.wait()
        clock.now = 100.25
        limiter.wait()
        limiter.wait()

        assert clock.sleeps == [0.75]

    def test_expired_requests_free_the_window(self, monkeypatch):
        clock = FakeClock()
        monkeypatch.setattr(edgar_client_module, "time", clock)

        limiter = RateLimiter(max_requests=1, window=1)
        limiter.wait()
        clock.now = 101.5
        limiter.wait()

        assert clock.sleeps == []

    def test_concurrent_callers_share_the_window(self):
        limiter = RateLimiter(max_requests=1000, window=60)
        errors = []

        def worker():
            try:
                for _ in range(200):
                    limiter.wait()
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(limiter._sent) == 1000


class TestResponseCache:

    def test_expires(self):
        cache = ResponseCache(ttl=60)
        cache.put("https://data.sec.gov/x", {"name": "X"})
        assert cache.get("https://data.sec.gov/x") == {"name": "X"}

        payload, _ = cache._entries["https://data.sec.gov/x"]
        cache._entries["https://data.sec.gov/x"] = (payload, datetime.utcnow() - timedelta(seconds=61))
        assert cache.get("https://data.sec.gov/x") is None
        assert cache.get("https://data.sec.gov/missing") is None
