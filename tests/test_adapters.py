"""
Tests for source adapters.

Adapters are tested by mocking ``_make_request`` with canned upstream
payloads; the HTTP layer itself is covered through httpx.MockTransport.
"""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from federated_search.domain.entities import CategoryType, SourceConfig, SourceType
from federated_search.infrastructure.sources import (
    ArchiveAdapter,
    ArxivAdapter,
    BaseAPIClient,
    CensusAdapter,
    CompanyAdapter,
    CrossRefAdapter,
    CveAdapter,
    DevToAdapter,
    DnsAdapter,
    DuckDuckGoAdapter,
    GitHubAdapter,
    HackerNewsAdapter,
    IpLookupAdapter,
    LobstersAdapter,
    PubMedAdapter,
    PyPIAdapter,
    RedditAdapter,
    StackOverflowAdapter,
    UsernameAdapter,
    WebSearchAdapter,
    WhoAdapter,
    WhoisAdapter,
    WikipediaAdapter,
    WorldBankAdapter,
)
from federated_search.infrastructure.sources.osint import (
    abuse_risk_level,
    normalize_username,
    severity_from_score,
)
from federated_search.infrastructure.sources.research import _is_retryable_eutils
from federated_search.shared.async_utils import CircuitBreaker
from federated_search.shared.exceptions import (
    NetworkError,
    ParseError,
    RateLimitError,
    ServiceUnavailableError,
)


def _config(source: SourceType, category: CategoryType = CategoryType.WEB) -> SourceConfig:
    return SourceConfig(name=source.value, source=source, category=category)


def _by_url(mapping):
    """side_effect routing _make_request calls by URL."""

    def route(url, **kwargs):
        return mapping.get(url)

    return route


# ============================================================
# SourceAdapter.make_result
# ============================================================


class TestMakeResult:
    def setup_method(self):
        self.adapter = GitHubAdapter(_config(SourceType.GITHUB, CategoryType.CODE))

    def test_stamps_source_and_category(self):
        result = self.adapter.make_result(title="t", url="https://x")
        assert result.source is SourceType.GITHUB
        assert result.category is CategoryType.CODE

    def test_truncates_description(self):
        result = self.adapter.make_result(title="t", url="https://x", description="x" * 400)
        assert len(result.description) == 300
        assert result.description.endswith("...")

    def test_clamps_score(self):
        assert self.adapter.make_result(title="t", url="u", score=3.0).score == 1.0
        assert self.adapter.make_result(title="t", url="u", score=-1.0).score == 0.0
        assert self.adapter.make_result(title="t", url="u").score is None

    def test_drops_none_metadata(self):
        result = self.adapter.make_result(title="t", url="u", metadata={"a": 1, "b": None})
        assert result.metadata == {"a": 1}


# ============================================================
# BaseAPIClient (HTTP layer)
# ============================================================


class TestBaseAPIClient:
    def _client(self, handler, **kwargs):
        return BaseAPIClient(
            base_url="https://api.test/",
            transport=httpx.MockTransport(handler),
            **kwargs,
        )

    @pytest.mark.asyncio
    async def test_json(self):
        client = self._client(lambda request: httpx.Response(200, json={"ok": True}))
        assert await client._make_request("/items") == {"ok": True}
        await client.close()

    @pytest.mark.asyncio
    async def test_builds_url_from_base(self):
        seen = []

        def handler(request):
            seen.append(str(request.url))
            return httpx.Response(200, json={})

        client = self._client(handler)
        await client._make_request("/items", params={"q": "x"})
        await client._make_request("https://other.test/abs")
        assert seen == ["https://api.test/items?q=x", "https://other.test/abs"]
        await client.close()

    @pytest.mark.asyncio
    async def test_text_mode(self):
        client = self._client(lambda request: httpx.Response(200, text="<feed/>"))
        assert await client._make_request("/feed", expect_json=False) == "<feed/>"
        await client.close()

    @pytest.mark.asyncio
    async def test_404_is_none(self):
        client = self._client(lambda request: httpx.Response(404))
        assert await client._make_request("/missing") is None
        await client.close()

    @pytest.mark.asyncio
    async def test_server_error_is_none(self):
        client = self._client(lambda request: httpx.Response(500))
        assert await client._make_request("/broken") is None
        await client.close()

    @pytest.mark.asyncio
    async def test_unparseable_json_is_none(self):
        client = self._client(lambda request: httpx.Response(200, text="not json"))
        assert await client._make_request("/bad") is None
        await client.close()

    @pytest.mark.asyncio
    async def test_429_retried_with_retry_after(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(429, headers={"Retry-After": "0"})
            return httpx.Response(200, json={"page": 1})

        client = self._client(handler)
        assert await client._make_request("/limited") == {"page": 1}
        assert len(calls) == 2
        await client.close()

    @pytest.mark.asyncio
    async def test_429_gives_up_after_retry(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(429, headers={"Retry-After": "0"})

        client = self._client(handler)
        assert await client._make_request("/limited") is None
        assert len(calls) == 2
        await client.close()

    @pytest.mark.asyncio
    async def test_connection_error_retried_then_none(self):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        client = self._client(handler)
        assert await client._make_request("/down") is None
        assert len(calls) == 2
        await client.close()

    @pytest.mark.asyncio
    async def test_open_circuit_skips_request(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500)

        client = self._client(handler, circuit_breaker=CircuitBreaker(failure_threshold=1, recovery_timeout=60))
        assert await client._make_request("/broken") is None
        assert await client._make_request("/broken") is None
        assert len(calls) == 1
        await client.close()


class TestBaseAPIClientErrors:
    """``_request_with_retry`` raises typed errors that ``_make_request`` absorbs."""

    _KWARGS = {"method": "GET", "params": None, "data": None, "headers": None, "expect_json": True}

    def _client(self, handler, **kwargs):
        return BaseAPIClient(
            base_url="https://api.test/",
            transport=httpx.MockTransport(handler),
            **kwargs,
        )

    @pytest.mark.asyncio
    async def test_persistent_429_raises_rate_limit(self):
        client = self._client(lambda request: httpx.Response(429, headers={"Retry-After": "0"}))
        try:
            with pytest.raises(RateLimitError, match="rate limit exceeded"):
                await client._request_with_retry("https://api.test/limited", **self._KWARGS)
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_rate_limit_does_not_trip_breaker(self):
        breaker = CircuitBreaker(failure_threshold=1, recovery_timeout=60)
        client = self._client(
            lambda request: httpx.Response(429, headers={"Retry-After": "0"}),
            circuit_breaker=breaker,
        )
        try:
            assert await client._make_request("/limited") is None
            assert breaker.state == "closed"
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_transport_failure_raises_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = self._client(handler)
        try:
            with pytest.raises(NetworkError, match="connection refused") as exc_info:
                await client._request_with_retry("https://api.test/down", **self._KWARGS)
            assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_bad_json_raises_parse_error(self):
        client = self._client(lambda request: httpx.Response(200, text="not json"))
        try:
            with pytest.raises(ParseError, match=r"Parse error \(API\)"):
                await client._request_with_retry("https://api.test/bad", **self._KWARGS)
        finally:
            await client.close()

    def test_adapter_breaker_named_after_source(self):
        adapter = GitHubAdapter(_config(SourceType.GITHUB, CategoryType.CODE))
        assert adapter._circuit_breaker.name == "github"

    @pytest.mark.asyncio
    async def test_open_breaker_raises_service_unavailable(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500)

        breaker = CircuitBreaker(failure_threshold=1, recovery_timeout=60, name="flaky")
        client = self._client(handler, circuit_breaker=breaker)
        try:
            assert await client._request_with_retry("https://api.test/broken", **self._KWARGS) is None
            with pytest.raises(ServiceUnavailableError, match="flaky: Circuit breaker is open"):
                await client._request_with_retry("https://api.test/broken", **self._KWARGS)
            assert len(calls) == 1
        finally:
            await client.close()


# ============================================================
# Code sources
# ============================================================


class TestGitHubAdapter:
    @pytest.mark.asyncio
    async def test_search(self):
        adapter = GitHubAdapter(_config(SourceType.GITHUB, CategoryType.CODE))
        payload = {
            "items": [
                {
                    "full_name": "tokio-rs/tokio",
                    "description": "A runtime for async Rust",
                    "html_url": "https://github.com/tokio-rs/tokio",
                    "stargazers_count": 25000,
                    "language": "Rust",
                    "updated_at": "2024-05-01T00:00:00Z",
                    "topics": [],
                }
            ]
        }
        with patch.object(adapter, "_make_request", new=AsyncMock(return_value=payload)) as mock:
            results = await adapter.search("tokio", 5)

        assert mock.await_args.kwargs["params"]["per_page"] == 5
        assert len(results) == 1
        result = results[0]
        assert result.title == "tokio-rs/tokio"
        assert result.description == "A runtime for async Rust | Language: Rust | Stars: 25,000"
        assert result.score == pytest.approx(0.75)
        assert result.metadata == {"stars": 25000, "language": "Rust"}

    @pytest.mark.asyncio
    async def test_star_score_clamped(self):
        adapter = GitHubAdapter(_config(SourceType.GITHUB, CategoryType.CODE))
        payload = {"items": [{"full_name": "a/b", "html_url": "https://github.com/a/b", "stargazers_count": 300000}]}
        with patch.object(adapter, "_make_request", new=AsyncMock(return_value=payload)):
            results = await adapter.search("b")
        assert results[0].score == 1.0
        assert results[0].description.startswith("No description")

    @pytest.mark.asyncio
    async def test_failure_is_empty(self):
        adapter = GitHubAdapter(_config(SourceType.GITHUB, CategoryType.CODE))
        with patch.object(adapter, "_make_request", new=AsyncMock(return_value=None)):
            assert await adapter.search("tokio") == []

    def test_token_header(self):
        adapter = GitHubAdapter(_config(SourceType.GITHUB, CategoryType.CODE), token="secret")
        assert adapter._client.headers["Authorization"] == "Bearer secret"


class TestStackOverflowAdapter:
    @pytest.mark.asyncio
    async def test_search(self):
        adapter = StackOverflowAdapter(_config(SourceType.STACKOVERFLOW, CategoryType.CODE))
        payload = {
            "items": [
                {
                    "title": "Tokio &amp; async-std",
                    "link": "https://stackoverflow.com/q/1",
                    "score": 10,
                    "answer_count": 2,
                    "is_answered": True,
                    "tags": ["rust", "async", "tokio", "extra"],
                    "creation_date": 0,
                    "body": "<p>Which runtime?</p>",
                }
            ]
        }
        with patch.object(adapter, "_make_request", new=AsyncMock(return_value=payload)):
            results = await adapter.search("tokio")

        result = results[0]
        assert result.title == "Tokio & async-std"
        assert result.description == "Which runtime? | 10 votes | 2 answers | Answered | rust, async, tokio"
        assert result.score == pytest.approx(0.8)
        assert result.timestamp == "1970-01-01T00:00:00+00:00"


class TestDevToAdapter:
    @pytest.mark.asyncio
    async def test_falls_back_to_top_articles(self):
        adapter = DevToAdapter(_config(SourceType.DEVTO, CategoryType.CODE))
        article = {
            "title": "Async Rust",
            "url": "https://dev.to/a/async-rust",
            "description": "Intro",
            "reading_time_minutes": 4,
            "positive_reactions_count": 100,
            "user": {"name": "Ana", "username": "ana"},
            "tag_list": "rust, async",
        }
        mock = AsyncMock(side_effect=[[], [article]])
        with patch.object(adapter, "_make_request", new=mock):
            results = await adapter.search("Rust Async", 5)

        first_params = mock.await_args_list[0].kwargs["params"]
        second_params = mock.await_args_list[1].kwargs["params"]
        assert first_params["tag"] == "rustasync"
        assert second_params["top"] == 7
        assert results[0].description == "Intro | 4 min read | 100 reactions | by Ana | rust, async"
        assert results[0].metadata["tags"] == ["rust", "async"]
        assert results[0].score == pytest.approx(0.7)


class TestLobstersAdapter:
    @pytest.mark.asyncio
    async def test_filters_by_terms(self):
        adapter = LobstersAdapter(_config(SourceType.LOBSTERS, CategoryType.CODE))
        stories = [
            {"title": "Rust 2024 edition", "url": "https://blog.rust-lang.org", "score": 40, "tags": ["rust"]},
            {"title": "Zig tips", "url": "https://zig.news", "score": 10, "tags": ["zig"]},
            {"title": "Compilers", "comments_url": "https://lobste.rs/s/abc", "score": 5, "tags": ["rust", "plt"]},
        ]
        with patch.object(adapter, "_make_request", new=AsyncMock(return_value=stories)):
            results = await adapter.search("rust")

        assert [r.title for r in results] == ["Rust 2024 edition", "Compilers"]
        assert results[1].url == "https://lobste.rs/s/abc"
        assert results[0].score == pytest.approx(0.9)


class TestPyPIAdapter:
    @pytest.mark.asyncio
    async def test_exact_package(self):
        adapter = PyPIAdapter(_config(SourceType.PYPI, CategoryType.CODE))
        payload = {
            "info": {"name": "httpx", "version": "0.27.0", "summary": "The next generation HTTP client.", "author": ""},
            "releases": {
                "0.26.0": [{"upload_time": "2023-12-20T10:00:00"}],
                "0.27.0": [{"upload_time": "2024-02-21T10:00:00"}],
                "0.0.1": [],
            },
        }
        with patch.object(adapter, "_make_request", new=AsyncMock(return_value=payload)) as mock:
            results = await adapter.search("httpx")

        assert mock.await_args.args[0] == "https://pypi.org/pypi/httpx/json"
        assert len(results) == 1
        assert results[0].title == "httpx==0.27.0"
        assert results[0].timestamp == "2024-02-21T10:00:00"
        assert "author" not in results[0].metadata

    @pytest.mark.asyncio
    async def test_unknown_package(self):
        adapter = PyPIAdapter(_config(SourceType.PYPI, CategoryType.CODE))
        with patch.object(adapter, "_make_request", new=AsyncMock(return_value=None)):
            assert await adapter.search("no-such-package") == []


# ============================================================
# News & social
# ============================================================


class TestHackerNewsAdapter:
    @pytest.mark.asyncio
    async def test_search(self):
        adapter = HackerNewsAdapter(_config(SourceType.HACKERNEWS, CategoryType.NEWS))
        payload = {
            "hits": [
                {"title": "Show HN: a thing", "objectID": "42", "points": 250, "num_comments": 10, "author": "pg"},
                {"title": None, "objectID": "43"},
            ]
        }
        with patch.object(adapter, "_make_request", new=AsyncMock(return_value=payload)) as mock:
            results = await adapter.search("thing")

        assert mock.await_args.args[0] == HackerNewsAdapter.SEARCH_URL
        assert len(results) == 1
        assert results[0].url == "https://news.ycombinator.com/item?id=42"
        assert results[0].score == pytest.approx(1.0)
        assert results[0].description == "250 points | 10 comments | by pg"

    @pytest.mark.asyncio
    async def test_news_mode_sorts_by_date(self):
        adapter = HackerNewsAdapter(_config(SourceType.NEWS, CategoryType.NEWS), by_date=True)
        with patch.object(adapter, "_make_request", new=AsyncMock(return_value={"hits": []})) as mock:
            await adapter.search("thing")
        assert mock.await_args.args[0] == HackerNewsAdapter.SEARCH_BY_DATE_URL


class TestRedditAdapter:
    @pytest.mark.asyncio
    async def test_search(self):
        adapter = RedditAdapter(_config(SourceType.REDDIT, CategoryType.NEWS), user_agent="test-agent")
        payload = {
            "data": {
                "children": [
                    {"data": {"title": "Self post", "permalink": "/r/rust/comments/1/", "is_self": True,
                              "url": "https://ignored", "score": 1000, "subreddit": "rust", "num_comments": 3}},
                    {"data": {"title": "Link post", "permalink": "/r/rust/comments/2/", "is_self": False,
                              "url": "https://blog.example.com", "score": 0, "subreddit": "rust"}},
                ]
            }
        }
        with patch.object(adapter, "_make_request", new=AsyncMock(return_value=payload)):
            results = await adapter.search("rust")

        assert adapter._client.headers["User-Agent"] == "test-agent"
        assert results[0].url == "https://reddit.com/r/rust/comments/1/"
        assert results[0].score == pytest.approx(0.5)
        assert results[1].url == "https://blog.example.com"
        assert results[1].description == "r/rust | 0 upvotes | 0 comments"


# ============================================================
# OSINT sources
# ============================================================


class TestWhoisAdapter:
    RDAP = {
        "events": [
            {"eventAction": "registration", "eventDate": "1995-08-14T04:00:00Z"},
            {"eventAction": "expiration", "eventDate": "2025-08-13T04:00:00Z"},
            {"eventAction": "last changed", "eventDate": "2024-08-14T07:01:34Z"},
        ],
        "entities": [
            {"roles": ["registrar"], "vcardArray": ["vcard", [["version", {}, "text", "4.0"],
                                                             ["fn", {}, "text", "Example Registrar"]]]},
        ],
        "nameservers": [{"ldhName": "A.IANA-SERVERS.NET"}, {"ldhName": "B.IANA-SERVERS.NET"}],
        "status": ["client delete prohibited"],
    }

    def test_rdap_url(self):
        assert WhoisAdapter.rdap_url("example.com") == "https://rdap.verisign.com/com/v1/domain/example.com"
        assert WhoisAdapter.rdap_url("example.xyz") == "https://rdap.org/domain/example.xyz"

    @pytest.mark.asyncio
    async def test_search(self):
        adapter = WhoisAdapter(_config(SourceType.WHOIS, CategoryType.OSINT))
        with patch.object(adapter, "_make_request", new=AsyncMock(return_value=self.RDAP)):
            results = await adapter.search("Example.com")

        result = results[0]
        assert result.title == "WHOIS: example.com"
        assert result.description == (
            "Registrar: Example Registrar | Created: 1995-08-14 | Expires: 2025-08-13 | "
            "NS: a.iana-servers.net, b.iana-servers.net"
        )
        assert result.timestamp == "2024-08-14T07:01:34Z"
        assert result.score == 0.85

    @pytest.mark.asyncio
    async def test_non_domain_makes_no_request(self):
        adapter = WhoisAdapter(_config(SourceType.WHOIS, CategoryType.OSINT))
        with patch.object(adapter, "_make_request", new=AsyncMock()) as mock:
            assert await adapter.search("rust async") == []
        mock.assert_not_awaited()


class TestDnsAdapter:
    @pytest.mark.asyncio
    async def test_one_result_per_record_type(self):
        adapter = DnsAdapter(_config(SourceType.DNS, CategoryType.OSINT))
        answers = {
            "A": {"Answer": [{"data": "93.184.216.34"}]},
            "TXT": {"Answer": [{"data": '"v=spf1 -all"'}]},
            "MX": {"Answer": []},
        }

        def resolve(url, params=None, **kwargs):
            return answers.get(params["type"])

        with patch.object(adapter, "_make_request", new=AsyncMock(side_effect=resolve)):
            results = await adapter.search("example.com")

        assert [r.metadata["recordType"] for r in results] == ["A", "TXT"]
        assert results[1].description == "v=spf1 -all"
        assert results[0].url == "https://dnschecker.org/#A/example.com"
        assert all(r.score == 0.7 for r in results)


class TestCveAdapter:
    NVD = {
        "vulnerabilities": [
            {"cve": {
                "id": "CVE-2024-3094",
                "published": "2024-03-29T17:15:21.150",
                "descriptions": [{"lang": "es", "value": "x"}, {"lang": "en", "value": "Malicious code in xz"}],
                "metrics": {"cvssMetricV31": [{"cvssData": {"baseScore": 10.0, "baseSeverity": "CRITICAL"}}]},
            }},
            {"cve": {
                "id": "CVE-2010-0001",
                "descriptions": [],
                "metrics": {"cvssMetricV2": [{"cvssData": {"baseScore": 7.5}}]},
            }},
            {"cve": {}},
        ]
    }

    @pytest.mark.asyncio
    async def test_nvd(self):
        adapter = CveAdapter(_config(SourceType.CVE, CategoryType.OSINT))
        with patch.object(adapter, "_make_request", new=AsyncMock(return_value=self.NVD)):
            results = await adapter.search("xz")

        assert [r.title for r in results] == ["CVE-2024-3094", "CVE-2010-0001"]
        assert results[0].description == "Malicious code in xz | Severity: CRITICAL (10.0)"
        assert results[0].score == pytest.approx(0.95)
        assert results[0].url == "https://nvd.nist.gov/vuln/detail/CVE-2024-3094"
        assert results[1].metadata["severity"] == "HIGH"

    @pytest.mark.asyncio
    async def test_circl_fallback(self):
        adapter = CveAdapter(_config(SourceType.CVE, CategoryType.OSINT))
        circl = [{"id": "CVE-2021-44228", "summary": "Log4Shell", "cvss": 10.0, "Published": "2021-12-10"}]
        mock = AsyncMock(side_effect=[None, circl])
        with patch.object(adapter, "_make_request", new=mock):
            results = await adapter.search("log4j")

        assert mock.await_args_list[1].args[0] == "https://cve.circl.lu/api/search/log4j"
        assert results[0].title == "CVE-2021-44228"
        assert results[0].metadata["provider"] == "circl"
        assert results[0].score == pytest.approx(0.95)

    @pytest.mark.parametrize(
        ("score", "severity"),
        [(9.8, "CRITICAL"), (7.0, "HIGH"), (5.0, "MEDIUM"), (1.0, "LOW")],
    )
    def test_severity_from_score(self, score, severity):
        assert severity_from_score(score) == severity


class TestCompanyAdapter:
    TICKERS = {
        "0": {"cik_str": 320193, "ticker": "AAPL", "title": "Apple Inc."},
        "1": {"cik_str": 1418121, "ticker": "APLE", "title": "Apple Hospitality REIT, Inc."},
        "2": {"cik_str": 789019, "ticker": "MSFT", "title": "Microsoft Corp"},
    }
    OPENCORPORATES = {
        "results": {"companies": [{"company": {
            "name": "APPLE INC.",
            "jurisdiction_code": "us_ca",
            "current_status": "Active",
            "company_number": "C0806592",
            "incorporation_date": "1977-01-03",
            "opencorporates_url": "https://opencorporates.com/companies/us_ca/C0806592",
        }}]}
    }

    @pytest.mark.asyncio
    async def test_sec_only(self):
        adapter = CompanyAdapter(_config(SourceType.SEC, CategoryType.OSINT), sec_only=True)
        with patch.object(adapter, "_make_request", new=AsyncMock(return_value=self.TICKERS)):
            results = await adapter.search("apple")

        assert [r.title for r in results] == ["Apple Inc. (AAPL)", "Apple Hospitality REIT, Inc. (APLE)"]
        assert results[0].url.endswith("CIK=0000320193")
        assert results[0].score == 0.8

    @pytest.mark.asyncio
    async def test_ticker_match(self):
        adapter = CompanyAdapter(_config(SourceType.SEC, CategoryType.OSINT), sec_only=True)
        with patch.object(adapter, "_make_request", new=AsyncMock(return_value=self.TICKERS)):
            results = await adapter.search("msft")
        assert [r.metadata["ticker"] for r in results] == ["MSFT"]

    @pytest.mark.asyncio
    async def test_registry_and_sec_split(self):
        adapter = CompanyAdapter(_config(SourceType.COMPANY, CategoryType.OSINT))
        routes = _by_url({
            CompanyAdapter.OPENCORPORATES_URL: self.OPENCORPORATES,
            CompanyAdapter.SEC_TICKERS_URL: self.TICKERS,
        })
        with patch.object(adapter, "_make_request", new=AsyncMock(side_effect=routes)):
            results = await adapter.search("apple", 4)

        assert [r.metadata["registry"] for r in results] == ["opencorporates", "sec", "sec"]
        assert results[0].metadata["jurisdiction"] == "US_CA"
        assert results[0].description == "Jurisdiction: US_CA | Status: Active"
        assert results[0].score == 0.75


class TestUsernameAdapter:
    @pytest.mark.parametrize(
        ("query", "expected"),
        [("@torvalds", "torvalds"), (" octocat ", "octocat"), ("@a", None), ("two words", None)],
    )
    def test_normalize_username(self, query, expected):
        assert normalize_username(query) == expected

    @pytest.mark.asyncio
    async def test_verified_then_candidates(self):
        adapter = UsernameAdapter(_config(SourceType.USERNAME, CategoryType.OSINT))
        github_user = {
            "login": "torvalds",
            "name": "Linus Torvalds",
            "public_repos": 7,
            "followers": 200000,
            "created_at": "2011-09-03T15:26:22Z",
        }
        routes = _by_url({"https://api.github.com/users/torvalds": github_user})
        with patch.object(adapter, "_make_request", new=AsyncMock(side_effect=routes)):
            results = await adapter.search("@torvalds", 5)

        assert [r.title for r in results] == [
            "GitHub: Linus Torvalds",
            "HackerNews: @torvalds",
            "Reddit: @torvalds",
            "Twitter/X: @torvalds",
            "Instagram: @torvalds",
        ]
        assert results[0].metadata["verified"] is True
        assert results[0].score == 0.95
        assert results[0].description == "GitHub user | 7 repos | 200000 followers"
        assert results[1].metadata["verified"] is False
        assert results[1].score == 0.5

    @pytest.mark.asyncio
    async def test_verified_hackernews(self):
        adapter = UsernameAdapter(_config(SourceType.USERNAME, CategoryType.OSINT))
        routes = _by_url({
            "https://hacker-news.firebaseio.com/v0/user/pg.json": {"id": "pg", "karma": 155000, "created": 1160418092},
        })
        with patch.object(adapter, "_make_request", new=AsyncMock(side_effect=routes)):
            results = await adapter.search("pg", 2)

        assert results[0].title == "HackerNews: pg"
        assert results[0].description == "Karma: 155000 | HackerNews user"
        assert results[1].title == "GitHub: @pg"

    @pytest.mark.asyncio
    async def test_invalid_handle_makes_no_request(self):
        adapter = UsernameAdapter(_config(SourceType.USERNAME, CategoryType.OSINT))
        with patch.object(adapter, "_make_request", new=AsyncMock()) as mock:
            assert await adapter.search("not a handle") == []
        mock.assert_not_awaited()


class TestIpLookupAdapter:
    GEO = {
        "status": "success",
        "country": "United States",
        "countryCode": "US",
        "regionName": "Virginia",
        "city": "Ashburn",
        "isp": "Google LLC",
        "org": "Google Public DNS",
        "as": "AS15169 Google LLC",
        "lat": 39.03,
        "lon": -77.5,
        "hosting": True,
        "query": "8.8.8.8",
    }

    @pytest.mark.asyncio
    async def test_geo_and_scanner_links(self):
        adapter = IpLookupAdapter(_config(SourceType.IPGEO, CategoryType.OSINT))
        with patch.object(adapter, "_make_request", new=AsyncMock(return_value=self.GEO)) as mock:
            results = await adapter.search("8.8.8.8")

        assert mock.await_count == 1
        assert [r.title for r in results] == [
            "IP Geolocation: 8.8.8.8",
            "Shodan: 8.8.8.8",
            "VirusTotal: 8.8.8.8",
            "Censys: 8.8.8.8",
        ]
        assert results[0].description == (
            "Ashburn, Virginia, United States | ISP: Google LLC | Org: Google Public DNS | Flags: Hosting/DC"
        )
        assert [r.score for r in results] == [0.9, 0.7, 0.7, 0.65]

    @pytest.mark.asyncio
    async def test_abuse_report_with_key(self):
        adapter = IpLookupAdapter(_config(SourceType.IPGEO, CategoryType.OSINT), abuseipdb_api_key="k")
        abuse = {"data": {
            "ipAddress": "8.8.8.8",
            "abuseConfidenceScore": 80,
            "totalReports": 12,
            "numDistinctUsers": 5,
            "usageType": "Data Center",
            "lastReportedAt": "2024-05-01T10:00:00+00:00",
        }}
        routes = _by_url({"http://ip-api.com/json/8.8.8.8": self.GEO, IpLookupAdapter.ABUSEIPDB_URL: abuse})
        with patch.object(adapter, "_make_request", new=AsyncMock(side_effect=routes)) as mock:
            results = await adapter.search("8.8.8.8")

        assert results[1].title == "AbuseIPDB: 8.8.8.8 - HIGH Risk"
        assert results[1].metadata["riskLevel"] == "HIGH"
        abuse_call = next(c for c in mock.await_args_list if c.args[0] == IpLookupAdapter.ABUSEIPDB_URL)
        assert abuse_call.kwargs["headers"]["Key"] == "k"

    @pytest.mark.asyncio
    async def test_failed_geolocation_keeps_links(self):
        adapter = IpLookupAdapter(_config(SourceType.IPGEO, CategoryType.OSINT))
        with patch.object(adapter, "_make_request", new=AsyncMock(return_value={"status": "fail"})):
            results = await adapter.search("1.1.1.1", 2)
        assert [r.title for r in results] == ["Shodan: 1.1.1.1", "VirusTotal: 1.1.1.1"]

    @pytest.mark.asyncio
    async def test_non_ip(self):
        adapter = IpLookupAdapter(_config(SourceType.IPGEO, CategoryType.OSINT))
        assert await adapter.search("example.com") == []

    @pytest.mark.parametrize(("confidence", "level"), [(90, "HIGH"), (25, "MEDIUM"), (0, "LOW")])
    def test_abuse_risk_level(self, confidence, level):
        assert abuse_risk_level(confidence) == level


# ============================================================
# Research sources
# ============================================================

ARXIV_FEED = """<feed xmlns="http://www.w3.org/2005/Atom" xmlns:arxiv="http://arxiv.org/schemas/atom">
  <entry>
    <id>http://arxiv.org/abs/1706.03762v7</id>
    <published>2017-06-12T17:57:34Z</published>
    <title>Attention Is All
      You Need</title>
    <summary>The dominant sequence transduction models are based on recurrent networks.</summary>
    <author><name>Ashish Vaswani</name></author>
    <author><name>Noam Shazeer</name></author>
    <author><name>Niki Parmar</name></author>
    <author><name>Jakob Uszkoreit</name></author>
    <arxiv:doi>10.48550/arXiv.1706.03762</arxiv:doi>
    <link title="pdf" href="http://arxiv.org/pdf/1706.03762v7" rel="related" type="application/pdf"/>
    <category term="cs.CL"/>
    <category term="cs.LG"/>
    <category term="cs.AI"/>
  </entry>
  <entry>
    <title>Entry without id</title>
  </entry>
</feed>"""


class TestArxivAdapter:
    def test_parse_feed(self):
        adapter = ArxivAdapter(_config(SourceType.ARXIV, CategoryType.RESEARCH))
        results = adapter.parse_feed(ARXIV_FEED)

        assert len(results) == 1
        result = results[0]
        assert result.title == "Attention Is All You Need"
        assert result.url == "https://arxiv.org/abs/1706.03762v7"
        assert result.description == (
            "The dominant sequence transduction models are based on recurrent networks. | "
            "Authors: Ashish Vaswani, Noam Shazeer, Niki Parmar... | cs.CL, cs.LG"
        )
        assert result.metadata["pdfUrl"] == "http://arxiv.org/pdf/1706.03762v7"
        assert result.metadata["doi"] == "10.48550/arXiv.1706.03762"
        assert result.timestamp == "2017-06-12T17:57:34Z"
        assert result.score == 0.75

    def test_unparseable_feed(self):
        adapter = ArxivAdapter(_config(SourceType.ARXIV, CategoryType.RESEARCH))
        assert adapter.parse_feed("<feed><entry>") == []

    @pytest.mark.asyncio
    async def test_query_syntax_escaped(self):
        adapter = ArxivAdapter(_config(SourceType.ARXIV, CategoryType.RESEARCH))
        with patch.object(adapter, "_make_request", new=AsyncMock(return_value=ARXIV_FEED)) as mock:
            results = await adapter.search("ti:(transformers)", 500)

        params = mock.await_args.kwargs["params"]
        assert params["search_query"] == "all:ti  transformers"
        assert params["max_results"] == 100
        assert mock.await_args.kwargs["expect_json"] is False
        assert len(results) == 1


class TestPubMedAdapter:
    SUMMARY = {
        "result": {
            "uids": ["38000001", "38000002"],
            "38000001": {
                "title": "CRISPR <i>in vivo</i> editing",
                "authors": [{"name": "Smith J"}, {"name": "Doe A"}, {"name": "Roe B"}, {"name": "Poe C"}],
                "articleids": [{"idtype": "pubmed", "value": "38000001"}, {"idtype": "doi", "value": "10.1/x"}],
                "fulljournalname": "Nature",
                "pubdate": "2024 Mar 15",
                "sortpubdate": "2024/03/15 00:00",
                "pubtype": ["Journal Article"],
            },
            "38000002": {"error": "cannot get document summary"},
        }
    }

    def test_parse_summaries(self):
        adapter = PubMedAdapter(_config(SourceType.PUBMED, CategoryType.RESEARCH))
        results = adapter.parse_summaries(self.SUMMARY, ["38000001", "38000002"])

        assert len(results) == 1
        result = results[0]
        assert result.title == "CRISPR in vivo editing"
        assert result.description == "Smith J, Doe A, Roe B et al. | Nature | 2024 Mar 15"
        assert result.url == "https://pubmed.ncbi.nlm.nih.gov/38000001/"
        assert result.timestamp == "2024-03-15"
        assert result.metadata["doi"] == "10.1/x"
        assert result.score == 0.8

    @pytest.mark.asyncio
    async def test_search_chains_esearch_and_esummary(self):
        adapter = PubMedAdapter(_config(SourceType.PUBMED, CategoryType.RESEARCH))
        found = {"esearchresult": {"idlist": ["38000001"]}}
        mock = AsyncMock(side_effect=[found, self.SUMMARY])
        with patch.object(adapter, "_eutils", new=mock):
            results = await adapter.search("crispr", 3)

        assert mock.await_args_list[0].args == ("esearch", {"db": "pubmed", "term": "crispr", "retmax": 3,
                                                            "sort": "relevance"})
        assert mock.await_args_list[1].args == ("esummary", {"db": "pubmed", "id": "38000001"})
        assert [r.metadata["pmid"] for r in results] == ["38000001"]

    @pytest.mark.asyncio
    async def test_no_ids_skips_esummary(self):
        adapter = PubMedAdapter(_config(SourceType.PUBMED, CategoryType.RESEARCH))
        mock = AsyncMock(return_value={"esearchresult": {"idlist": []}})
        with patch.object(adapter, "_eutils", new=mock):
            assert await adapter.search("nothing") == []
        assert mock.await_count == 1

    @pytest.mark.asyncio
    async def test_eutils_retries_transient_errors(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(503)
            return httpx.Response(200, json={"esearchresult": {"idlist": []}})

        adapter = PubMedAdapter(
            _config(SourceType.PUBMED, CategoryType.RESEARCH),
            api_key="ncbi-key",
            transport=httpx.MockTransport(handler),
        )
        assert await adapter.search("crispr") == []
        assert len(calls) == 2
        assert calls[1].url.params["retmode"] == "json"
        assert calls[1].url.params["api_key"] == "ncbi-key"
        await adapter.close()

    @pytest.mark.asyncio
    async def test_eutils_client_error_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(400)

        adapter = PubMedAdapter(
            _config(SourceType.PUBMED, CategoryType.RESEARCH),
            transport=httpx.MockTransport(handler),
        )
        assert await adapter.search("crispr") == []
        assert len(calls) == 1
        await adapter.close()

    def test_is_retryable(self):
        request = httpx.Request("GET", "https://eutils.test")
        assert _is_retryable_eutils(httpx.HTTPStatusError("x", request=request, response=httpx.Response(429)))
        assert _is_retryable_eutils(httpx.HTTPStatusError("x", request=request, response=httpx.Response(502)))
        assert not _is_retryable_eutils(httpx.HTTPStatusError("x", request=request, response=httpx.Response(400)))
        assert _is_retryable_eutils(httpx.ConnectError("down"))
        assert not _is_retryable_eutils(ValueError("bad json"))


class TestCrossRefAdapter:
    WORK = {
        "title": ["Deep learning"],
        "author": [{"given": "Yann", "family": "LeCun"}, {"name": "Some Consortium"}, {}],
        "container-title": ["Nature"],
        "published": {"date-parts": [[2015, 5, 28]]},
        "DOI": "10.1038/nature14539",
        "URL": "https://doi.org/10.1038/nature14539",
        "is-referenced-by-count": 50000,
        "link": [{"URL": "https://example.org/paper.pdf", "content-type": "application/pdf"}],
    }

    @pytest.mark.asyncio
    async def test_doi_lookup(self):
        adapter = CrossRefAdapter(_config(SourceType.CROSSREF, CategoryType.RESEARCH))
        payload = {"status": "ok", "message": self.WORK}
        with patch.object(adapter, "_make_request", new=AsyncMock(return_value=payload)) as mock:
            results = await adapter.search("https://doi.org/10.1038/nature14539")

        assert mock.await_args.args[0] == "https://api.crossref.org/works/10.1038/nature14539"
        result = results[0]
        assert result.title == "Deep learning"
        assert result.description == "Yann LeCun, Some Consortium | Published in: Nature | (2015)"
        assert result.timestamp == "2015-01-01"
        assert result.score == 0.85
        assert result.metadata["pdfLink"] == "https://example.org/paper.pdf"
        assert result.metadata["citations"] == 50000

    @pytest.mark.asyncio
    async def test_works_search_scores_by_rank(self):
        adapter = CrossRefAdapter(_config(SourceType.CROSSREF, CategoryType.RESEARCH))
        payload = {"status": "ok", "message": {"items": [self.WORK, {"DOI": "10.1/y"}]}}
        with patch.object(adapter, "_make_request", new=AsyncMock(return_value=payload)):
            results = await adapter.search("deep learning")

        assert [r.score for r in results] == [pytest.approx(0.85), pytest.approx(0.83)]
        assert results[1].title == "Untitled"
        assert results[1].url == "https://doi.org/10.1/y"
        assert results[1].description == "Unknown authors"

    @pytest.mark.asyncio
    async def test_error_status(self):
        adapter = CrossRefAdapter(_config(SourceType.CROSSREF, CategoryType.RESEARCH))
        with patch.object(adapter, "_make_request", new=AsyncMock(return_value={"status": "error"})):
            assert await adapter.search("deep learning") == []


# ============================================================
# Civic data sources
# ============================================================


class TestWorldBankAdapter:
    INDICATORS = [
        {"page": 1},
        [
            {"id": "SP.POP.TOTL", "name": "Population, total", "sourceNote": "Total population counts",
             "topics": [{"value": "Health"}]},
            {"id": "NY.GDP.MKTP.CD", "name": "GDP (current US$)", "sourceNote": "Gross domestic product"},
        ],
    ]
    COUNTRIES = [
        {"page": 1},
        [
            {"id": "FRA", "name": "France", "capitalCity": "Paris",
             "region": {"value": "Europe & Central Asia"}, "incomeLevel": {"value": "High income"}},
        ],
    ]

    def _routes(self):
        return _by_url({
            WorldBankAdapter.INDICATORS_URL: self.INDICATORS,
            WorldBankAdapter.COUNTRIES_URL: self.COUNTRIES,
        })

    @pytest.mark.asyncio
    async def test_indicator_match(self):
        adapter = WorldBankAdapter(_config(SourceType.WORLDBANK, CategoryType.RESEARCH))
        with patch.object(adapter, "_make_request", new=AsyncMock(side_effect=self._routes())):
            results = await adapter.search("population")

        assert [r.title for r in results] == ["Population, total"]
        assert results[0].url == "https://data.worldbank.org/indicator/SP.POP.TOTL"
        assert results[0].score == 0.8

    @pytest.mark.asyncio
    async def test_country_match(self):
        adapter = WorldBankAdapter(_config(SourceType.WORLDBANK, CategoryType.RESEARCH))
        with patch.object(adapter, "_make_request", new=AsyncMock(side_effect=self._routes())):
            results = await adapter.search("Paris")

        assert results[0].title == "France - Economic Data"
        assert results[0].description == "Capital: Paris | Region: Europe & Central Asia | Income: High income"
        assert results[0].score == 0.75

    @pytest.mark.asyncio
    async def test_limit_one_skips_countries(self):
        adapter = WorldBankAdapter(_config(SourceType.WORLDBANK, CategoryType.RESEARCH))
        mock = AsyncMock(side_effect=self._routes())
        with patch.object(adapter, "_make_request", new=mock):
            await adapter.search("population", 1)
        assert mock.await_count == 1
        assert mock.await_args.args[0] == WorldBankAdapter.INDICATORS_URL


class TestWhoAdapter:
    @pytest.mark.asyncio
    async def test_offline_indicator_match(self):
        adapter = WhoAdapter(_config(SourceType.WHO, CategoryType.RESEARCH))
        with patch.object(adapter, "_make_request", new=AsyncMock()) as mock:
            results = await adapter.search("malaria")

        mock.assert_not_awaited()
        assert [r.title for r in results] == ["Malaria incidence", 'WHO Data Search: "malaria"']
        assert results[0].score == 0.85
        assert results[1].score == 0.75

    @pytest.mark.asyncio
    async def test_ranked_by_term_score(self):
        adapter = WhoAdapter(_config(SourceType.WHO, CategoryType.RESEARCH))
        results = await adapter.search("mortality")
        assert [r.title for r in results[:5]] == [
            "Infant mortality rate",
            "Under-five mortality rate",
            "Maternal mortality ratio",
            "Suicide mortality rate",
            "Life expectancy at birth",
        ]
        assert results[5].metadata["type"] == "search_link"

    @pytest.mark.asyncio
    async def test_outbreak_link(self):
        adapter = WhoAdapter(_config(SourceType.WHO, CategoryType.RESEARCH))
        results = await adapter.search("virus outbreak")
        assert [r.metadata["type"] for r in results] == ["health_indicator", "search_link", "news_link"]
        assert results[-1].score == 0.7


class TestCensusAdapter:
    CATALOG = {
        "dataset": [
            {
                "title": "American Community Survey: 5-Year Estimates",
                "description": "population and housing",
                "keyword": ["census", "population"],
                "distribution": [{"format": "API", "accessURL": "http://api.census.gov/data/2022/acs/acs5"}],
                "c_dataset": ["acs", "acs5"],
                "c_vintage": 2022,
                "modified": "2023-12-07",
            },
            {"title": "County Business Patterns", "description": "business establishments", "keyword": ["business"]},
        ]
    }

    @pytest.mark.asyncio
    async def test_scored_locally(self):
        adapter = CensusAdapter(_config(SourceType.CENSUS, CategoryType.RESEARCH))
        with patch.object(adapter, "_make_request", new=AsyncMock(return_value=self.CATALOG)):
            results = await adapter.search("business population")

        assert [r.title for r in results] == ["County Business Patterns", "American Community Survey: 5-Year Estimates"]
        assert [r.score for r in results] == [pytest.approx(0.85), pytest.approx(0.83)]
        assert results[0].url == "https://data.census.gov/table?q=County%20Business%20Patterns"
        assert results[1].url == "http://api.census.gov/data/2022/acs/acs5"
        assert results[1].metadata["datasetPath"] == "acs/acs5"
        assert results[1].metadata["hasApi"] is True

    @pytest.mark.asyncio
    async def test_no_match(self):
        adapter = CensusAdapter(_config(SourceType.CENSUS, CategoryType.RESEARCH))
        with patch.object(adapter, "_make_request", new=AsyncMock(return_value=self.CATALOG)):
            assert await adapter.search("volcano") == []


# ============================================================
# Web sources
# ============================================================


class TestWikipediaAdapter:
    @pytest.mark.asyncio
    async def test_wikipedia(self):
        adapter = WikipediaAdapter(_config(SourceType.WIKIPEDIA))
        payload = {"query": {"search": [{
            "title": "Rust (programming language)",
            "snippet": '<span class="searchmatch">Rust</span> is a language',
            "pageid": 1,
            "timestamp": "2024-01-01T00:00:00Z",
        }]}}
        with patch.object(adapter, "_make_request", new=AsyncMock(return_value=payload)):
            results = await adapter.search("rust")

        assert results[0].url == "https://en.wikipedia.org/wiki/Rust_%28programming_language%29"
        assert results[0].description == "Rust is a language"
        assert results[0].source is SourceType.WIKIPEDIA

    @pytest.mark.asyncio
    async def test_wikidata_mode(self):
        adapter = WikipediaAdapter(_config(SourceType.WIKIDATA), wikidata=True)
        payload = {"search": [{"id": "Q575650", "label": "Rust", "description": "programming language"}, {"label": "x"}]}
        with patch.object(adapter, "_make_request", new=AsyncMock(return_value=payload)) as mock:
            results = await adapter.search("rust")

        assert mock.await_args.args[0] == WikipediaAdapter.WIKIDATA_API
        assert len(results) == 1
        assert results[0].url == "https://www.wikidata.org/wiki/Q575650"
        assert results[0].source is SourceType.WIKIDATA


class TestDuckDuckGoAdapter:
    PAYLOAD = {
        "Heading": "Rust",
        "AbstractText": "Rust is a multi-paradigm language.",
        "AbstractURL": "https://en.wikipedia.org/wiki/Rust",
        "RelatedTopics": [
            {"FirstURL": "https://duckduckgo.com/Rust_(game)", "Text": "Rust (video game) - A survival game",
             "Icon": {"URL": "/i/abc.png"}},
            {"Name": "Chemistry", "Topics": [
                {"FirstURL": "https://duckduckgo.com/Iron_oxide", "Text": "Iron oxide - rust"},
            ]},
        ],
        "Results": [],
    }

    @pytest.mark.asyncio
    async def test_abstract_and_topics(self):
        adapter = DuckDuckGoAdapter(_config(SourceType.DUCKDUCKGO))
        with patch.object(adapter, "_make_request", new=AsyncMock(return_value=self.PAYLOAD)):
            results = await adapter.search("rust")

        assert [r.title for r in results] == ["Rust", "Rust (video game)", "Iron oxide"]
        assert [r.score for r in results] == [0.9, 0.7, 0.7]
        assert results[1].favicon == "https://duckduckgo.com/i/abc.png"
        assert results[2].favicon == DuckDuckGoAdapter.FAVICON

    @pytest.mark.asyncio
    async def test_limit(self):
        adapter = DuckDuckGoAdapter(_config(SourceType.DUCKDUCKGO))
        with patch.object(adapter, "_make_request", new=AsyncMock(return_value=self.PAYLOAD)):
            assert len(await adapter.search("rust", 2)) == 2


class TestWebSearchAdapter:
    PAGE = (
        '<div><a rel="nofollow" class="result__a" '
        'href="//duckduckgo.com/l/?uddg=https%3A%2F%2Fwww.rust-lang.org%2F&amp;rut=abc">'
        "The <b>Rust</b> Programming Language</a>"
        '<a class="result__snippet" href="x">A language empowering <b>everyone</b></a></div>'
        '<div><a class="result__a" href="//example.com/page">Example</a></div>'
    )

    @pytest.mark.asyncio
    async def test_scrape_without_key(self):
        adapter = WebSearchAdapter(_config(SourceType.GOOGLECSE))
        with patch.object(adapter, "_make_request", new=AsyncMock(return_value=self.PAGE)) as mock:
            results = await adapter.search("rust")

        assert mock.await_args.args[0] == WebSearchAdapter.HTML_URL
        assert [r.url for r in results] == ["https://www.rust-lang.org/", "https://example.com/page"]
        assert results[0].title == "The Rust Programming Language"
        assert results[0].description == "A language empowering everyone"
        assert results[1].description == ""
        assert [r.score for r in results] == [pytest.approx(0.85), pytest.approx(0.83)]

    @pytest.mark.asyncio
    async def test_custom_search_with_key(self):
        adapter = WebSearchAdapter(_config(SourceType.GOOGLECSE), api_key="key", cse_id="cx")
        payload = {
            "items": [{"title": "Rust", "link": "https://www.rust-lang.org/", "snippet": "s",
                       "displayLink": "www.rust-lang.org"}],
            "searchInformation": {"totalResults": "1000"},
        }
        with patch.object(adapter, "_make_request", new=AsyncMock(return_value=payload)) as mock:
            results = await adapter.search("rust", 20)

        params = mock.await_args.kwargs["params"]
        assert (params["key"], params["cx"], params["num"]) == ("key", "cx", 10)
        assert results[0].score == 0.95
        assert results[0].favicon == "https://www.google.com/s2/favicons?domain=www.rust-lang.org&sz=32"

    @pytest.mark.asyncio
    async def test_empty_custom_search_falls_back_to_scrape(self):
        adapter = WebSearchAdapter(_config(SourceType.GOOGLECSE), api_key="key")
        mock = AsyncMock(side_effect=[{"items": []}, self.PAGE])
        with patch.object(adapter, "_make_request", new=mock):
            results = await adapter.search("rust")
        assert mock.await_count == 2
        assert results[0].metadata["engine"] == "duckduckgo-html"


class TestArchiveAdapter:
    @pytest.mark.asyncio
    async def test_wayback_for_domains(self):
        adapter = ArchiveAdapter(_config(SourceType.ARCHIVE))
        payload = {"archived_snapshots": {"closest": {
            "url": "http://web.archive.org/web/20240101000000/https://example.com/",
            "timestamp": "20240101000000",
            "status": "200",
        }}}
        with patch.object(adapter, "_make_request", new=AsyncMock(return_value=payload)) as mock:
            results = await adapter.search("example.com")

        assert mock.await_count == 1
        assert results[0].title == "Wayback Machine: example.com"
        assert results[0].timestamp == "2024-01-01"
        assert results[0].description == "Archived snapshot from 2024-01-01"

    @pytest.mark.asyncio
    async def test_item_search(self):
        adapter = ArchiveAdapter(_config(SourceType.ARCHIVE))
        payload = {"response": {"docs": [
            {"identifier": "rust-book", "title": ["The Rust Book"], "creator": "Steve",
             "downloads": 50000, "mediatype": "texts"},
            {"title": "no identifier"},
        ]}}
        with patch.object(adapter, "_make_request", new=AsyncMock(return_value=payload)):
            results = await adapter.search("rust book")

        assert len(results) == 1
        assert results[0].title == "The Rust Book"
        assert results[0].url == "https://archive.org/details/rust-book"
        assert results[0].description == "by Steve | Type: texts | 50,000 downloads"
        assert results[0].score == 1.0
