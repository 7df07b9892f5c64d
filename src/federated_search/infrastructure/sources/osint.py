"""
OSINT sources.

- WhoisAdapter: RDAP registration data for a domain
- DnsAdapter: A/AAAA/MX/TXT/NS records over DNS-over-HTTPS
- CveAdapter: NVD vulnerability search, CIRCL as fallback
- CompanyAdapter: OpenCorporates registry plus SEC EDGAR tickers (or SEC only)
- UsernameAdapter: handle presence on public platforms
- IpLookupAdapter: geolocation, abuse reputation and scanner links for an IP
"""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Any
from urllib.parse import quote, urlsplit

from federated_search.domain.entities import SearchResult, SourceConfig
from federated_search.shared.patterns import is_domain, is_ip_address

from .adapter import SourceAdapter, iso_from_epoch, join_parts, strip_html, truncate

logger = logging.getLogger(__name__)


# =============================================================================
# WHOIS (RDAP)
# =============================================================================

RDAP_SERVERS: dict[str, str] = {
    "com": "https://rdap.verisign.com/com/v1/domain/",
    "net": "https://rdap.verisign.com/net/v1/domain/",
    "org": "https://rdap.publicinterestregistry.org/rdap/domain/",
    "io": "https://rdap.nic.io/domain/",
    "dev": "https://rdap.nic.google/domain/",
    "app": "https://rdap.nic.google/domain/",
}
RDAP_FALLBACK = "https://rdap.org/domain/"


class WhoisAdapter(SourceAdapter):
    """Domain registration lookup over RDAP. Non-domain queries yield nothing."""

    def __init__(self, config: SourceConfig, **kwargs: Any) -> None:
        super().__init__(config, headers={"Accept": "application/rdap+json"}, **kwargs)

    @staticmethod
    def rdap_url(domain: str) -> str:
        tld = domain.rsplit(".", 1)[-1].lower()
        return RDAP_SERVERS.get(tld, RDAP_FALLBACK) + domain

    async def search(self, query: str, limit: int = 10) -> list[SearchResult]:
        domain = query.strip().lower()
        if not is_domain(domain):
            return []

        data = await self._make_request(self.rdap_url(domain))
        if not isinstance(data, dict):
            return []

        events = {
            event.get("eventAction"): event.get("eventDate")
            for event in data.get("events") or []
        }
        created = events.get("registration")
        updated = events.get("last changed")
        expires = events.get("expiration")
        registrar = self._registrar_name(data.get("entities") or [])
        nameservers = [
            ns["ldhName"].lower() for ns in data.get("nameservers") or [] if ns.get("ldhName")
        ]
        status = data.get("status") or []

        return [
            self.make_result(
                title=f"WHOIS: {domain}",
                description=join_parts(
                    f"Registrar: {registrar}" if registrar else None,
                    f"Created: {created[:10]}" if created else None,
                    f"Expires: {expires[:10]}" if expires else None,
                    f"NS: {', '.join(nameservers[:3])}" if nameservers else None,
                ),
                url=f"https://who.is/whois/{domain}",
                timestamp=updated or created,
                score=0.85,
                metadata={
                    "domain": domain,
                    "registrar": registrar,
                    "created": created,
                    "updated": updated,
                    "expires": expires,
                    "nameservers": nameservers,
                    "status": status,
                },
                favicon="https://who.is/favicon.ico",
            )
        ]

    @staticmethod
    def _registrar_name(entities: list[dict[str, Any]]) -> str | None:
        """Pull the ``fn`` property out of the registrar's jCard."""
        for entity in entities:
            if "registrar" not in (entity.get("roles") or []):
                continue
            vcard = entity.get("vcardArray") or []
            properties = vcard[1] if len(vcard) > 1 else []
            for prop in properties:
                if len(prop) >= 4 and prop[0] == "fn":
                    return str(prop[3])
        return None


# =============================================================================
# DNS
# =============================================================================


class DnsAdapter(SourceAdapter):
    """DNS records via Cloudflare's JSON DoH endpoint, one result per record type."""

    DOH_URL = "https://cloudflare-dns.com/dns-query"
    RECORD_TYPES = ("A", "AAAA", "MX", "TXT", "NS")

    def __init__(self, config: SourceConfig, **kwargs: Any) -> None:
        super().__init__(config, headers={"Accept": "application/dns-json"}, **kwargs)

    async def search(self, query: str, limit: int = 10) -> list[SearchResult]:
        domain = query.strip().lower()
        if not is_domain(domain):
            return []

        answers = await asyncio.gather(
            *(self._resolve(domain, record_type) for record_type in self.RECORD_TYPES)
        )
        results = [r for r in answers if r is not None]
        return results[:limit]

    async def _resolve(self, domain: str, record_type: str) -> SearchResult | None:
        data = await self._make_request(self.DOH_URL, params={"name": domain, "type": record_type})
        if not isinstance(data, dict):
            return None
        records = [str(a.get("data", "")).strip('"') for a in data.get("Answer") or [] if a.get("data")]
        if not records:
            return None
        return self.make_result(
            title=f"DNS {record_type}: {domain}",
            description=", ".join(records[:5]),
            url=f"https://dnschecker.org/#{record_type}/{domain}",
            score=0.7,
            metadata={"recordType": record_type, "records": records},
        )


# =============================================================================
# CVE
# =============================================================================


def severity_from_score(cvss: float) -> str:
    """CVSS v2 payloads carry no severity label; derive one from the base score."""
    if cvss >= 9.0:
        return "CRITICAL"
    if cvss >= 7.0:
        return "HIGH"
    if cvss >= 4.0:
        return "MEDIUM"
    return "LOW"


class CveAdapter(SourceAdapter):
    """Vulnerability search on NVD, falling back to CIRCL when NVD is unavailable."""

    NVD_URL = "https://services.nvd.nist.gov/rest/json/cves/2.0"
    CIRCL_URL = "https://cve.circl.lu/api/search/{query}"

    async def search(self, query: str, limit: int = 10) -> list[SearchResult]:
        data = await self._make_request(
            self.NVD_URL,
            params={"keywordSearch": query, "resultsPerPage": limit},
        )
        if data is None:
            logger.info(f"NVD unavailable, falling back to CIRCL for {query!r}")
            return await self._search_circl(query, limit)
        if not isinstance(data, dict):
            return []

        results = []
        for item in data.get("vulnerabilities") or []:
            cve = item.get("cve") or {}
            cve_id = cve.get("id")
            if not cve_id:
                continue
            description = next(
                (d.get("value", "") for d in cve.get("descriptions") or [] if d.get("lang") == "en"),
                "",
            )
            cvss, severity = self._cvss(cve.get("metrics") or {})
            results.append(
                self.make_result(
                    title=cve_id,
                    description=join_parts(
                        description[:200],
                        f"Severity: {severity} ({cvss})" if severity else None,
                    ),
                    url=f"https://nvd.nist.gov/vuln/detail/{cve_id}",
                    timestamp=cve.get("published"),
                    score=0.7 + (cvss or 0.0) / 40,
                    metadata={
                        "cvss": cvss,
                        "severity": severity,
                        "published": cve.get("published"),
                        "modified": cve.get("lastModified"),
                    },
                    favicon="https://nvd.nist.gov/favicon.ico",
                )
            )
        return results

    @staticmethod
    def _cvss(metrics: dict[str, Any]) -> tuple[float | None, str | None]:
        v31 = metrics.get("cvssMetricV31") or []
        if v31:
            data = v31[0].get("cvssData") or {}
            score = data.get("baseScore")
            return score, data.get("baseSeverity")
        v2 = metrics.get("cvssMetricV2") or []
        if v2:
            score = (v2[0].get("cvssData") or {}).get("baseScore")
            if score is not None:
                return score, severity_from_score(float(score))
        return None, None

    async def _search_circl(self, query: str, limit: int) -> list[SearchResult]:
        data = await self._make_request(self.CIRCL_URL.format(query=quote(query)))
        if isinstance(data, dict):
            data = data.get("results") or data.get("data") or []
        if not isinstance(data, list):
            return []

        results = []
        for item in data[:limit]:
            cve_id = item.get("id")
            if not cve_id:
                continue
            cvss = item.get("cvss")
            results.append(
                self.make_result(
                    title=cve_id,
                    description=join_parts(
                        (item.get("summary") or "")[:200],
                        f"CVSS: {cvss}" if cvss is not None else None,
                    ),
                    url=f"https://nvd.nist.gov/vuln/detail/{cve_id}",
                    timestamp=item.get("Published"),
                    score=0.7 + float(cvss or 0.0) / 40,
                    metadata={"cvss": cvss, "provider": "circl"},
                    favicon="https://nvd.nist.gov/favicon.ico",
                )
            )
        return results


# =============================================================================
# Companies
# =============================================================================


class CompanyAdapter(SourceAdapter):
    """
    Company registries.

    By default half the limit goes to OpenCorporates and half to SEC EDGAR.
    ``sec_only=True`` serves the sec source. SEC rejects requests that do not
    carry a descriptive User-Agent.
    """

    OPENCORPORATES_URL = "https://api.opencorporates.com/v0.4/companies/search"
    SEC_TICKERS_URL = "https://www.sec.gov/files/company_tickers.json"
    SEC_COMPANY_URL = "https://www.sec.gov/cgi-bin/browse-edgar?action=getcompany&CIK={cik}"

    def __init__(
        self,
        config: SourceConfig,
        *,
        sec_only: bool = False,
        user_agent: str = "FederatedSearch/1.0",
        **kwargs: Any,
    ) -> None:
        super().__init__(config, headers={"User-Agent": user_agent}, **kwargs)
        self.sec_only = sec_only

    async def search(self, query: str, limit: int = 10) -> list[SearchResult]:
        if self.sec_only:
            return await self._search_sec(query, limit)

        share = math.ceil(limit / 2)
        registry, sec = await asyncio.gather(
            self._search_opencorporates(query, share),
            self._search_sec(query, share),
        )
        return (registry + sec)[:limit]

    async def _search_opencorporates(self, query: str, limit: int) -> list[SearchResult]:
        data = await self._make_request(self.OPENCORPORATES_URL, params={"q": query, "per_page": limit})
        if not isinstance(data, dict):
            return []

        results = []
        for wrapper in (data.get("results") or {}).get("companies") or []:
            company = wrapper.get("company") or {}
            name = company.get("name")
            if not name:
                continue
            jurisdiction = (company.get("jurisdiction_code") or "").upper()
            address = company.get("registered_address_in_full")
            results.append(
                self.make_result(
                    title=name,
                    description=join_parts(
                        f"Jurisdiction: {jurisdiction}" if jurisdiction else None,
                        f"Status: {company['current_status']}" if company.get("current_status") else None,
                        f"Type: {company['company_type']}" if company.get("company_type") else None,
                        f"Address: {address}" if address else None,
                    ),
                    url=company.get("opencorporates_url") or "https://opencorporates.com",
                    timestamp=company.get("incorporation_date"),
                    score=0.75,
                    metadata={
                        "companyNumber": company.get("company_number"),
                        "jurisdiction": jurisdiction or None,
                        "status": company.get("current_status"),
                        "incorporated": company.get("incorporation_date"),
                        "dissolved": company.get("dissolution_date"),
                        "registry": "opencorporates",
                    },
                    favicon="https://opencorporates.com/favicon.ico",
                )
            )
        return results

    async def _search_sec(self, query: str, limit: int) -> list[SearchResult]:
        data = await self._make_request(self.SEC_TICKERS_URL)
        if not isinstance(data, dict):
            return []

        needle = query.strip().lower()
        if not needle:
            return []

        results = []
        for entry in data.values():
            title = str(entry.get("title", ""))
            ticker = str(entry.get("ticker", ""))
            if needle not in title.lower() and needle != ticker.lower():
                continue
            cik = str(entry.get("cik_str", "")).zfill(10)
            results.append(
                self.make_result(
                    title=f"{title} ({ticker})" if ticker else title,
                    description=join_parts(f"SEC CIK: {cik}", f"Ticker: {ticker}" if ticker else None),
                    url=self.SEC_COMPANY_URL.format(cik=cik),
                    score=0.8,
                    metadata={"cik": cik, "ticker": ticker or None, "registry": "sec"},
                    favicon="https://www.sec.gov/favicon.ico",
                )
            )
            if len(results) >= limit:
                break
        return results


# =============================================================================
# Usernames
# =============================================================================

# (name, profile url prefix); the first three have a public lookup API
PLATFORMS: tuple[tuple[str, str], ...] = (
    ("GitHub", "https://github.com/"),
    ("HackerNews", "https://news.ycombinator.com/user?id="),
    ("Reddit", "https://reddit.com/user/"),
    ("Twitter/X", "https://twitter.com/"),
    ("Instagram", "https://instagram.com/"),
    ("LinkedIn", "https://linkedin.com/in/"),
    ("YouTube", "https://youtube.com/@"),
    ("TikTok", "https://tiktok.com/@"),
    ("Medium", "https://medium.com/@"),
    ("Dev.to", "https://dev.to/"),
    ("Mastodon", "https://mastodon.social/@"),
    ("Keybase", "https://keybase.io/"),
    ("GitLab", "https://gitlab.com/"),
    ("Dribbble", "https://dribbble.com/"),
    ("Behance", "https://behance.net/"),
    ("Pinterest", "https://pinterest.com/"),
    ("Twitch", "https://twitch.tv/"),
    ("Spotify", "https://open.spotify.com/user/"),
    ("SoundCloud", "https://soundcloud.com/"),
    ("Flickr", "https://flickr.com/people/"),
)


def normalize_username(query: str) -> str | None:
    """Strip a leading ``@``; None when the query cannot be a handle."""
    username = query.strip().lstrip("@").strip()
    if len(username) < 2 or " " in username:
        return None
    return username


class UsernameAdapter(SourceAdapter):
    """
    Handle lookup across platforms.

    GitHub, Hacker News and Reddit are checked through their public APIs
    and come back verified. Every other platform is listed as an
    unverified candidate profile link.
    """

    GITHUB_USER_URL = "https://api.github.com/users/{name}"
    HN_USER_URL = "https://hacker-news.firebaseio.com/v0/user/{name}.json"
    REDDIT_USER_URL = "https://www.reddit.com/user/{name}/about.json"

    def __init__(self, config: SourceConfig, *, user_agent: str = "FederatedSearch/1.0", **kwargs: Any) -> None:
        super().__init__(config, headers={"User-Agent": user_agent}, **kwargs)

    async def search(self, query: str, limit: int = 10) -> list[SearchResult]:
        username = normalize_username(query)
        if username is None:
            return []

        checked = await asyncio.gather(
            self._check_github(username),
            self._check_hackernews(username),
            self._check_reddit(username),
        )
        results = [r for r in checked if r is not None]
        verified = {r.metadata.get("platform") for r in results}

        for name, prefix in PLATFORMS:
            if len(results) >= limit:
                break
            if name in verified:
                continue
            results.append(
                self.make_result(
                    title=f"{name}: @{username}",
                    description=f"Potential profile on {name}. Open the link to check whether this account exists.",
                    url=f"{prefix}{username}",
                    score=0.5,
                    metadata={"platform": name, "username": username, "verified": False},
                    favicon=f"https://www.google.com/s2/favicons?domain={urlsplit(prefix).hostname}&sz=32",
                )
            )
        return results[:limit]

    async def _check_github(self, username: str) -> SearchResult | None:
        data = await self._make_request(self.GITHUB_USER_URL.format(name=quote(username)))
        if not isinstance(data, dict) or not data.get("login"):
            return None
        return self.make_result(
            title=f"GitHub: {data.get('name') or data['login']}",
            description=truncate(
                join_parts(
                    data.get("bio") or "GitHub user",
                    f"{data.get('public_repos', 0)} repos",
                    f"{data.get('followers', 0)} followers",
                ),
                200,
            ),
            url=f"https://github.com/{username}",
            timestamp=data.get("created_at"),
            score=0.95,
            metadata={
                "platform": "GitHub",
                "username": data["login"],
                "verified": True,
                "repos": data.get("public_repos"),
                "followers": data.get("followers"),
            },
            favicon="https://github.com/favicon.ico",
        )

    async def _check_hackernews(self, username: str) -> SearchResult | None:
        # Firebase answers unknown users with a literal null
        data = await self._make_request(self.HN_USER_URL.format(name=quote(username)))
        if not isinstance(data, dict) or not data.get("id"):
            return None
        about = truncate(strip_html(data.get("about")), 150)
        return self.make_result(
            title=f"HackerNews: {data['id']}",
            description=join_parts(f"Karma: {data.get('karma', 0)}", about or "HackerNews user"),
            url=f"https://news.ycombinator.com/user?id={username}",
            timestamp=iso_from_epoch(data.get("created")),
            score=0.9,
            metadata={
                "platform": "HackerNews",
                "username": data["id"],
                "verified": True,
                "karma": data.get("karma"),
            },
            favicon="https://news.ycombinator.com/favicon.ico",
        )

    async def _check_reddit(self, username: str) -> SearchResult | None:
        data = await self._make_request(self.REDDIT_USER_URL.format(name=quote(username)))
        user = data.get("data") if isinstance(data, dict) else None
        if not isinstance(user, dict) or not user.get("name"):
            return None
        created = iso_from_epoch(user.get("created_utc"))
        return self.make_result(
            title=f"Reddit: u/{user['name']}",
            description=join_parts(
                f"Karma: {user.get('total_karma', 0)}",
                f"Account created: {created[:10]}" if created else None,
            ),
            url=f"https://reddit.com/user/{username}",
            timestamp=created,
            score=0.9,
            metadata={
                "platform": "Reddit",
                "username": user["name"],
                "verified": True,
                "karma": user.get("total_karma"),
            },
            favicon="https://www.reddit.com/favicon.ico",
        )


# =============================================================================
# IP Lookup
# =============================================================================


def abuse_risk_level(confidence: int) -> str:
    if confidence >= 75:
        return "HIGH"
    if confidence >= 25:
        return "MEDIUM"
    return "LOW"


class IpLookupAdapter(SourceAdapter):
    """
    IP intelligence.

    Geolocation from ip-api.com, reputation from AbuseIPDB when a key is
    configured, then fixed deep links to Shodan, VirusTotal and Censys.
    """

    GEO_URL = "http://ip-api.com/json/{ip}"
    GEO_FIELDS = (
        "status,message,country,countryCode,region,regionName,city,zip,lat,lon,"
        "timezone,isp,org,as,mobile,proxy,hosting,query"
    )
    ABUSEIPDB_URL = "https://api.abuseipdb.com/api/v2/check"

    SCANNER_LINKS: tuple[tuple[str, str, str, float, str], ...] = (
        (
            "Shodan",
            "https://www.shodan.io/host/{ip}",
            "View open ports, services, and vulnerabilities for this IP on Shodan.",
            0.7,
            "shodan_link",
        ),
        (
            "VirusTotal",
            "https://www.virustotal.com/gui/ip-address/{ip}",
            "Check IP reputation and associated malware on VirusTotal.",
            0.7,
            "virustotal_link",
        ),
        (
            "Censys",
            "https://search.censys.io/hosts/{ip}",
            "View detailed host information and certificates on Censys.",
            0.65,
            "censys_link",
        ),
    )

    def __init__(self, config: SourceConfig, *, abuseipdb_api_key: str | None = None, **kwargs: Any) -> None:
        super().__init__(config, **kwargs)
        self._abuseipdb_api_key = abuseipdb_api_key

    async def search(self, query: str, limit: int = 10) -> list[SearchResult]:
        ip = query.strip()
        if not is_ip_address(ip):
            return []

        geo, abuse = await asyncio.gather(self._geolocate(ip), self._check_abuse(ip))
        results = [r for r in (geo, abuse) if r is not None]
        for name, template, description, score, kind in self.SCANNER_LINKS:
            results.append(
                self.make_result(
                    title=f"{name}: {ip}",
                    description=description,
                    url=template.format(ip=ip),
                    score=score,
                    metadata={"type": kind},
                )
            )
        return results[:limit]

    async def _geolocate(self, ip: str) -> SearchResult | None:
        data = await self._make_request(self.GEO_URL.format(ip=ip), params={"fields": self.GEO_FIELDS})
        if not isinstance(data, dict) or data.get("status") != "success":
            return None

        flags = [
            label
            for key, label in (("mobile", "Mobile"), ("proxy", "Proxy/VPN"), ("hosting", "Hosting/DC"))
            if data.get(key)
        ]
        location = ", ".join(p for p in (data.get("city"), data.get("regionName"), data.get("country")) if p)
        return self.make_result(
            title=f"IP Geolocation: {ip}",
            description=join_parts(
                location or None,
                f"ISP: {data['isp']}" if data.get("isp") else None,
                f"Org: {data['org']}" if data.get("org") and data.get("org") != data.get("isp") else None,
                f"Flags: {', '.join(flags)}" if flags else None,
            ),
            url=f"https://www.google.com/maps/@{data.get('lat')},{data.get('lon')},12z",
            score=0.9,
            metadata={
                "ip": data.get("query"),
                "country": data.get("country"),
                "countryCode": data.get("countryCode"),
                "region": data.get("regionName"),
                "city": data.get("city"),
                "zip": data.get("zip"),
                "lat": data.get("lat"),
                "lon": data.get("lon"),
                "timezone": data.get("timezone"),
                "isp": data.get("isp"),
                "org": data.get("org"),
                "asn": data.get("as"),
                "isMobile": data.get("mobile"),
                "isProxy": data.get("proxy"),
                "isHosting": data.get("hosting"),
            },
        )

    async def _check_abuse(self, ip: str) -> SearchResult | None:
        if not self._abuseipdb_api_key:
            return None
        data = await self._make_request(
            self.ABUSEIPDB_URL,
            params={"ipAddress": ip},
            headers={"Key": self._abuseipdb_api_key, "Accept": "application/json"},
        )
        report = data.get("data") if isinstance(data, dict) else None
        if not isinstance(report, dict):
            return None

        confidence = int(report.get("abuseConfidenceScore") or 0)
        risk = abuse_risk_level(confidence)
        last_reported = report.get("lastReportedAt")
        return self.make_result(
            title=f"AbuseIPDB: {ip} - {risk} Risk",
            description=join_parts(
                f"Abuse Score: {confidence}%",
                f"Reports: {report.get('totalReports', 0)} from {report.get('numDistinctUsers', 0)} users",
                f"Type: {report['usageType']}" if report.get("usageType") else None,
                f"Domain: {report['domain']}" if report.get("domain") else None,
                f"Last reported: {last_reported[:10]}" if last_reported else None,
            ),
            url=f"https://www.abuseipdb.com/check/{ip}",
            timestamp=last_reported,
            score=0.85,
            metadata={
                "ip": report.get("ipAddress"),
                "abuseScore": confidence,
                "riskLevel": risk,
                "totalReports": report.get("totalReports"),
                "usageType": report.get("usageType"),
                "isp": report.get("isp"),
                "domain": report.get("domain"),
            },
            favicon="https://www.abuseipdb.com/favicon.ico",
        )
