"""
Public statistics sources.

- WorldBankAdapter: World Bank indicators and countries, matched locally
- WhoAdapter: WHO Global Health Observatory indicators (curated table)
- CensusAdapter: US Census Bureau dataset catalog, scored locally
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

from federated_search.domain.entities import SearchResult

from .adapter import SourceAdapter, join_parts

logger = logging.getLogger(__name__)


# =============================================================================
# World Bank
# =============================================================================


class WorldBankAdapter(SourceAdapter):
    """
    World Bank open data.

    The API has no text search, so the indicator and country listings are
    fetched and matched against the query locally. Indicators take the
    larger half of the limit.
    """

    INDICATORS_URL = "https://api.worldbank.org/v2/indicator"
    COUNTRIES_URL = "https://api.worldbank.org/v2/country"
    FAVICON = "https://www.worldbank.org/favicon.ico"

    async def search(self, query: str, limit: int = 10) -> list[SearchResult]:
        needle = query.strip().lower()
        if not needle:
            return []
        indicators, countries = await asyncio.gather(
            self._search_indicators(needle, math.ceil(limit / 2)),
            self._search_countries(needle, limit // 2),
        )
        return (indicators + countries)[:limit]

    @staticmethod
    def _rows(data: Any) -> list[dict[str, Any]]:
        """Responses are ``[paging, rows]``."""
        if isinstance(data, list) and len(data) > 1 and isinstance(data[1], list):
            return data[1]
        return []

    async def _search_indicators(self, needle: str, limit: int) -> list[SearchResult]:
        if limit <= 0:
            return []
        data = await self._make_request(self.INDICATORS_URL, params={"format": "json", "per_page": 50})

        matched = [
            ind
            for ind in self._rows(data)
            if needle in (ind.get("name") or "").lower()
            or needle in (ind.get("sourceNote") or "").lower()
            or any(needle in (t.get("value") or "").lower() for t in ind.get("topics") or [])
        ][:limit]

        return [
            self.make_result(
                title=ind.get("name", ""),
                description=ind.get("sourceNote") or f"Source: {ind.get('sourceOrganization', '')}",
                url=f"https://data.worldbank.org/indicator/{ind.get('id', '')}",
                score=0.8 - i * 0.02,
                metadata={
                    "indicatorId": ind.get("id"),
                    "topics": [t.get("value") for t in ind.get("topics") or [] if t.get("value")],
                    "organization": ind.get("sourceOrganization"),
                },
                favicon=self.FAVICON,
            )
            for i, ind in enumerate(matched)
        ]

    async def _search_countries(self, needle: str, limit: int) -> list[SearchResult]:
        if limit <= 0:
            return []
        data = await self._make_request(self.COUNTRIES_URL, params={"format": "json", "per_page": 300})

        matched = [
            country
            for country in self._rows(data)
            if needle in (country.get("name") or "").lower()
            or needle in (country.get("capitalCity") or "").lower()
            or needle in ((country.get("region") or {}).get("value") or "").lower()
        ][:limit]

        results = []
        for i, country in enumerate(matched):
            region = (country.get("region") or {}).get("value")
            income = (country.get("incomeLevel") or {}).get("value")
            capital = country.get("capitalCity")
            results.append(
                self.make_result(
                    title=f"{country.get('name', '')} - Economic Data",
                    description=join_parts(
                        f"Capital: {capital}" if capital else None,
                        f"Region: {region}" if region else None,
                        f"Income: {income}" if income else None,
                    ),
                    url=f"https://data.worldbank.org/country/{country.get('id', '')}",
                    score=0.75 - i * 0.02,
                    metadata={
                        "countryCode": country.get("id"),
                        "region": region,
                        "incomeLevel": income,
                        "capital": capital or None,
                    },
                    favicon=self.FAVICON,
                )
            )
        return results


# =============================================================================
# WHO
# =============================================================================


@dataclass(frozen=True, slots=True)
class HealthIndicator:
    code: str
    name: str
    keywords: tuple[str, ...]


GHO_INDICATORS: tuple[HealthIndicator, ...] = (
    HealthIndicator("WHOSIS_000001", "Life expectancy at birth", ("life expectancy", "lifespan", "mortality", "age")),
    HealthIndicator("WHOSIS_000002", "Healthy life expectancy at birth", ("healthy life", "hale", "disability-free")),
    HealthIndicator("MDG_0000000001", "Infant mortality rate", ("infant", "baby", "mortality", "death", "child")),
    HealthIndicator("MDG_0000000007", "Under-five mortality rate", ("child", "mortality", "under 5", "death")),
    HealthIndicator("MDG_0000000011", "Maternal mortality ratio", ("maternal", "pregnancy", "birth", "mother")),
    HealthIndicator("NCD_BMI_30A", "Obesity prevalence", ("obesity", "overweight", "bmi", "weight")),
    HealthIndicator("SA_0000001688", "Alcohol consumption per capita", ("alcohol", "drinking", "consumption")),
    HealthIndicator("M_Est_smk_curr_std", "Tobacco smoking prevalence", ("smoking", "tobacco", "cigarette")),
    HealthIndicator("WSH_SANITATION_SAFELY_MANAGED", "Safely managed sanitation", ("sanitation", "water", "hygiene")),
    HealthIndicator("WHS3_40", "Tuberculosis incidence", ("tuberculosis", "tb", "infectious disease")),
    HealthIndicator("HIV_0000000001", "HIV prevalence", ("hiv", "aids", "virus", "infection")),
    HealthIndicator("MALARIA_EST_INCIDENCE", "Malaria incidence", ("malaria", "mosquito", "parasitic")),
    HealthIndicator("UHC_INDEX_REPORTED", "Universal health coverage index", ("healthcare", "coverage", "uhc", "access")),
    HealthIndicator("NUTRITION_ANAEMIA_CHILDREN_PREV", "Anemia in children", ("anemia", "iron", "nutrition", "children")),
    HealthIndicator("NUTRITION_WA_2", "Child stunting", ("stunting", "growth", "nutrition", "children")),
    HealthIndicator("NCD_HYP_PREVALENCE_A", "Hypertension prevalence", ("hypertension", "blood pressure", "heart")),
    HealthIndicator("NCD_GLUC_04", "Diabetes prevalence", ("diabetes", "glucose", "blood sugar")),
    HealthIndicator("MH_12", "Suicide mortality rate", ("suicide", "mental health", "depression")),
    HealthIndicator("RS_198", "Hospital beds per 10000", ("hospital", "beds", "healthcare", "capacity")),
    HealthIndicator("HWF_0001", "Physicians per 10000", ("doctors", "physicians", "healthcare workers")),
)

OUTBREAK_TERMS = frozenset(
    {"disease", "virus", "outbreak", "pandemic", "epidemic", "health", "medical", "covid", "flu", "influenza"}
)


def score_indicator(indicator: HealthIndicator, terms: list[str]) -> int:
    """+3 per term in the indicator name, +2 per term found in any keyword."""
    name = indicator.name.lower()
    score = 0
    for term in terms:
        if term in name:
            score += 3
        if any(term in keyword for keyword in indicator.keywords):
            score += 2
    return score


class WhoAdapter(SourceAdapter):
    """
    WHO Global Health Observatory.

    Matches a curated indicator table offline (at most six hits), then
    always appends a GHO search link, plus the outbreak news page for
    disease-flavoured queries. No network call is made.
    """

    INDICATOR_URL = "https://www.who.int/data/gho/data/indicators/indicator-details/GHO/{code}"
    SEARCH_URL = "https://www.who.int/data/gho/data/indicators/indicators-index?text={query}"
    OUTBREAK_URL = "https://www.who.int/emergencies/disease-outbreak-news"
    FAVICON = "https://www.who.int/favicon.ico"
    MAX_INDICATORS = 6

    async def search(self, query: str, limit: int = 10) -> list[SearchResult]:
        terms = query.lower().split()
        if not terms:
            return []

        scored = [(score_indicator(ind, terms), ind) for ind in GHO_INDICATORS]
        # sorted() is stable, so equal scores keep table order
        ranked = sorted((item for item in scored if item[0] > 0), key=lambda item: -item[0])
        ranked = ranked[: min(limit, self.MAX_INDICATORS)]

        results = [
            self.make_result(
                title=ind.name,
                description=f"WHO Global Health Observatory indicator. Code: {ind.code}",
                url=self.INDICATOR_URL.format(code=ind.code),
                score=0.85 - i * 0.02,
                metadata={"indicatorCode": ind.code, "keywords": list(ind.keywords), "type": "health_indicator"},
                favicon=self.FAVICON,
            )
            for i, (_, ind) in enumerate(ranked)
        ]

        results.append(
            self.make_result(
                title=f'WHO Data Search: "{query.strip()}"',
                description="Search the WHO Global Health Observatory for health statistics and data.",
                url=self.SEARCH_URL.format(query=quote(query.strip())),
                score=0.75,
                metadata={"type": "search_link"},
                favicon=self.FAVICON,
            )
        )

        if OUTBREAK_TERMS.intersection(terms):
            results.append(
                self.make_result(
                    title="WHO Disease Outbreak News",
                    description="Latest disease outbreak news and health emergencies from WHO.",
                    url=self.OUTBREAK_URL,
                    score=0.7,
                    metadata={"type": "news_link"},
                    favicon=self.FAVICON,
                )
            )

        return results[:limit]


# =============================================================================
# US Census
# =============================================================================


def score_dataset(dataset: dict[str, Any], terms: list[str]) -> int:
    """+3 per term in the title, +1 in the description, +2 in any keyword."""
    title = (dataset.get("title") or "").lower()
    description = (dataset.get("description") or "").lower()
    keywords = [str(k).lower() for k in dataset.get("keyword") or []]
    score = 0
    for term in terms:
        if term in title:
            score += 3
        if term in description:
            score += 1
        if any(term in keyword for keyword in keywords):
            score += 2
    return score


class CensusAdapter(SourceAdapter):
    """US Census Bureau datasets from the public ``data.json`` catalog."""

    CATALOG_URL = "https://api.census.gov/data.json"

    async def search(self, query: str, limit: int = 10) -> list[SearchResult]:
        terms = query.lower().split()
        if not terms:
            return []

        data = await self._make_request(self.CATALOG_URL)
        if not isinstance(data, dict):
            return []

        scored = [(score_dataset(ds, terms), ds) for ds in data.get("dataset") or []]
        ranked = sorted((item for item in scored if item[0] > 0), key=lambda item: -item[0])[:limit]

        results = []
        for i, (_, ds) in enumerate(ranked):
            title = ds.get("title") or "Census dataset"
            api_url = next(
                (d.get("accessURL") for d in ds.get("distribution") or [] if d.get("format") == "API"),
                None,
            )
            results.append(
                self.make_result(
                    title=title,
                    description=ds.get("description") or "",
                    url=api_url or f"https://data.census.gov/table?q={quote(title)}",
                    timestamp=ds.get("modified"),
                    score=0.85 - i * 0.02,
                    metadata={
                        "datasetPath": "/".join(ds.get("c_dataset") or []) or None,
                        "vintage": ds.get("c_vintage"),
                        "keywords": (ds.get("keyword") or [])[:5] or None,
                        "hasApi": api_url is not None,
                    },
                    favicon="https://www.census.gov/favicon.ico",
                )
            )
        return results
