import random
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Mapping, Optional, Sequence

from country_api import models
from country_api.schemas import RawCountry

GDP_FACTOR_MIN = 1000
GDP_FACTOR_MAX = 2000


class GdpEstimator:
    """Estimate GDP as ``population * f / exchange_rate``.

    ``f`` is a fresh integer drawn from ``[GDP_FACTOR_MIN, GDP_FACTOR_MAX]`` on
    every call, so the same inputs give a different estimate each time. Any
    object exposing ``randint(a, b)`` can be passed as ``rng``.
    """

    def __init__(self, rng=None):
        self.rng = rng if rng is not None else random.Random()

    def __call__(self, population: int, currency_code: Optional[str], exchange_rate: Optional[float]) -> float:
        if not currency_code or not exchange_rate or exchange_rate <= 0:
            return 0.0
        factor = self.rng.randint(GDP_FACTOR_MIN, GDP_FACTOR_MAX)
        return (population or 0) * factor / exchange_rate


default_estimator = GdpEstimator()


def utc_timestamp(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass
class MergeResult:
    countries: List[models.Country]
    refreshed_at: str


def _first_currency_code(raw: RawCountry) -> str:
    if not raw.currencies:
        return ""
    return raw.currencies[0].code or ""


def merge_countries(
    raw_countries: Sequence[RawCountry],
    rates: Mapping[str, float],
    estimator: Optional[GdpEstimator] = None,
    now: Optional[datetime] = None,
) -> MergeResult:
    """Join countries with exchange rates and derive estimated GDP.

    Missing currencies or rates degrade to a zero estimate instead of failing.
    Every country in the batch shares one ``last_refreshed_at``.
    """
    estimate = estimator or default_estimator
    refreshed_at = utc_timestamp(now)

    merged: List[models.Country] = []
    for position, raw in enumerate(raw_countries, start=1):
        currency_code = _first_currency_code(raw)
        rate = rates.get(currency_code) if currency_code else None
        if rate is None or rate <= 0:
            rate = None

        merged.append(
            models.Country(
                id=position,
                name=raw.name,
                capital=raw.capital,
                region=raw.region,
                population=raw.population,
                currency_code=currency_code or None,
                exchange_rate=rate,
                estimated_gdp=estimate(raw.population, currency_code, rate),
                flag_url=raw.flag,
                last_refreshed_at=refreshed_at,
            )
        )
    return MergeResult(countries=merged, refreshed_at=refreshed_at)
