"""Clients for the two external data sources used by a refresh.

Each client performs exactly one request and either returns decoded data or
raises ``SourceUnavailable``; retries are left to the caller.
"""
import logging
from typing import Any, Dict, List, Optional

import requests
from pydantic import TypeAdapter, ValidationError

from country_api.config import settings
from country_api.exceptions import SourceUnavailable
from country_api.schemas import ExchangeRatesPayload, RawCountry

logger = logging.getLogger("country_api")

COUNTRIES_SOURCE = "Countries API"
EXCHANGE_SOURCE = "Exchange Rates API"

_countries_adapter = TypeAdapter(List[RawCountry])


def _get_json(url: str, source: str, timeout: Optional[float]) -> Any:
    try:
        resp = requests.get(url, timeout=timeout or settings.HTTP_TIMEOUT)
        resp.raise_for_status()
        return resp.json()
    except requests.RequestException as exc:
        logger.warning("%s request failed: %s", source, exc)
        raise SourceUnavailable(source, str(exc)) from exc
    except ValueError as exc:
        logger.warning("%s returned a non-JSON body: %s", source, exc)
        raise SourceUnavailable(source, "invalid JSON response") from exc


def fetch_countries(url: Optional[str] = None, timeout: Optional[float] = None) -> List[RawCountry]:
    """Fetch raw country records in source order."""
    payload = _get_json(url or settings.COUNTRY_API, COUNTRIES_SOURCE, timeout)
    try:
        countries = _countries_adapter.validate_python(payload)
    except ValidationError as exc:
        logger.warning("%s payload has an unexpected shape: %s", COUNTRIES_SOURCE, exc)
        raise SourceUnavailable(COUNTRIES_SOURCE, "unexpected response shape") from exc
    logger.info("Fetched %d countries from %s", len(countries), COUNTRIES_SOURCE)
    return countries


def fetch_exchange_rates(url: Optional[str] = None, timeout: Optional[float] = None) -> Dict[str, float]:
    """Fetch the currency code -> rate mapping quoted against the base currency."""
    payload = _get_json(url or settings.EXCHANGE_API, EXCHANGE_SOURCE, timeout)
    try:
        rates = ExchangeRatesPayload.model_validate(payload)
    except ValidationError as exc:
        logger.warning("%s payload has an unexpected shape: %s", EXCHANGE_SOURCE, exc)
        raise SourceUnavailable(EXCHANGE_SOURCE, "unexpected response shape") from exc
    logger.info("Fetched %d exchange rates (base %s)", len(rates.rates), rates.base_code or "USD")
    return rates.rates
