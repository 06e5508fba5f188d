import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.orm import Session

from country_api import crud
from country_api.config import settings
from country_api.exceptions import NotFound, RenderError
from country_api.schemas import CountryOut
from country_api.services import derivation, query, sources
from country_api.services.image_generator import generate_summary_image

logger = logging.getLogger("country_api")

EMPTY_STORE_MESSAGE = "No countries in database. Please call POST /countries/refresh first"


@dataclass
class RefreshOutcome:
    total_countries: int
    refreshed_at: str
    image_error: Optional[str] = None


def refresh_countries(db: Session, estimator: Optional[derivation.GdpEstimator] = None) -> RefreshOutcome:
    """Fetch both sources, merge, replace the stored set and redraw the summary.

    ``SourceUnavailable`` and ``StorageError`` abort with the stored data and
    the refresh marker unchanged. A failed image is logged and reported on
    the outcome only.
    """
    rates = sources.fetch_exchange_rates()
    raw_countries = sources.fetch_countries()

    result = derivation.merge_countries(raw_countries, rates, estimator=estimator)
    total = crud.replace_all(db, result.countries)
    crud.set_last_refresh(result.refreshed_at)

    outcome = RefreshOutcome(total_countries=total, refreshed_at=result.refreshed_at)
    try:
        generate_summary_image(result.countries, result.refreshed_at)
    except RenderError as exc:
        logger.warning("Summary image not generated; refresh kept: %s", exc)
        outcome.image_error = str(exc)
    except Exception as exc:
        logger.exception("Summary image rendering crashed; refresh kept")
        outcome.image_error = f"{type(exc).__name__}: {exc}"
    return outcome


def _read_estimator(estimator=None):
    if not settings.RECOMPUTE_GDP_ON_READ:
        return None
    return estimator or derivation.default_estimator


def list_countries(
    db: Session,
    region: Optional[str] = None,
    currency: Optional[str] = None,
    sort: Optional[str] = None,
    estimator: Optional[derivation.GdpEstimator] = None,
) -> List[CountryOut]:
    items = [CountryOut.model_validate(c) for c in crud.find_all(db)]
    return query.apply_query(items, region, currency, sort, estimator=_read_estimator(estimator))


def get_country_by_name(db: Session, name: str, estimator: Optional[derivation.GdpEstimator] = None) -> CountryOut:
    if crud.count_all(db) == 0:
        raise NotFound(EMPTY_STORE_MESSAGE)
    country = crud.find_by_name(db, name)
    if country is None:
        raise NotFound("Country not found", searched_for=name)
    item = CountryOut.model_validate(country)
    read_estimator = _read_estimator(estimator)
    if read_estimator is not None:
        item = query.recompute_gdp([item], read_estimator)[0]
    return item


def delete_country_by_name(db: Session, name: str) -> dict:
    crud.delete_by_name(db, name)
    logger.info("Deleted country %r", name)
    return {"message": f"Country '{name}' deleted successfully"}


def get_status(db: Session) -> dict:
    return {
        "total_countries": crud.count_all(db),
        "last_refreshed_at": crud.get_last_refresh(),
    }
