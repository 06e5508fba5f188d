from typing import Callable, Iterable, List, Optional

from country_api.schemas import CountryOut

VALID_SORTS = {"gdp_desc", "gdp_asc"}

Estimator = Callable[[int, Optional[str], Optional[float]], float]


def normalize_sort(sort: Optional[str]) -> Optional[str]:
    """Unknown or empty sort values mean "keep storage order"."""
    value = (sort or "").strip().lower()
    return value if value in VALID_SORTS else None


def recompute_gdp(items: Iterable[CountryOut], estimator: Estimator) -> List[CountryOut]:
    return [
        item.model_copy(
            update={"estimated_gdp": estimator(item.population, item.currency_code, item.exchange_rate)}
        )
        for item in items
    ]


def filter_countries(
    items: Iterable[CountryOut],
    region: Optional[str] = None,
    currency: Optional[str] = None,
) -> List[CountryOut]:
    region = (region or "").lower()
    currency = (currency or "").upper()
    return [
        item
        for item in items
        if (not region or (item.region or "").lower() == region)
        and (not currency or (item.currency_code or "").upper() == currency)
    ]


def sort_countries(items: Iterable[CountryOut], sort: Optional[str]) -> List[CountryOut]:
    items = list(items)
    if sort == "gdp_desc":
        return sorted(items, key=lambda c: c.estimated_gdp or 0, reverse=True)
    if sort == "gdp_asc":
        return sorted(items, key=lambda c: c.estimated_gdp or 0)
    return items


def apply_query(
    items: Iterable[CountryOut],
    region: Optional[str] = None,
    currency: Optional[str] = None,
    sort: Optional[str] = None,
    estimator: Optional[Estimator] = None,
) -> List[CountryOut]:
    if estimator is not None:
        items = recompute_gdp(items, estimator)
    return sort_countries(filter_countries(items, region, currency), normalize_sort(sort))
