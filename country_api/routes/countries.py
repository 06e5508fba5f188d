from fastapi import APIRouter, Depends, HTTPException, Query, Path
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session
from typing import Optional, List

from country_api.config import settings
from country_api.database import get_db
from country_api.limiter import rate_limit
from country_api import schemas
from country_api.services import country_service

router = APIRouter()


def _require_name(name: str) -> str:
    if not name.strip():
        raise HTTPException(status_code=400, detail="Country name is required")
    return name


@router.post(
    "/refresh",
    response_model=schemas.RefreshOut,
    summary="Refresh country, currency, and exchange data",
    description=(
        "Fetches countries and USD exchange rates, recomputes estimated GDP and replaces "
        "every stored country. Also regenerates the summary image (best effort)."
    ),
)
def refresh_countries(
    db: Session = Depends(get_db),
    _: None = rate_limit(settings.RATE_LIMIT_REFRESH_TIMES, settings.RATE_LIMIT_REFRESH_SECONDS),
):
    outcome = country_service.refresh_countries(db)
    return {
        "message": "Country data refreshed successfully",
        "total_countries": outcome.total_countries,
        "last_refreshed_at": outcome.refreshed_at,
    }


@router.get(
    "",
    response_model=List[schemas.CountryOut],
    summary="List countries",
    description=(
        "Returns stored countries with optional filtering and sorting.\n\n"
        "Filters:\n"
        "- region: case-insensitive exact region match (e.g., 'Europe')\n"
        "- currency: currency code, case-insensitive (e.g., 'USD', 'NGN')\n\n"
        "Sorting (sort): gdp_desc|gdp_asc; any other value keeps storage order."
    ),
    response_description="List of countries",
)
def get_all(
    region: Optional[str] = Query(
        default=None,
        description="Filter by region (case-insensitive exact match)",
        examples=["Europe"],
    ),
    currency: Optional[str] = Query(
        default=None,
        description="Filter by currency code (ISO 4217, case-insensitive)",
        examples=["USD"],
    ),
    sort: Optional[str] = Query(
        default=None,
        description="Sort by estimated GDP: gdp_desc or gdp_asc",
        examples=["gdp_desc"],
    ),
    db: Session = Depends(get_db),
    _: None = rate_limit(settings.RATE_LIMIT_DEFAULT_TIMES, settings.RATE_LIMIT_DEFAULT_SECONDS),
):
    return country_service.list_countries(db, region, currency, sort)


@router.get(
    "/image",
    summary="Get generated summary image",
    description="Returns the PNG summary (total countries, top 5 by estimated GDP, last refresh time).",
)
def get_image(
    _: None = rate_limit(settings.RATE_LIMIT_IMAGE_TIMES, settings.RATE_LIMIT_IMAGE_SECONDS),
):
    img_path = settings.summary_image_path
    if not img_path.exists():
        raise HTTPException(status_code=404, detail="Summary image not found")
    return FileResponse(str(img_path), media_type="image/png")


@router.get(
    "/{name}",
    response_model=schemas.CountryOut,
    summary="Get country by name",
    description="Case-insensitive, whitespace-trimmed exact country name match.",
)
def get_one(
    name: str = Path(..., description="Country name", examples=["Nigeria"]),
    db: Session = Depends(get_db),
    _: None = rate_limit(settings.RATE_LIMIT_DEFAULT_TIMES, settings.RATE_LIMIT_DEFAULT_SECONDS),
):
    return country_service.get_country_by_name(db, _require_name(name))


@router.delete(
    "/{name}",
    summary="Delete a country by name",
    description="Deletes the first country matching the name. The next refresh restores it.",
)
def delete_country(
    name: str = Path(..., description="Country name", examples=["Nigeria"]),
    db: Session = Depends(get_db),
    _: None = rate_limit(settings.RATE_LIMIT_DEFAULT_TIMES, settings.RATE_LIMIT_DEFAULT_SECONDS),
):
    return country_service.delete_country_by_name(db, _require_name(name))
