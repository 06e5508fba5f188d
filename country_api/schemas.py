from pydantic import BaseModel, Field, field_validator, model_serializer
from typing import Any, Dict, List, Optional


# -------------------------------
# External source payloads
# -------------------------------
class RawCurrency(BaseModel):
    code: Optional[str] = None
    name: Optional[str] = None
    symbol: Optional[str] = None


class RawCountry(BaseModel):
    """One record of the restcountries v2 payload; unknown keys are ignored."""
    name: str
    capital: Optional[str] = None
    region: Optional[str] = None
    population: int = Field(0, ge=0)
    flag: Optional[str] = None
    currencies: List[RawCurrency] = Field(default_factory=list)

    @field_validator("currencies", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return value or []

    @field_validator("population", mode="before")
    @classmethod
    def _null_population(cls, value):
        return 0 if value is None else value


class ExchangeRatesPayload(BaseModel):
    base_code: Optional[str] = None
    rates: Dict[str, float]


# -------------------------------
# API output
# -------------------------------
# Dropped from the JSON body when empty or zero
OMIT_WHEN_EMPTY = ("currency_code", "exchange_rate", "estimated_gdp")


class CountryBase(BaseModel):
    name: str = Field(..., max_length=100)
    capital: Optional[str] = Field(None, max_length=100)
    region: Optional[str] = Field(None, max_length=50)
    population: int = Field(0, ge=0)
    currency_code: Optional[str] = Field(None, max_length=10)
    exchange_rate: Optional[float] = Field(None, gt=0)
    estimated_gdp: float = Field(0.0, ge=0)
    flag_url: Optional[str] = Field(None, max_length=255)
    last_refreshed_at: Optional[str] = Field(None)

    model_config = {"from_attributes": True}


class CountryOut(CountryBase):
    id: int

    @model_serializer(mode="wrap")
    def _omit_empty(self, handler) -> Dict[str, Any]:
        data = handler(self)
        for key in OMIT_WHEN_EMPTY:
            if not data.get(key):
                data.pop(key, None)
        return data


class StatusOut(BaseModel):
    total_countries: int
    last_refreshed_at: Optional[str] = None


class RefreshOut(BaseModel):
    message: str
    total_countries: int
    last_refreshed_at: str
