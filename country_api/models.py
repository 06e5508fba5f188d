from typing import Optional
from sqlalchemy import Integer, String, Float, BigInteger
from country_api.database import Base
from sqlalchemy.orm import Mapped, mapped_column


class Country(Base):
    """One country plus its currency-derived GDP estimate.

    ``id`` is the 1-based position of the country in the source payload of the
    refresh that wrote it, so it is not stable across refreshes.
    """
    __tablename__ = "countries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    capital: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    region: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    population: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    currency_code: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    exchange_rate: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    estimated_gdp: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    flag_url: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    last_refreshed_at: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    def __repr__(self) -> str:
        return f"<Country id={self.id} name={self.name!r} gdp={self.estimated_gdp}>"
