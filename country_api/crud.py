import logging
import threading
from typing import Iterable, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from country_api import models
from country_api.exceptions import NotFound, StorageError

logger = logging.getLogger("country_api.db")

# Serializes full replaces against full reads within this process
_table_lock = threading.RLock()


def _normalize_name(name: Optional[str]) -> str:
    return (name or "").strip().lower()


def replace_all(db: Session, countries: Iterable[models.Country]) -> int:
    """Swap the whole stored set for ``countries`` in a single transaction.

    Either every new row is visible afterwards or, on failure, the previous
    set is left untouched and ``StorageError`` is raised.
    """
    rows = list(countries)
    with _table_lock:
        try:
            db.execute(delete(models.Country))
            db.add_all(rows)
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Replacing %d countries failed; previous data kept: %s", len(rows), exc)
            raise StorageError(f"Could not save countries: {exc}") from exc
    logger.info("Stored %d countries", len(rows))
    return len(rows)


def find_all(db: Session) -> List[models.Country]:
    with _table_lock:
        try:
            return list(db.scalars(select(models.Country).order_by(models.Country.id)))
        except SQLAlchemyError as exc:
            raise StorageError(f"Could not read countries: {exc}") from exc


def count_all(db: Session) -> int:
    try:
        return db.scalar(select(func.count(models.Country.id))) or 0
    except SQLAlchemyError as exc:
        raise StorageError(f"Could not count countries: {exc}") from exc


def find_by_name(db: Session, name: str) -> Optional[models.Country]:
    # Matched in Python: SQLite's lower() only folds ASCII ("Åland Islands")
    wanted = _normalize_name(name)
    for country in find_all(db):
        if _normalize_name(country.name) == wanted:
            return country
    return None


def delete_by_name(db: Session, name: str) -> models.Country:
    country = find_by_name(db, name)
    if country is None:
        raise NotFound("Country not found", searched_for=name)
    try:
        db.delete(country)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StorageError(f"Could not delete country {name!r}: {exc}") from exc
    return country


# -----------------------------
# Process-wide refresh marker
# -----------------------------
_marker_lock = threading.Lock()
_last_refreshed_at: Optional[str] = None


def get_last_refresh() -> Optional[str]:
    with _marker_lock:
        return _last_refreshed_at


def set_last_refresh(timestamp: str) -> str:
    global _last_refreshed_at
    with _marker_lock:
        _last_refreshed_at = timestamp
    return timestamp


def reset_last_refresh() -> None:
    global _last_refreshed_at
    with _marker_lock:
        _last_refreshed_at = None
