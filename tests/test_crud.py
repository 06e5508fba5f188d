import threading

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from country_api import crud, models
from country_api.database import Base
from country_api.exceptions import NotFound, StorageError
from conftest import make_country


def snapshot(countries):
    return [
        (c.id, c.name, c.capital, c.region, c.population, c.currency_code,
         c.exchange_rate, c.estimated_gdp, c.flag_url, c.last_refreshed_at)
        for c in countries
    ]


def test_replace_all_then_find_all_returns_same_rows_in_order(db):
    rows = [
        make_country(1, "Zulu", 10.0, "Africa", "ZZZ", 1.0),
        make_country(2, "Alpha", 0.0),
        make_country(3, "Mike", 5.5, "Europe", "EUR", 0.9),
    ]
    expected = snapshot(rows)

    assert crud.replace_all(db, rows) == 3
    stored = crud.find_all(db)

    assert snapshot(stored) == expected
    assert crud.count_all(db) == 3


def test_replace_all_discards_previous_set(db):
    crud.replace_all(db, [make_country(i, f"Old {i}") for i in range(1, 6)])
    crud.find_all(db)  # old rows loaded into the session's identity map

    crud.replace_all(db, [make_country(1, "New")])

    assert [c.name for c in crud.find_all(db)] == ["New"]
    assert crud.count_all(db) == 1


def test_replace_all_with_empty_set(db):
    crud.replace_all(db, [make_country(1, "Old")])
    assert crud.replace_all(db, []) == 0
    assert crud.find_all(db) == []


def test_failed_replace_keeps_previous_set(db):
    crud.replace_all(db, [make_country(1, "Keep"), make_country(2, "Me")])

    duplicate_ids = [make_country(1, "X"), make_country(1, "Y")]
    with pytest.raises(StorageError):
        crud.replace_all(db, duplicate_ids)

    assert [c.name for c in crud.find_all(db)] == ["Keep", "Me"]


def test_delete_by_name_is_case_and_whitespace_insensitive(db):
    crud.replace_all(db, [make_country(1, " france "), make_country(2, "Spain")])

    deleted = crud.delete_by_name(db, "France")

    assert deleted.name == " france "
    assert [c.name for c in crud.find_all(db)] == ["Spain"]


def test_delete_by_name_removes_only_first_match(db):
    crud.replace_all(db, [make_country(1, "Twin"), make_country(2, "twin")])
    crud.delete_by_name(db, "TWIN")
    remaining = crud.find_all(db)
    assert [(c.id, c.name) for c in remaining] == [(2, "twin")]


def test_delete_missing_name_raises_not_found(db):
    crud.replace_all(db, [make_country(1, "Spain")])
    with pytest.raises(NotFound) as excinfo:
        crud.delete_by_name(db, "Atlantis")
    assert excinfo.value.searched_for == "Atlantis"
    assert crud.count_all(db) == 1


def test_find_by_name_handles_non_ascii(db):
    crud.replace_all(db, [make_country(1, "Åland Islands")])
    found = crud.find_by_name(db, "  åland islands")
    assert isinstance(found, models.Country)
    assert found.id == 1


def test_refresh_marker_roundtrip():
    assert crud.get_last_refresh() is None
    crud.set_last_refresh("2025-01-01T00:00:00Z")
    assert crud.get_last_refresh() == "2025-01-01T00:00:00Z"
    crud.reset_last_refresh()
    assert crud.get_last_refresh() is None


def test_readers_never_see_a_partial_replace(tmp_path):
    # File database: each thread gets its own connection
    engine = create_engine(
        f"sqlite:///{tmp_path / 'countries.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    small, large = 3, 7
    with SessionLocal() as s:
        crud.replace_all(s, [make_country(i, f"S{i}") for i in range(1, small + 1)])

    done = threading.Event()
    errors = []
    seen = []

    def writer():
        try:
            for round_no in range(40):
                size = large if round_no % 2 == 0 else small
                with SessionLocal() as s:
                    crud.replace_all(s, [make_country(i, f"R{round_no}-{i}") for i in range(1, size + 1)])
        except Exception as exc:
            errors.append(exc)
        finally:
            done.set()

    def reader():
        try:
            while not done.is_set():
                with SessionLocal() as s:
                    seen.append(len(crud.find_all(s)))
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=writer), threading.Thread(target=reader)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    engine.dispose()

    assert errors == []
    assert seen
    assert set(seen) <= {small, large}
