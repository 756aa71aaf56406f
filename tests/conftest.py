import os
import tempfile
from typing import Callable, Generator

# Point the module-level app at a throwaway directory BEFORE importing it
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="remit_rates_test_"))

import pytest
from fastapi.testclient import TestClient

from remit_rates.core.config import Settings
from remit_rates.db.dal import Database
from remit_rates.db.schema import init_db
from remit_rates.main import create_app
from remit_rates.models import RemitRate
from remit_rates.services.rate_service import RateService


@pytest.fixture()
def settings(tmp_path) -> Settings:
    s = Settings(data_dir=tmp_path, db_path=tmp_path / "test.sqlite3")
    s.init_post_load()
    return s


@pytest.fixture()
def db(settings: Settings) -> Database:
    init_db(settings.db_path)  # type: ignore[arg-type]
    return Database(settings.db_path)  # type: ignore[arg-type]


@pytest.fixture()
def rate_service(db: Database) -> RateService:
    return RateService(db)


@pytest.fixture()
def make_rate(rate_service: RateService) -> Callable[..., RemitRate]:
    def _make(provider: str = "Wise", rate: object = 280.0, currency: str = "PKR") -> RemitRate:
        return rate_service.create(provider=provider, rate=rate, currency=currency)

    return _make


@pytest.fixture()
def client(settings: Settings, db: Database) -> Generator[TestClient, None, None]:
    app = create_app(settings_override=settings)
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def backdate(db: Database) -> Callable[[int, str, str], None]:
    """Shift a timestamp column into the past, e.g. modifier="-2 days"."""

    def _backdate(rate_id: int, column: str, modifier: str) -> None:
        with db._connect() as conn:
            conn.execute(
                f"UPDATE remit_rates SET {column} = strftime('%Y-%m-%dT%H:%M:%fZ','now',?) WHERE id = ?",
                (modifier, rate_id),
            )

    return _backdate
