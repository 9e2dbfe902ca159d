import pathlib
import sys

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
from fastapi.testclient import TestClient

from core.database import Database
from core.settings import Settings
from main import create_app
from modules.tooling.models import PartInfo, ToolingInfo


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'orders.db'}",
        store_retry_backoff_s=0,
        log_level="WARNING",
    )


@pytest.fixture
def database(settings):
    db = Database(settings)
    db.create_all()
    yield db
    db.drop_all()
    db.dispose()


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_tooling(database):
    def _make(inventory_number="AUTO002", **fields):
        fields.setdefault("project_name", "Press line retrofit")
        fields.setdefault("production_unit", "Workshop 2")
        fields.setdefault("recorder", "J. Lee")
        with database.session() as session:
            tooling = ToolingInfo(inventory_number=inventory_number, part_sequence=0, **fields)
            session.add(tooling)
            session.commit()
            session.refresh(tooling)
            return tooling

    return _make


@pytest.fixture
def make_part(database):
    def _make(tooling_id, **fields):
        fields.setdefault("part_name", "Base plate")
        fields.setdefault("part_quantity", 2)
        with database.session() as session:
            part = PartInfo(tooling_id=tooling_id, **fields)
            session.add(part)
            session.commit()
            session.refresh(part)
            return part

    return _make
