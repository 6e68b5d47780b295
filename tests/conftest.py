import os

import pytest

from squishy_mailer.db import schemas
from squishy_mailer.db.database import ConnectionManager
from squishy_mailer.db.schema import provision_schema
from squishy_mailer.db.store import Store

TEST_KEY_HEX = "000102030405060708090a0b0c0d0e0f"

_MAILER_ENV = [
    'MAILER_DB_FILEPATH',
    'MAILER_ENCRYPTION_KEY',
    'MAILER_DB_READ_POOL_SIZE',
    'MAILER_DB_READ_MAX_OVERFLOW',
    'MAILER_DB_IDLE_TIMEOUT',
    'MAILER_DB_BUSY_TIMEOUT_MS',
    'MAILER_DB_POOL_TIMEOUT',
]


@pytest.fixture(autouse=True)
def _clean_mailer_env(monkeypatch):
    """Keep a developer's shell settings out of the tests."""
    for var in _MAILER_ENV:
        monkeypatch.delenv(var, raising=False)
    yield


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "mailer.db"


@pytest.fixture
def connections(db_path):
    mgr = ConnectionManager(db_path, read_pool_size=4, read_max_overflow=4, pool_timeout=2)
    provision_schema(mgr)
    yield mgr
    mgr.close()


@pytest.fixture
def store(connections):
    return Store(connections)


@pytest.fixture
def project(store):
    return store.insert_project("p1", "Project One", "first project")


@pytest.fixture
def group(store, project):
    return store.insert_group(schemas.GroupCreate(group_id="g1", project_id="p1", name="Group One"))


@pytest.fixture
def hex_key():
    return TEST_KEY_HEX


def pytest_collection_modifyitems(config, items):
    for item in items:
        if os.sep + "integration" + os.sep in str(item.path):
            item.add_marker(pytest.mark.integration)
