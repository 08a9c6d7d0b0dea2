from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings, get_settings
from app.main import app


def fake_response(status_code=200, payload=None, json_error=False):
    resp = MagicMock()
    resp.status_code = status_code
    if json_error:
        resp.json.side_effect = ValueError("not json")
    else:
        resp.json.return_value = payload
    resp.raise_for_status.return_value = None
    return resp


def breach(title, data_classes, breach_date="2020-01-01", pwn_count=100, **extra):
    record = {
        "Title": title,
        "Domain": f"{title.lower()}.com",
        "BreachDate": breach_date,
        "DataClasses": data_classes,
        "PwnCount": pwn_count,
        "IsVerified": True,
        "IsSensitive": False,
        "Description": f"{title} was breached.",
    }
    record.update(extra)
    return record


@pytest.fixture
def settings():
    return Settings(
        hibp_api_key="test-key",
        store_url="https://store.example.com",
        store_token="store-token",
    )


@pytest.fixture
def client(settings):
    app.dependency_overrides[get_settings] = lambda: settings
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def use_settings(client):
    """Swap the settings a running client sees."""
    def _use(new_settings):
        app.dependency_overrides[get_settings] = lambda: new_settings
    return _use


@pytest.fixture(name="fake_response")
def fake_response_fixture():
    return fake_response


@pytest.fixture(name="breach")
def breach_fixture():
    return breach
