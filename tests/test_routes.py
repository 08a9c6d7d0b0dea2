import json
from unittest.mock import patch

import requests

from app.core.config import Settings

GET = "app.services.breach.hibp_provider.requests.get"
POST = "app.services.counters.upstash.requests.post"

CORS = {
    "access-control-allow-origin": "*",
    "access-control-allow-methods": "GET, OPTIONS",
    "access-control-allow-headers": "Content-Type",
}


def assert_cors(resp):
    for header, value in CORS.items():
        assert resp.headers[header] == value


# =========================================================
# SCAN
# =========================================================

def test_scan_requires_email(client):
    with patch(GET) as mock_get:
        resp = client.get("/api/scan")

    assert resp.status_code == 400
    assert resp.json() == {"error": "Valid email required"}
    mock_get.assert_not_called()


def test_scan_rejects_email_without_at(client):
    with patch(GET) as mock_get:
        resp = client.get("/api/scan", params={"email": "not-an-email"})

    assert resp.status_code == 400
    mock_get.assert_not_called()


def test_scan_validates_email_before_config(client, use_settings):
    use_settings(Settings())

    resp = client.get("/api/scan", params={"email": "nope"})

    assert resp.status_code == 400


def test_scan_without_api_key(client, use_settings):
    use_settings(Settings())

    with patch(GET) as mock_get:
        resp = client.get("/api/scan", params={"email": "a@b.com"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "API key not configured"}
    mock_get.assert_not_called()


def test_scan_report_and_usage_record(client, fake_response, breach):
    records = [
        breach("Alpha", ["Passwords", "Email addresses", "Usernames", "Names"], "2021-01-01", 100),
        breach("Beta", ["Email addresses"], "2022-06-01", 50),
    ]

    with patch(GET, return_value=fake_response(200, records)), \
            patch(POST, return_value=fake_response(200, [{"result": 1}] * 5)) as mock_post:
        resp = client.get(
            "/api/scan",
            params={"email": "a@b.com"},
            headers={"x-vercel-ip-country": "GB"},
        )

    assert resp.status_code == 200
    body = resp.json()

    assert body["score"] == 760
    assert body["stats"] == {
        "breachCount": 2,
        "brokerEstimate": 19,
        "recordsFound": 150,
        "darkWebHits": 1,
        "dataValue": 680,
    }
    assert body["breaches"][0] == {
        "name": "Alpha",
        "date": "Jan 2021",
        "data": "Passwords, Email addresses, Usernames",
        "severity": "high",
        "pwnCount": 100,
        "domain": "alpha.com",
        "description": "Alpha was breached.",
        "dataClasses": ["Passwords", "Email addresses", "Usernames", "Names"],
        "isVerified": True,
        "isSensitive": False,
    }
    assert body["breaches"][1]["severity"] == "medium"
    assert body["breaches"][1]["date"] == "Jun 2022"

    commands = mock_post.call_args.kwargs["json"]
    assert ["INCR", "scans:country:GB"] in commands
    pushed = json.loads(commands[3][2])
    assert pushed["c"] == "GB"
    assert pushed["s"] == 760
    assert pushed["b"] == 2
    assert isinstance(pushed["t"], int)


def test_scan_no_breaches(client, fake_response):
    with patch(GET, return_value=fake_response(404)), \
            patch(POST, return_value=fake_response(200, [])) as mock_post:
        resp = client.get("/api/scan", params={"email": "clean@example.com"})

    assert resp.status_code == 200
    assert resp.json() == {
        "breaches": [],
        "score": 850,
        "stats": {
            "breachCount": 0,
            "brokerEstimate": 12,
            "recordsFound": 0,
            "darkWebHits": 0,
            "dataValue": 0,
        },
    }
    assert ["INCR", "scans:country:unknown"] in mock_post.call_args.kwargs["json"]


def test_scan_survives_counter_store_failure(client, fake_response):
    with patch(GET, return_value=fake_response(404)), \
            patch(POST, side_effect=requests.ConnectionError("store down")) as mock_post:
        resp = client.get("/api/scan", params={"email": "a@b.com"})

    assert resp.status_code == 200
    assert resp.json()["score"] == 850
    mock_post.assert_called_once()


def test_scan_without_store_skips_tracking(client, use_settings, fake_response):
    use_settings(Settings(hibp_api_key="test-key"))

    with patch(GET, return_value=fake_response(404)), patch(POST) as mock_post:
        resp = client.get("/api/scan", params={"email": "a@b.com"})

    assert resp.status_code == 200
    mock_post.assert_not_called()


def test_scan_rate_limited(client, fake_response):
    with patch(GET, return_value=fake_response(429)), patch(POST) as mock_post:
        resp = client.get("/api/scan", params={"email": "a@b.com"})

    assert resp.status_code == 429
    assert resp.json() == {"error": "Rate limited. Please try again in a moment."}
    mock_post.assert_not_called()


def test_scan_upstream_error(client, fake_response):
    with patch(GET, return_value=fake_response(503)):
        resp = client.get("/api/scan", params={"email": "a@b.com"})

    assert resp.status_code == 502
    assert resp.json() == {"error": "Upstream API error", "status": 503}
    assert_cors(resp)


def test_scan_transport_failure(client):
    with patch(GET, side_effect=requests.Timeout("slow")):
        resp = client.get("/api/scan", params={"email": "a@b.com"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal server error"}


def test_scan_malformed_records_are_internal_errors(client, fake_response):
    with patch(GET, return_value=fake_response(200, ["not-a-record"])):
        resp = client.get("/api/scan", params={"email": "a@b.com"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal server error"}


def test_scan_preflight(client):
    resp = client.options("/api/scan")

    assert resp.status_code == 200
    assert resp.content == b""
    assert_cors(resp)


def test_scan_rejects_other_methods(client):
    resp = client.post("/api/scan")

    assert resp.status_code == 405
    assert resp.json() == {"error": "Method not allowed"}
    assert_cors(resp)


# =========================================================
# STATS
# =========================================================

def test_stats_without_store(client, use_settings):
    use_settings(Settings(hibp_api_key="test-key"))

    with patch(POST) as mock_post:
        resp = client.get("/api/stats")

    assert resp.status_code == 500
    assert resp.json() == {"error": "Redis not configured"}
    mock_post.assert_not_called()


def test_stats_report(client, fake_response):
    recent = [
        json.dumps({"t": 1714000000000, "c": "US", "s": 795, "b": 1}),
        "{not json",
    ]
    replies = [
        {"result": "120"},
        {"result": "9"},
        {"result": None},
        {"result": "60"},
        {"result": "oops"},
        {"result": "4"},
        {"result": None},
        {"result": "2"},
        {"result": recent},
    ]

    with patch(POST, return_value=fake_response(200, replies)):
        resp = client.get("/api/stats")

    assert resp.status_code == 200
    assert resp.json() == {
        "totalScans": 120,
        "todayScans": 9,
        "yesterdayScans": 0,
        "countries": {"US": 60, "GB": 0, "CA": 4, "AU": 0, "DE": 2},
        "recentScans": [{"t": 1714000000000, "c": "US", "s": 795, "b": 1}],
    }
    assert_cors(resp)


def test_stats_fetch_failure(client):
    with patch(POST, side_effect=requests.ConnectionError("down")):
        resp = client.get("/api/stats")

    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to fetch stats"}


def test_stats_preflight(client):
    resp = client.options("/api/stats")

    assert resp.status_code == 200
    assert resp.content == b""
    assert_cors(resp)


def test_stats_rejects_other_methods(client):
    resp = client.delete("/api/stats")

    assert resp.status_code == 405
    assert resp.json() == {"error": "Method not allowed"}
    assert_cors(resp)


# =========================================================
# HEALTH
# =========================================================

def test_health(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    assert "x-request-id" in resp.headers
