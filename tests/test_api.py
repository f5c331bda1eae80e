#tests/test_api.py

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from nads.main import create_app
from nads.traffic_monitor import TrafficMonitor
from conftest import BASE_TIME


@pytest.fixture
def monitor(settings, fake_analyst):
    return TrafficMonitor(settings, analyst=fake_analyst)


@pytest.fixture
def client(monitor):
    with TestClient(create_app(monitor)) as c:
        yield c


def _load_alerts(monitor, make_packet):
    monitor.ingest(make_packet("p-1", BASE_TIME, is_anomaly=True, anomaly_type="DDoS Attack", severity="Low"))
    monitor.ingest(make_packet("p-2", BASE_TIME + timedelta(seconds=2)))
    monitor.ingest(make_packet("p-3", BASE_TIME + timedelta(seconds=4), is_anomaly=True, anomaly_type="Port Scanning", severity="High"))


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "running"
    health = client.get("/api/health").json()
    assert health["status"] == "healthy"
    assert health["capture_running"] is False
    assert health["total_packets"] == 0


def test_stats_traffic_alerts(client, monitor, make_packet):
    _load_alerts(monitor, make_packet)

    stats = client.get("/api/stats").json()
    assert stats["total_packets"] == 3
    assert stats["anomalies_detected"] == 2

    traffic = client.get("/api/traffic").json()
    assert [p["id"] for p in traffic] == ["p-3", "p-2", "p-1"]

    alerts = client.get("/api/alerts").json()
    assert [a["id"] for a in alerts] == ["a-p-3", "a-p-1"]
    assert [a["id"] for a in client.get("/api/alerts", params={"limit": 1}).json()] == ["a-p-3"]


def test_overview(client, monitor, make_packet):
    _load_alerts(monitor, make_packet)
    overview = client.get("/api/overview").json()
    assert [pt["size"] for pt in overview["series"]] == [9000.0, 512.0, 9000.0]
    assert overview["distribution"] == [
        {"name": "Normal", "value": 1},
        {"name": "Anomaly", "value": 2},
    ]
    assert overview["recent_alerts"][0]["type"] == "Port Scanning"


def test_threat_map_filters(client, monitor, make_packet):
    _load_alerts(monitor, make_packet)

    view = client.get("/api/threat-map").json()
    assert [a["id"] for a in view["alerts"]] == ["a-p-3", "a-p-1"]
    assert view["options"]["types"] == ["All", "Port Scanning", "DDoS Attack"]

    view = client.get("/api/threat-map", params={"severity": "Low", "order": "asc"}).json()
    assert [a["id"] for a in view["alerts"]] == ["a-p-1"]
    assert view["filters_active"] is True

    view = client.get("/api/threat-map", params={"type": "Port Scanning", "country": "Mars"}).json()
    assert view["alerts"] == []
    assert view["top_vector"] == "No Alerts"


@pytest.mark.parametrize("params", [{"order": "sideways"}, {"severity": "Critical"}])
def test_threat_map_rejects_bad_query(client, params):
    assert client.get("/api/threat-map", params=params).status_code == 422


def test_capture_controls(client):
    assert client.get("/api/capture").json()["is_capturing"] is False
    assert client.post("/api/capture/start").json()["is_capturing"] is True
    assert client.post("/api/capture/stop").json()["is_capturing"] is False
    assert client.post("/api/capture/toggle").json()["is_capturing"] is True
    assert client.post("/api/capture/toggle").json()["is_capturing"] is False


def test_analysis_roundtrip(client, fake_analyst):
    assert client.get("/api/analysis").json()["report"] == ""

    body = client.post("/api/analysis").json()
    assert body["report"] == fake_analyst.text
    assert [line["kind"] for line in body["lines"]] == ["heading", "bullet", "paragraph"]
    assert body["is_analyzing"] is False
    assert client.get("/api/analysis").json()["report"] == fake_analyst.text


def test_analysis_busy(client, monitor):
    monitor.is_analyzing = True
    response = client.post("/api/analysis")
    assert response.status_code == 409


def test_explanation(client):
    body = client.get("/api/anomalies/Port Scanning/explanation").json()
    assert body == {"anomaly_type": "Port Scanning", "explanation": "Port Scanning explained"}


def test_websocket_pushes_overview(client, monitor, make_packet):
    _load_alerts(monitor, make_packet)
    with client.websocket_connect("/ws") as ws:
        data = ws.receive_json()
    assert data["stats"]["total_packets"] == 3
    assert len(data["series"]) == 3


def test_startup_seeds_backlog(settings, fake_analyst):
    settings.backlog_size = 20
    monitor = TrafficMonitor(settings, analyst=fake_analyst)
    with TestClient(create_app(monitor)):
        assert len(monitor.traffic) == 20
        assert monitor.get_stats().total_packets == 0
        assert monitor.is_running is False
