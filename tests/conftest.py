#tests/conftest.py

from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from nads.config import MonitorSettings, StatsSeed
from nads.generator import MOCK_LOCATIONS
from nads.models import AlertGeo, AnomalyAlert, TrafficPacket

BASE_TIME = datetime(2026, 1, 1, 12, 0, 0)


class StepClock:
    """Clock that moves forward one second per call"""

    def __init__(self, start: datetime = BASE_TIME):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current


class FakeAnalyst:
    """Stands in for ThreatAnalyst; records what it was asked"""

    def __init__(self, text: str = "# Summary\n- Block 185.0.0.0/8\nPosture is stable."):
        self.text = text
        self.calls = []

    async def analyze_threat(self, alerts, recent_traffic):
        self.calls.append((list(alerts), list(recent_traffic)))
        return self.text

    async def explain_anomaly(self, anomaly_type):
        return f"{anomaly_type} explained"


class FakeModels:
    """Mimics ``client.aio.models`` of google-genai"""

    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    async def generate_content(self, model, contents, config=None):
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.text)


def fake_genai_client(models: FakeModels):
    return SimpleNamespace(aio=SimpleNamespace(models=models))


def zero_stats() -> StatsSeed:
    return StatsSeed(total_packets=0, anomalies_detected=0)


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def settings():
    return MonitorSettings(
        backlog_size=0,
        capture_on_startup=False,
        random_seed=1234,
        initial_stats=zero_stats(),
        ws_push_interval=0.05,
    )


@pytest.fixture
def make_packet():
    def _make(
        packet_id="p-1",
        captured_at=BASE_TIME,
        is_anomaly=False,
        anomaly_type="Port Scanning",
        severity="High",
        geo=MOCK_LOCATIONS[0],
        source_ip=None,
        dest_ip="10.0.0.5",
        byte_count=None,
    ) -> TrafficPacket:
        if source_ip is None:
            source_ip = "185.1.2.3" if is_anomaly else "192.168.1.10"
        if byte_count is None:
            byte_count = 9000.0 if is_anomaly else 512.0
        return TrafficPacket(
            id=packet_id,
            timestamp=captured_at.strftime("%H:%M:%S"),
            captured_at=captured_at,
            source_ip=source_ip,
            dest_ip=dest_ip,
            protocol="TCP",
            source_port=40000,
            dest_port=22,
            byte_count=byte_count,
            is_anomaly=is_anomaly,
            anomaly_type=anomaly_type if is_anomaly else None,
            severity=severity if is_anomaly else None,
            geo=geo if is_anomaly else None,
        )

    return _make


@pytest.fixture
def make_alert():
    def _make(
        alert_id="a-1",
        captured_at=BASE_TIME,
        alert_type="DDoS Attack",
        severity="High",
        country="Kenya",
    ) -> AnomalyAlert:
        geo = None
        if country is not None:
            geo = AlertGeo(lat=-1.2921, lng=36.8219, country=country)
        return AnomalyAlert(
            id=alert_id,
            timestamp=captured_at.strftime("%H:%M:%S"),
            captured_at=captured_at,
            type=alert_type,
            severity=severity,
            description=f"Anomaly detected: {alert_type}",
            affected_device="10.0.0.1",
            geo=geo,
        )

    return _make


@pytest.fixture
def fake_analyst():
    return FakeAnalyst()


@pytest.fixture
def genai_stub():
    """Factory: genai_stub(text=..., error=...) -> (models, client)"""

    def _make(text=None, error=None):
        models = FakeModels(text=text, error=error)
        return models, fake_genai_client(models)

    return _make
