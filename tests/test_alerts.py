#tests/test_alerts.py

from nads.alerts import BACKLOG_DESCRIPTION, project_alert


def test_normal_packet_has_no_alert(make_packet):
    assert project_alert(make_packet()) is None


def test_alert_copies_source_fields(make_packet):
    packet = make_packet(packet_id="p-42", is_anomaly=True, severity="Medium", anomaly_type="SQL Injection Attempt")
    alert = project_alert(packet)

    assert alert.id == "a-p-42"
    assert alert.affected_device == packet.dest_ip
    assert alert.type == "SQL Injection Attempt"
    assert alert.severity == "Medium"
    assert alert.timestamp == packet.timestamp
    assert alert.captured_at == packet.captured_at
    assert alert.description == "Anomaly detected: SQL Injection Attempt"
    assert alert.geo.country == packet.geo.country
    assert alert.geo.lat == packet.geo.lat
    assert not hasattr(alert.geo, "city")


def test_projection_is_deterministic(make_packet):
    packet = make_packet(is_anomaly=True)
    assert project_alert(packet) == project_alert(packet)


def test_backlog_description_names_source(make_packet):
    packet = make_packet(is_anomaly=True, source_ip="185.9.9.9")
    alert = project_alert(packet, BACKLOG_DESCRIPTION)
    assert alert.description == "Suspicious activity detected from 185.9.9.9"
