from typing import Optional

from nads.models import AlertGeo, AnomalyAlert, TrafficPacket

LIVE_DESCRIPTION = "Anomaly detected: {anomaly_type}"
BACKLOG_DESCRIPTION = "Suspicious activity detected from {source_ip}"


def alert_id_for(packet_id: str) -> str:
    return f"a-{packet_id}"


def project_alert(
    packet: TrafficPacket,
    description: str = LIVE_DESCRIPTION,
) -> Optional[AnomalyAlert]:
    """Derive the alert for an anomalous packet.

    Returns None for normal packets. ``description`` is a format string that
    may reference ``anomaly_type`` and ``source_ip``.
    """
    if not packet.is_anomaly:
        return None

    geo = None
    if packet.geo is not None:
        geo = AlertGeo(lat=packet.geo.lat, lng=packet.geo.lng, country=packet.geo.country)

    return AnomalyAlert(
        id=alert_id_for(packet.id),
        timestamp=packet.timestamp,
        captured_at=packet.captured_at,
        type=packet.anomaly_type,
        severity=packet.severity,
        description=description.format(
            anomaly_type=packet.anomaly_type,
            source_ip=packet.source_ip,
        ),
        affected_device=packet.dest_ip,
        geo=geo,
    )
