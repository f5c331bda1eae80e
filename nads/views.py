"""
Read-side aggregators for the dashboard.

Every function here is pure: it takes a snapshot of the buffers / stats and
returns the shape a chart, table or map consumes. Nothing is cached, so
filter options always come from the alerts that exist right now.
"""

from typing import Iterable, List, Sequence

from nads.generator import SEVERITIES
from nads.models import (
    AnomalyAlert,
    DistributionSlice,
    FilterOptions,
    ReportLine,
    SystemStats,
    ThreatMapView,
    ThreatMarker,
    TrafficPacket,
    TrafficPoint,
)

ALL = "All"
NO_ALERTS = "No Alerts"

SEVERITY_COLORS = {
    "High": "#ef4444",
    "Medium": "#f59e0b",
    "Low": "#3b82f6",
}


def build_traffic_series(packets: Sequence[TrafficPacket]) -> List[TrafficPoint]:
    """Chart series, oldest first (buffer is newest first)."""
    return [
        TrafficPoint(
            time=p.timestamp,
            size=p.byte_count,
            anomaly_size=p.byte_count if p.is_anomaly else 0.0,
        )
        for p in reversed(packets)
    ]


def split_distribution(stats: SystemStats) -> List[DistributionSlice]:
    """Normal vs. anomaly share of all packets seen."""
    if stats.anomalies_detected < 0 or stats.anomalies_detected > stats.total_packets:
        raise ValueError(
            f"inconsistent counters: {stats.anomalies_detected} anomalies "
            f"out of {stats.total_packets} packets"
        )
    return [
        DistributionSlice(name="Normal", value=stats.total_packets - stats.anomalies_detected),
        DistributionSlice(name="Anomaly", value=stats.anomalies_detected),
    ]


def recent_alerts(alerts: Sequence[AnomalyAlert], limit: int = 5) -> List[AnomalyAlert]:
    return list(alerts[:limit])


def _unique(values: Iterable[str]) -> List[str]:
    seen = {}
    for value in values:
        seen.setdefault(value, None)
    return list(seen)


def filter_options(alerts: Sequence[AnomalyAlert]) -> FilterOptions:
    return FilterOptions(
        severities=[ALL] + SEVERITIES,
        types=[ALL] + _unique(a.type for a in alerts),
        countries=[ALL] + _unique(a.geo.country for a in alerts if a.geo is not None),
    )


def _matches(alert: AnomalyAlert, severity: str, anomaly_type: str, country: str) -> bool:
    if severity != ALL and alert.severity != severity:
        return False
    if anomaly_type != ALL and alert.type != anomaly_type:
        return False
    if country != ALL and (alert.geo is None or alert.geo.country != country):
        return False
    return True


def _marker(alert: AnomalyAlert) -> ThreatMarker:
    return ThreatMarker(
        alert_id=alert.id,
        lat=alert.geo.lat,
        lng=alert.geo.lng,
        color=SEVERITY_COLORS[alert.severity],
        radius=8 if alert.severity == "High" else 6,
        pulse=alert.severity == "High",
    )


def filter_threat_map(
    alerts: Sequence[AnomalyAlert],
    severity: str = ALL,
    anomaly_type: str = ALL,
    country: str = ALL,
    order: str = "desc",
) -> ThreatMapView:
    """Filter alerts for the threat map and sort them by capture time.

    All active filters must match. Ties on capture time keep buffer order,
    for both directions.
    """
    if order not in ("desc", "asc"):
        raise ValueError(f"order must be 'desc' or 'asc', got {order!r}")

    matched = [a for a in alerts if _matches(a, severity, anomaly_type, country)]
    # sorted() is stable, reverse=True included
    matched = sorted(matched, key=lambda a: a.captured_at, reverse=order == "desc")

    return ThreatMapView(
        alerts=matched,
        markers=[_marker(a) for a in matched if a.geo is not None],
        options=filter_options(alerts),
        count=len(matched),
        top_vector=matched[0].type if matched else NO_ALERTS,
        filters_active=any(value != ALL for value in (severity, anomaly_type, country)),
        order=order,
    )


def parse_report(text: str) -> List[ReportLine]:
    """Split analysis text into heading / bullet / paragraph lines."""
    lines = []
    for raw in text.splitlines():
        if not raw.strip():
            continue
        if raw.startswith("#"):
            lines.append(ReportLine(kind="heading", text=raw.replace("#", "").strip()))
        elif raw.startswith("*") or raw.startswith("-"):
            lines.append(ReportLine(kind="bullet", text=raw[1:].strip()))
        else:
            lines.append(ReportLine(kind="paragraph", text=raw))
    return lines
