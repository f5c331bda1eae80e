from pydantic import BaseModel, Field, model_validator
from typing import List, Literal, Optional
from datetime import datetime

Protocol = Literal["TCP", "UDP", "ICMP"]
Severity = Literal["Low", "Medium", "High"]
SortOrder = Literal["desc", "asc"]
WellKnownPort = Literal[80, 443, 22, 53, 3306, 5432]


class GeoLocation(BaseModel):
    """Origin of an anomalous packet (threat map)"""
    lat: float
    lng: float
    country: str
    city: str


class AlertGeo(BaseModel):
    """Alert location, no city"""
    lat: float
    lng: float
    country: str


class TrafficPacket(BaseModel):
    """A single simulated packet"""
    id: str
    timestamp: str  # HH:MM:SS, display only
    captured_at: datetime  # sort key
    source_ip: str
    dest_ip: str
    protocol: Protocol
    source_port: int = Field(ge=0, le=65535)
    dest_port: WellKnownPort
    byte_count: float = Field(gt=0)
    is_anomaly: bool
    anomaly_type: Optional[str] = None
    severity: Optional[Severity] = None
    geo: Optional[GeoLocation] = None

    @model_validator(mode="after")
    def _check_anomaly_fields(self):
        # anomaly_type / severity / geo exist together, only on anomalies
        present = [self.anomaly_type is not None, self.severity is not None, self.geo is not None]
        if self.is_anomaly and not all(present):
            raise ValueError("anomalous packet needs anomaly_type, severity and geo")
        if not self.is_anomaly and any(present):
            raise ValueError("normal packet must not carry anomaly_type, severity or geo")
        return self


class AnomalyAlert(BaseModel):
    """Alert raised for an anomalous packet"""
    id: str
    timestamp: str
    captured_at: datetime
    type: str
    severity: Severity
    description: str
    affected_device: str
    geo: Optional[AlertGeo] = None


class SystemStats(BaseModel):
    """Running counters plus seeded display metrics"""
    total_packets: int
    anomalies_detected: int
    avg_packet_size: float
    system_health: float
    precision: float
    recall: float
    f1_score: float


class TrafficPoint(BaseModel):
    """One point of the traffic volume chart"""
    time: str
    size: float
    anomaly_size: float


class DistributionSlice(BaseModel):
    name: Literal["Normal", "Anomaly"]
    value: int


class FilterOptions(BaseModel):
    """Choices for the threat map filter bar, 'All' first"""
    severities: List[str]
    types: List[str]
    countries: List[str]


class ThreatMarker(BaseModel):
    alert_id: str
    lat: float
    lng: float
    color: str
    radius: int
    pulse: bool


class ThreatMapView(BaseModel):
    alerts: List[AnomalyAlert]
    markers: List[ThreatMarker]
    options: FilterOptions
    count: int
    top_vector: str
    filters_active: bool
    order: SortOrder


class ReportLine(BaseModel):
    kind: Literal["heading", "bullet", "paragraph"]
    text: str


class OverviewSnapshot(BaseModel):
    """Everything the dashboard overview needs, from one tick"""
    stats: SystemStats
    series: List[TrafficPoint]
    distribution: List[DistributionSlice]
    recent_alerts: List[AnomalyAlert]
    is_capturing: bool


class CaptureStatus(BaseModel):
    is_capturing: bool
    tick_interval: float
    ticks: int


class AnalysisReport(BaseModel):
    report: str
    lines: List[ReportLine]
    is_analyzing: bool
    generated_at: Optional[datetime] = None
