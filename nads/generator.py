"""Synthetic traffic source for the capture engine.

There is no real capture or classifier behind this: every packet is drawn
from fixed ranges and marked anomalous with a flat probability.
"""

import random
from datetime import datetime
from typing import Callable, Optional

from nads.models import GeoLocation, TrafficPacket

PROTOCOLS = ["TCP", "UDP", "ICMP"]
SEVERITIES = ["Low", "Medium", "High"]
ANOMALY_TYPES = [
    "DDoS Attack",
    "Port Scanning",
    "Data Exfiltration",
    "Unauthorized Access",
    "SQL Injection Attempt",
]
DEST_PORTS = [80, 443, 22, 53, 3306, 5432]

# Mock origins for the threat map
MOCK_LOCATIONS = [
    GeoLocation(city="Dar es Salaam", country="Tanzania", lat=-6.7924, lng=39.2083),
    GeoLocation(city="Nairobi", country="Kenya", lat=-1.2921, lng=36.8219),
    GeoLocation(city="Dodoma", country="Tanzania", lat=-6.1722, lng=35.7481),
    GeoLocation(city="Frankfurt", country="Germany", lat=50.1109, lng=8.6821),
    GeoLocation(city="New York", country="USA", lat=40.7128, lng=-74.0060),
    GeoLocation(city="Shenzhen", country="China", lat=22.5431, lng=114.0579),
    GeoLocation(city="London", country="UK", lat=51.5074, lng=-0.1278),
    GeoLocation(city="Sao Paulo", country="Brazil", lat=-23.5505, lng=-46.6333),
    GeoLocation(city="Sydney", country="Australia", lat=-33.8688, lng=151.2093),
    GeoLocation(city="Moscow", country="Russia", lat=55.7558, lng=37.6173),
]

NORMAL_BYTES = (64.0, 1564.0)
ANOMALY_BYTES = (5000.0, 15000.0)


class PacketGenerator:
    """Produces one TrafficPacket per call from an injected random source"""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        anomaly_rate: float = 0.05,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.rng = rng or random.Random()
        self.anomaly_rate = anomaly_rate
        self.clock = clock

    def _octet(self) -> int:
        return self.rng.randint(0, 254)

    def _source_ip(self, is_anomaly: bool) -> str:
        # external "attacker" range vs. the internal LAN
        if is_anomaly:
            return f"185.{self._octet()}.{self._octet()}.{self._octet()}"
        return f"192.168.1.{self._octet()}"

    def generate(self, packet_id: str, anomalous: Optional[bool] = None) -> TrafficPacket:
        """Build a packet; ``anomalous`` forces the classification draw."""
        if anomalous is None:
            is_anomaly = self.rng.random() > 1.0 - self.anomaly_rate
        else:
            is_anomaly = anomalous

        captured_at = self.clock()
        low, high = ANOMALY_BYTES if is_anomaly else NORMAL_BYTES

        packet = TrafficPacket(
            id=packet_id,
            timestamp=captured_at.strftime("%H:%M:%S"),
            captured_at=captured_at,
            source_ip=self._source_ip(is_anomaly),
            dest_ip=f"10.0.0.{self.rng.randint(0, 49)}",
            protocol=self.rng.choice(PROTOCOLS),
            source_port=self.rng.randint(0, 65535),
            dest_port=self.rng.choice(DEST_PORTS),
            byte_count=self.rng.uniform(low, high),
            is_anomaly=is_anomaly,
            anomaly_type=self.rng.choice(ANOMALY_TYPES) if is_anomaly else None,
            severity=self.rng.choice(SEVERITIES) if is_anomaly else None,
            geo=self.rng.choice(MOCK_LOCATIONS).model_copy() if is_anomaly else None,
        )
        return packet
