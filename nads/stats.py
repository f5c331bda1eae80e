from typing import Optional

from nads.config import StatsSeed
from nads.models import SystemStats, TrafficPacket


class StatsAccumulator:
    """Process-lifetime packet counters.

    Only total_packets and anomalies_detected move. The quality metrics
    (precision, recall, f1, health, avg size) stay at their seeded values.
    """

    def __init__(self, seed: Optional[StatsSeed] = None):
        seed = seed or StatsSeed()
        self._stats = SystemStats(**seed.model_dump())

    def on_packet(self, packet: TrafficPacket) -> None:
        self._stats.total_packets += 1
        if packet.is_anomaly:
            self._stats.anomalies_detected += 1

    def snapshot(self) -> SystemStats:
        return self._stats.model_copy()
