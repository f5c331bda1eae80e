import asyncio
import contextlib
import itertools
import random
import time
from datetime import datetime
from typing import Optional

from nads.alerts import BACKLOG_DESCRIPTION, LIVE_DESCRIPTION, project_alert
from nads.analyst import ThreatAnalyst
from nads.buffers import BoundedBuffer
from nads.config import MonitorSettings
from nads.generator import PacketGenerator
from nads.logger import get_logger
from nads.stats import StatsAccumulator
from nads.models import (
    AnalysisReport,
    AnomalyAlert,
    CaptureStatus,
    OverviewSnapshot,
    SystemStats,
    ThreatMapView,
    TrafficPacket,
)
from nads import views

logger = get_logger(__name__)


class AnalysisInProgress(RuntimeError):
    """An AI analysis request is already running"""


class TrafficMonitor:
    """Owns the whole dashboard session: buffers, counters, capture switch.

    State only changes through tick/ingest, the capture controls and
    run_analysis. A tick never awaits, so on a single event loop readers
    always see a fully applied tick.
    """

    def __init__(
        self,
        settings: Optional[MonitorSettings] = None,
        generator: Optional[PacketGenerator] = None,
        analyst: Optional[ThreatAnalyst] = None,
    ):
        self.settings = settings or MonitorSettings()
        self.generator = generator or PacketGenerator(
            rng=random.Random(self.settings.random_seed),
            anomaly_rate=self.settings.anomaly_rate,
        )
        self.analyst = analyst or ThreatAnalyst(
            api_key=self.settings.gemini_api_key,
            model=self.settings.gemini_model,
            temperature=self.settings.analysis_temperature,
        )

        self.traffic: BoundedBuffer[TrafficPacket] = BoundedBuffer(self.settings.traffic_capacity)
        self.alerts: BoundedBuffer[AnomalyAlert] = BoundedBuffer(self.settings.alert_capacity)
        self.stats = StatsAccumulator(self.settings.initial_stats)

        self.is_running = False
        self.tick_count = 0
        self._task: Optional[asyncio.Task] = None
        self._sequence = itertools.count()

        self.ai_analysis = ""
        self.analysis_generated_at: Optional[datetime] = None
        self.is_analyzing = False

    def next_packet_id(self) -> str:
        return f"p-{int(time.time() * 1000)}-{next(self._sequence)}"

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def seed_backlog(self, count: Optional[int] = None) -> int:
        """Pre-fill the buffers so the dashboard isn't empty at boot.

        Backlog packets are history: they fill the buffers but are not
        counted again in the stats, which already start from a seed.
        """
        count = self.settings.backlog_size if count is None else count
        for _ in range(count):
            packet = self.generator.generate(self.next_packet_id())
            self.traffic.push(packet)
            alert = project_alert(packet, BACKLOG_DESCRIPTION)
            if alert is not None:
                self.alerts.push(alert)
        logger.info(f"Seeded {count} backlog packets ({len(self.alerts)} alerts)")
        return count

    def ingest(self, packet: TrafficPacket) -> Optional[AnomalyAlert]:
        """Apply one packet to every piece of state."""
        self.traffic.push(packet)

        alert = project_alert(packet, LIVE_DESCRIPTION)
        if alert is not None:
            self.alerts.push(alert)
            logger.warning(
                f"Threat detected: {alert.type} - {packet.source_ip} -> "
                f"{alert.affected_device} [{alert.severity}]"
            )

        self.stats.on_packet(packet)
        self.tick_count += 1
        return alert

    def tick(self, anomalous: Optional[bool] = None) -> TrafficPacket:
        """Generate and apply one packet; ``anomalous`` forces the draw."""
        packet = self.generator.generate(self.next_packet_id(), anomalous=anomalous)
        self.ingest(packet)
        return packet

    async def _capture_loop(self):
        interval = self.settings.tick_interval
        while self.is_running:
            await asyncio.sleep(interval)
            if not self.is_running:
                break
            self.tick()

    def start_capture(self) -> bool:
        """Start the periodic tick task. Must be called from the event loop."""
        if self._task is not None and not self._task.done():
            return False
        self.is_running = True
        self._task = asyncio.get_running_loop().create_task(self._capture_loop())
        logger.info(f"Capture engine started (every {self.settings.tick_interval}s)")
        return True

    def stop_capture(self) -> bool:
        if self._task is None and not self.is_running:
            return False
        self.is_running = False
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
        logger.info("Capture engine stopped")
        return True

    async def shutdown(self) -> None:
        """Stop capture and wait for the tick task to finish cancelling."""
        task = self._task
        self.stop_capture()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    def toggle_capture(self) -> bool:
        """Flip the capture switch and return the new state."""
        if self.is_running:
            self.stop_capture()
        else:
            self.start_capture()
        return self.is_running

    async def run_analysis(self) -> str:
        """Send the current buffers to the analyst and keep its answer."""
        if self.is_analyzing:
            raise AnalysisInProgress("analysis already in progress")

        self.is_analyzing = True
        alerts = self.alerts.items()
        traffic = self.traffic.items()
        try:
            result = await self.analyst.analyze_threat(alerts, traffic)
        finally:
            self.is_analyzing = False

        self.ai_analysis = result
        self.analysis_generated_at = datetime.now()
        return result

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_stats(self) -> SystemStats:
        return self.stats.snapshot()

    def get_overview(self) -> OverviewSnapshot:
        stats = self.stats.snapshot()
        alerts = self.alerts.items()
        return OverviewSnapshot(
            stats=stats,
            series=views.build_traffic_series(self.traffic.items()),
            distribution=views.split_distribution(stats),
            recent_alerts=views.recent_alerts(alerts),
            is_capturing=self.is_running,
        )

    def get_threat_map(
        self,
        severity: str = views.ALL,
        anomaly_type: str = views.ALL,
        country: str = views.ALL,
        order: str = "desc",
    ) -> ThreatMapView:
        return views.filter_threat_map(self.alerts.items(), severity, anomaly_type, country, order)

    def capture_status(self) -> CaptureStatus:
        return CaptureStatus(
            is_capturing=self.is_running,
            tick_interval=self.settings.tick_interval,
            ticks=self.tick_count,
        )

    def get_analysis(self) -> AnalysisReport:
        return AnalysisReport(
            report=self.ai_analysis,
            lines=views.parse_report(self.ai_analysis),
            is_analyzing=self.is_analyzing,
            generated_at=self.analysis_generated_at,
        )
