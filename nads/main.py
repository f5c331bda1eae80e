from fastapi import FastAPI, HTTPException, Query, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from nads.config import MonitorSettings, load_settings
from nads.logger import get_logger, setup_logging
from nads.models import (
    AnalysisReport,
    AnomalyAlert,
    CaptureStatus,
    OverviewSnapshot,
    SortOrder,
    SystemStats,
    ThreatMapView,
    TrafficPacket,
)
from nads.traffic_monitor import AnalysisInProgress, TrafficMonitor
import asyncio
from typing import List, Literal, Optional

logger = get_logger(__name__)

SeverityFilter = Literal["All", "Low", "Medium", "High"]


def create_app(
    monitor: Optional[TrafficMonitor] = None,
    settings: Optional[MonitorSettings] = None,
) -> FastAPI:
    settings = settings or (monitor.settings if monitor is not None else load_settings())
    monitor = monitor or TrafficMonitor(settings)

    app = FastAPI(title="NADS Network Anomaly Detection API")
    app.state.monitor = monitor

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # WebSocket connections
    active_connections: List[WebSocket] = []
    app.state.active_connections = active_connections

    @app.on_event("startup")
    async def startup_event():
        """Fill the backlog and start the capture engine"""
        setup_logging(settings.log_level, settings.log_file)
        logger.info("NADS monitor starting")
        logger.info(f"WebSocket endpoint: ws://{settings.host}:{settings.port}/ws")
        logger.info(f"REST API: http://{settings.host}:{settings.port}/api/stats")

        monitor.seed_backlog()
        if settings.capture_on_startup:
            monitor.start_capture()

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("NADS monitor shutting down")
        await monitor.shutdown()

    @app.get("/")
    async def root():
        return {
            "message": "NADS Network Anomaly Detection API",
            "status": "running",
            "endpoints": {
                "stats": "/api/stats",
                "traffic": "/api/traffic",
                "alerts": "/api/alerts",
                "overview": "/api/overview",
                "threat_map": "/api/threat-map",
                "capture": "/api/capture",
                "analysis": "/api/analysis",
                "websocket": "/ws",
            },
        }

    @app.get("/api/health")
    async def health_check():
        stats = monitor.get_stats()
        return {
            "status": "healthy",
            "capture_running": monitor.is_running,
            "total_packets": stats.total_packets,
            "anomalies_detected": stats.anomalies_detected,
            "active_connections": len(active_connections),
        }

    @app.get("/api/stats", response_model=SystemStats)
    async def get_stats():
        return monitor.get_stats()

    @app.get("/api/traffic", response_model=List[TrafficPacket])
    async def get_traffic():
        """Stream buffer, newest first"""
        return monitor.traffic.items()

    @app.get("/api/alerts", response_model=List[AnomalyAlert])
    async def get_alerts(limit: Optional[int] = Query(None, gt=0)):
        alerts = monitor.alerts.items()
        return alerts[:limit] if limit else alerts

    @app.get("/api/overview", response_model=OverviewSnapshot)
    async def get_overview():
        return monitor.get_overview()

    @app.get("/api/threat-map", response_model=ThreatMapView)
    async def get_threat_map(
        severity: SeverityFilter = "All",
        anomaly_type: str = Query("All", alias="type"),
        country: str = "All",
        order: SortOrder = "desc",
    ):
        return monitor.get_threat_map(severity, anomaly_type, country, order)

    @app.get("/api/capture", response_model=CaptureStatus)
    async def capture_status():
        return monitor.capture_status()

    @app.post("/api/capture/start", response_model=CaptureStatus)
    async def start_capture():
        monitor.start_capture()
        return monitor.capture_status()

    @app.post("/api/capture/stop", response_model=CaptureStatus)
    async def stop_capture():
        monitor.stop_capture()
        return monitor.capture_status()

    @app.post("/api/capture/toggle", response_model=CaptureStatus)
    async def toggle_capture():
        monitor.toggle_capture()
        return monitor.capture_status()

    @app.get("/api/analysis", response_model=AnalysisReport)
    async def get_analysis():
        return monitor.get_analysis()

    @app.post("/api/analysis", response_model=AnalysisReport)
    async def run_analysis():
        """Ask Gemini about the current alerts and traffic"""
        try:
            await monitor.run_analysis()
        except AnalysisInProgress:
            raise HTTPException(status_code=409, detail="Analysis already in progress")
        return monitor.get_analysis()

    @app.get("/api/anomalies/{anomaly_type}/explanation")
    async def explain_anomaly(anomaly_type: str):
        explanation = await monitor.analyst.explain_anomaly(anomaly_type)
        return {"anomaly_type": anomaly_type, "explanation": explanation}

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """Push the overview snapshot to the dashboard"""
        await websocket.accept()
        active_connections.append(websocket)
        client_id = id(websocket)

        logger.info(f"Client connected: {client_id} ({len(active_connections)} total)")

        try:
            while True:
                snapshot = monitor.get_overview()
                await websocket.send_json(snapshot.model_dump(mode="json"))
                await asyncio.sleep(settings.ws_push_interval)

        except WebSocketDisconnect:
            active_connections.remove(websocket)
            logger.info(f"Client disconnected: {client_id} ({len(active_connections)} remaining)")
        except Exception as e:
            logger.error(f"WebSocket error: {e}")
            if websocket in active_connections:
                active_connections.remove(websocket)

    return app


app = create_app()
