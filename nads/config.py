"""Runtime settings for the monitor (YAML file + NADS_* environment overrides)."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, model_validator


class StatsSeed(BaseModel):
    """Values SystemStats starts from when the process boots"""
    total_packets: int = Field(124582, ge=0)
    anomalies_detected: int = Field(42, ge=0)
    avg_packet_size: float = 512
    system_health: float = 98.4
    precision: float = 0.965
    recall: float = 0.942
    f1_score: float = 0.953

    @model_validator(mode="after")
    def _check_counters(self):
        if self.anomalies_detected > self.total_packets:
            raise ValueError("anomalies_detected cannot exceed total_packets")
        return self


class MonitorSettings(BaseModel):
    """All tunables of the simulated capture engine and the API server"""

    # Traffic simulation
    anomaly_rate: float = Field(0.05, ge=0.0, le=1.0)
    traffic_capacity: int = Field(50, gt=0)
    alert_capacity: int = Field(50, gt=0)
    tick_interval: float = Field(2.0, gt=0)  # seconds
    backlog_size: int = Field(20, ge=0)  # packets generated at startup
    capture_on_startup: bool = True
    random_seed: Optional[int] = None
    initial_stats: StatsSeed = Field(default_factory=StatsSeed)

    # WebSocket
    ws_push_interval: float = Field(1.0, gt=0)

    # AI analysis (Gemini)
    gemini_model: str = "gemini-3-flash-preview"
    gemini_api_key: Optional[str] = None
    analysis_temperature: float = Field(0.7, ge=0.0, le=2.0)

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    log_file: Optional[str] = None
    cors_origins: List[str] = [
        "http://localhost:3000",   # React default port
        "http://localhost:5173",   # Vite dev server
        "http://localhost:5174",   # Vite fallback port
    ]


ENV_PREFIX = "NADS_"

# env var -> field, for values that don't follow the NADS_ prefix
_ENV_ALIASES = {
    "GEMINI_API_KEY": "gemini_api_key",
    "API_KEY": "gemini_api_key",
}


def _load_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def _env_overrides(environ: Dict[str, str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for alias, field in _ENV_ALIASES.items():
        if environ.get(alias):
            overrides[field] = environ[alias]

    for key, value in environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field = key[len(ENV_PREFIX):].lower()
        if field == "cors_origins":
            overrides[field] = [origin.strip() for origin in value.split(",") if origin.strip()]
        elif field in MonitorSettings.model_fields and field != "initial_stats":
            overrides[field] = value
    return overrides


def load_settings(
    path: Optional[Union[str, Path]] = None,
    environ: Optional[Dict[str, str]] = None,
) -> MonitorSettings:
    """Load settings from an optional YAML file, then apply environment overrides.

    ``NADS_CONFIG`` points at the YAML file when ``path`` is not given.
    Any ``NADS_<FIELD>`` variable overrides the matching field; pydantic
    coerces the string values and raises ``ValidationError`` on bad input.
    """
    environ = dict(os.environ if environ is None else environ)

    if path is None and environ.get(ENV_PREFIX + "CONFIG"):
        path = environ[ENV_PREFIX + "CONFIG"]

    raw: Dict[str, Any] = {}
    if path is not None:
        raw = _load_yaml(Path(path))

    raw.update(_env_overrides(environ))
    return MonitorSettings(**raw)
