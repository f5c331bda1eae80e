"""Gemini-backed threat analysis for the AI insights view."""

import json
from typing import Any, Optional, Sequence

from google import genai
from google.genai import types

from nads.logger import get_logger
from nads.models import AnomalyAlert, TrafficPacket

logger = get_logger(__name__)

MAX_PROMPT_ALERTS = 5
MAX_PROMPT_PACKETS = 10

SYSTEM_INSTRUCTION = (
    "You are a senior cybersecurity engineer specializing in behavioral "
    "network anomaly detection."
)

EMPTY_RESPONSE_TEXT = "Unable to generate analysis at this time."
ANALYSIS_FALLBACK = "An error occurred while analyzing the security data."
EXPLANATION_FALLBACK = "Consult standard security documentation for this threat type."

ANALYSIS_PROMPT = """
You are an expert Cybersecurity Analyst for the NADS (Network Anomaly Detection System).

I have detected the following recent anomalies and traffic patterns:
Alerts: {alerts}
Traffic Context: {traffic}

Based on this data, provide:
1. A summary of the current security posture.
2. Specific recommendations for the Network Administrator.
3. An assessment of whether these anomalies could be a coordinated attack.

Keep the tone professional and technical.
"""

EXPLANATION_PROMPT = (
    'Explain the network security threat known as "{anomaly_type}" in the context '
    "of behavioral anomaly detection. Suggest one mitigation strategy."
)


def build_analysis_prompt(
    alerts: Sequence[AnomalyAlert],
    traffic: Sequence[TrafficPacket],
) -> str:
    """Prompt with the newest alerts and packets (both newest first) as JSON."""
    return ANALYSIS_PROMPT.format(
        alerts=json.dumps([a.model_dump(mode="json") for a in alerts[:MAX_PROMPT_ALERTS]]),
        traffic=json.dumps([p.model_dump(mode="json") for p in traffic[:MAX_PROMPT_PACKETS]]),
    )


class ThreatAnalyst:
    """Thin wrapper over the google-genai async client.

    Never raises: any failure is logged and turned into a fixed message.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gemini-3-flash-preview",
        temperature: float = 0.7,
        client: Optional[Any] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self._client = client

    def _get_client(self):
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def analyze_threat(
        self,
        alerts: Sequence[AnomalyAlert],
        recent_traffic: Sequence[TrafficPacket],
    ) -> str:
        prompt = build_analysis_prompt(alerts, recent_traffic)
        try:
            response = await self._get_client().aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    system_instruction=SYSTEM_INSTRUCTION,
                    temperature=self.temperature,
                ),
            )
        except Exception:
            logger.exception("Gemini analysis error")
            return ANALYSIS_FALLBACK

        return response.text or EMPTY_RESPONSE_TEXT

    async def explain_anomaly(self, anomaly_type: str) -> str:
        try:
            response = await self._get_client().aio.models.generate_content(
                model=self.model,
                contents=EXPLANATION_PROMPT.format(anomaly_type=anomaly_type),
            )
        except Exception:
            logger.exception("Gemini explanation error for %s", anomaly_type)
            return EXPLANATION_FALLBACK

        return response.text or EXPLANATION_FALLBACK
