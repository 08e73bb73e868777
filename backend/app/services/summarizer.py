from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import List, Optional
import logging

import httpx
from fastapi import Depends, HTTPException

from app.config import Settings, get_settings

logger = logging.getLogger(__name__)

INSUFFICIENT_DATA = "Not enough data for analysis. Record more tank levels first."
DISABLED_TEXT = "AI analysis is disabled. Configure a summarizer API key to enable it."


class SummarizerError(Exception):
    """The upstream text-completion service failed or answered nonsense."""


class Summarizer(ABC):
    """Base class for narrative report generators."""

    @abstractmethod
    async def summarize(self, prompt_context: str) -> str:
        pass

    @classmethod
    def get_description(cls) -> str:
        return "No description available"


class DisabledSummarizer(Summarizer):
    @classmethod
    def get_description(cls) -> str:
        return "Returns a fixed message; used when no API key is configured"

    async def summarize(self, prompt_context: str) -> str:
        return DISABLED_TEXT


class HttpSummarizer(Summarizer):
    """Posts {model, prompt} to a completion endpoint and reads back {"text"}."""

    def __init__(
        self,
        url: str,
        api_key: str,
        model: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def get_description(cls) -> str:
        return "Text completion over HTTP"

    async def summarize(self, prompt_context: str) -> str:
        headers = {"Authorization": f"Bearer {self.api_key}"}
        payload = {"model": self.model, "prompt": prompt_context}

        try:
            async with httpx.AsyncClient(headers=headers, timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.url, json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Summarizer request to {self.url} failed: {e}")
            raise SummarizerError(str(e)) from e
        except ValueError as e:
            raise SummarizerError(f"Invalid JSON from summarizer: {e}") from e

        text = data.get("text") if isinstance(data, dict) else None
        if not text:
            raise SummarizerError("Summarizer returned no text")
        return text


def recent_readings(readings, days: int, now: Optional[datetime] = None) -> List:
    cutoff = (now or datetime.utcnow()) - timedelta(days=days)
    return sorted((r for r in readings if r.timestamp >= cutoff), key=lambda r: r.timestamp)


def build_usage_prompt(tank, readings, days: int) -> Optional[str]:
    """Prompt for a usage narrative, or None when fewer than two readings are available."""
    if len(readings) < 2:
        return None

    current_sg = readings[-1].applied_sg
    lines = "\n".join(
        f"{r.timestamp.date().isoformat()}: level {r.level_cm}cm ({r.calculated_volume:.1f}L), "
        f"added {r.added_amount_liters or 0}L, SG {r.applied_sg}"
        for r in readings
    )

    return f"""You are a water-treatment engineer at a power plant. Analyse the chemical usage of
tank "{tank.name}" (system: {tank.system_type}) over the last {days} days.

Tank parameters:
- Capacity: {tank.capacity_liters} L
- Safe minimum level: {tank.safe_min_level}%
- Current specific gravity: {current_sg}

Readings:
{lines}

Report on:
1. Usage trend: is the average daily usage stable, are there sudden spikes or drops?
2. Refill efficiency: are refills timed well (not too low, not too frequent)?
3. Anomalies: levels should only fall unless chemical was added. Are there signs of data entry errors?
4. Recommendations for the operators."""


def get_summarizer(settings: Settings = Depends(get_settings)) -> Summarizer:
    if not settings.enable_ai_report or not settings.summarizer_api_key:
        return DisabledSummarizer()
    return HttpSummarizer(
        url=settings.summarizer_url,
        api_key=settings.summarizer_api_key,
        model=settings.summarizer_model,
        timeout=settings.summarizer_timeout,
    )


async def generate_report(summarizer: Summarizer, tank, readings, days: int) -> dict:
    selected = recent_readings(readings, days)
    prompt = build_usage_prompt(tank, selected, days)
    if prompt is None:
        return {"tank_id": tank.id, "days": days, "readings_used": len(selected), "report": INSUFFICIENT_DATA}

    try:
        text = await summarizer.summarize(prompt)
    except SummarizerError as e:
        raise HTTPException(status_code=502, detail=f"AI analysis service unavailable: {e}")

    logger.info(f"Generated usage report for tank {tank.id} from {len(selected)} readings")
    return {"tank_id": tank.id, "days": days, "readings_used": len(selected), "report": text}
