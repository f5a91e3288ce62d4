# earthinsights/services/adapters.py
import asyncio
import logging
from datetime import date, timedelta
from typing import Any, Dict, Literal, Optional, Tuple

import httpx

from ..core.config import Settings, settings
from ..core.errors import EarthInsightsError, UpstreamError
from ..schemas.common import GeoTarget, SourceFailure, SourceResult, SourceSuccess, Timeframe
from ..utils.time import Deadline, iso, today
from . import nasa, news, weather
from .fallback import SatelliteFallbackChain

logger = logging.getLogger(__name__)

Fetched = Tuple[Dict[str, Any], Dict[str, Any]]


class SourceAdapter:
    """
    One external data source behind a uniform contract: `fetch` always
    returns a SourceResult and never raises.
    """

    source: str = ""
    result_type: str = ""

    def __init__(self, cfg: Settings = settings):
        self.cfg = cfg

    @property
    def timeout(self) -> Optional[float]:
        return None

    async def _fetch(self, target: GeoTarget, start: date, end: date,
                     deadline: Optional[Deadline]) -> Fetched:
        raise NotImplementedError

    def _call_timeout(self, deadline: Optional[Deadline]) -> Optional[float]:
        t = self.timeout
        if t is None:
            return None
        if deadline is not None:
            t = deadline.clamp(t)
            if t <= 0:
                raise UpstreamError("Request budget exhausted", title="Request timeout", status_code=408)
        return t

    async def fetch(self, target: GeoTarget, timeframe: Timeframe,
                    deadline: Optional[Deadline] = None) -> SourceResult:
        try:
            timeout = self._call_timeout(deadline)
            call = self._fetch(target, timeframe.start, timeframe.end, deadline)
            payload, metadata = await (asyncio.wait_for(call, timeout) if timeout else call)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return self._failure(target, f"{self.source} request timed out")
        except httpx.HTTPStatusError as e:
            return self._failure(target, f"{self.source} upstream returned HTTP {e.response.status_code}")
        except httpx.RequestError as e:
            return self._failure(target, f"{self.source} upstream unreachable: {e}")
        except EarthInsightsError as e:
            return self._failure(target, str(e))
        except Exception as e:
            logger.exception("Unexpected %s adapter error for %s", self.source, target.name)
            return self._failure(target, f"{self.source} adapter error: {e}")
        return SourceSuccess(source=self.source, type=self.result_type, target=target.name,
                             payload=payload, metadata=metadata)

    def _failure(self, target: GeoTarget, error: str) -> SourceFailure:
        logger.warning("[%s] %s: %s", self.source, target.name, error)
        return SourceFailure(source=self.source, target=target.name, error=error)


class SatelliteAdapter(SourceAdapter):
    source = "satellite"
    result_type = "satellite_imagery"

    def __init__(self, cfg: Settings = settings, chain: Optional[SatelliteFallbackChain] = None):
        super().__init__(cfg)
        self.chain = chain or SatelliteFallbackChain(cfg)

    async def _fetch(self, target, start, end, deadline) -> Fetched:
        found = await self.chain.run(target, start, end, deadline)
        return found.payload, {**found.metadata, "fallbackStage": found.state.value}


class WeatherAdapter(SourceAdapter):
    """
    `day` mode formats the start date's conditions; `range` mode aggregates
    daily values across the whole timeframe.
    """

    source = "weather"
    result_type = "weather_data"

    def __init__(self, cfg: Settings = settings, mode: Literal["day", "range"] = "day"):
        super().__init__(cfg)
        self.mode = mode

    @property
    def timeout(self) -> float:
        return self.cfg.weather_timeout

    async def _fetch(self, target, start, end, deadline) -> Fetched:
        coords = {"lat": target.lat, "lon": target.lon}
        meta = {"source": "Open-Meteo Historical", "mode": self.mode}
        if self.mode == "day":
            summary = await weather.historical_weather(target.lat, target.lon, start,
                                                       timeout=self.timeout, cfg=self.cfg)
            return {"location": target.name, "coordinates": coords, "date": iso(start), "weather": summary}, meta

        data = await weather.fetch_daily(target.lat, target.lon, start, end, weather.RANGE_FIELDS,
                                         timeout=self.timeout, cfg=self.cfg)
        daily = data.get("daily") or {}
        payload = {
            "location": target.name,
            "coordinates": coords,
            "dateRange": {"start": iso(start), "end": iso(end)},
            "summary": weather.summarize_range(daily),
            "dailyData": {
                "dates": daily.get("time") or [],
                "maxTemperatures": daily.get("temperature_2m_max") or [],
                "minTemperatures": daily.get("temperature_2m_min") or [],
                "precipitation": daily.get("precipitation_sum") or [],
                "windSpeed": daily.get("windspeed_10m_max") or [],
            },
            "units": data.get("daily_units") or {},
        }
        if not daily.get("time"):
            meta["note"] = weather.NO_DATA
        return payload, meta


class NewsAdapter(SourceAdapter):
    """Best-effort: timeouts and upstream errors yield an empty article list."""

    source = "news"
    result_type = "news_data"

    async def _fetch(self, target, start, end, deadline) -> Fetched:
        if not target.iso2:
            return {"location": target.name, "articles": []}, {"skipped": f"No ISO country code for {target.name}"}
        meta: Dict[str, Any] = {"source": "GNews top headlines"}
        timeout = deadline.clamp(self.cfg.news_timeout) if deadline else self.cfg.news_timeout
        try:
            if timeout <= 0:
                raise asyncio.TimeoutError()
            articles = await asyncio.wait_for(
                news.top_headlines(target.iso2, timeout=timeout, cfg=self.cfg), timeout
            )
        except Exception as e:
            logger.warning("News fetch failed for %s: %s", target.name, e)
            articles = []
            meta["note"] = "News unavailable"
        return {"location": target.name, "iso2": target.iso2, "articles": articles}, meta


class HistoricalAdapter(SourceAdapter):
    source = "historical"
    result_type = "astronomical_data"

    MAX_ENTRIES = 5

    @property
    def timeout(self) -> float:
        return self.cfg.historical_timeout

    def cap_range(self, start: date, end: date) -> Tuple[date, date, bool]:
        limit = min(start + timedelta(days=self.cfg.historical_max_days), today())
        capped = min(end, limit)
        return start, max(start, capped), capped != end

    async def _fetch(self, target, start, end, deadline) -> Fetched:
        start, end, capped = self.cap_range(start, end)
        try:
            entries = await nasa.apod_range(start, end, timeout=self.timeout, cfg=self.cfg)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 400:
                raise UpstreamError("Invalid date range for APOD data", status_code=400)
            raise
        images = [
            {
                "title": item.get("title"),
                "date": item.get("date"),
                "explanation": item.get("explanation"),
                "imageUrl": item.get("url"),
                "mediaType": item.get("media_type"),
            }
            for item in entries[:self.MAX_ENTRIES]
        ]
        payload = {"dateRange": {"start": iso(start), "end": iso(end)}, "images": images}
        return payload, {"source": "NASA APOD", "totalImages": len(entries), "rangeCapped": capped}


def build_adapters(cfg: Settings = settings, weather_mode: Literal["day", "range"] = "day") -> Dict[str, SourceAdapter]:
    return {
        "satellite": SatelliteAdapter(cfg),
        "weather": WeatherAdapter(cfg, mode=weather_mode),
        "news": NewsAdapter(cfg),
        "historical": HistoricalAdapter(cfg),
    }
