"""
Satellite imagery lookup as a forward-only state machine.

    PRIMARY_ATTEMPT -> APOD_CHECK -> RECENT_SCAN -> DEMO_FALLBACK

Each network state either produces imagery or hands over to the next one.
DEMO_FALLBACK always produces imagery, so `SatelliteFallbackChain.run`
always returns a result and never raises.
"""
import logging
import re
import zlib
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Any, Callable, Dict, Optional

import httpx

from ..core.config import Settings, settings
from ..core.errors import EarthInsightsError
from ..schemas.common import GeoTarget
from ..utils.time import Deadline, generate_date_range, iso, today
from . import nasa

logger = logging.getLogger(__name__)

MAX_PRIMARY_IMAGES = 5

EARTH_KEYWORDS = re.compile(r"\b(earth|planets?|satellites?|iss|space station|blue marble)\b", re.IGNORECASE)

DEMO_IMAGES = (
    "https://earthobservatory.nasa.gov/ContentWOC/images/decadal/land_shallow_topo_2048.jpg",
    "https://earthobservatory.nasa.gov/ContentWOC/images/decadal/land_ocean_ice_cloud_2048.jpg",
    "https://earthobservatory.nasa.gov/ContentWOC/images/decadal/temperature_3d_2048.jpg",
)

DEMO_DISCLAIMER = "These are sample Earth observation images, not specific to the queried timeframe"


class SatelliteState(str, Enum):
    PRIMARY_ATTEMPT = "primary_attempt"
    APOD_CHECK = "apod_check"
    RECENT_SCAN = "recent_scan"
    DEMO_FALLBACK = "demo_fallback"


_ORDER = tuple(SatelliteState)


def advance(state: SatelliteState) -> SatelliteState:
    """Next state; DEMO_FALLBACK is terminal and maps to itself."""
    i = _ORDER.index(state)
    return _ORDER[min(i + 1, len(_ORDER) - 1)]


@dataclass(frozen=True)
class SatelliteImagery:
    state: SatelliteState
    payload: Dict[str, Any]
    metadata: Dict[str, Any] = field(default_factory=dict)


def is_earth_related(entry: Dict[str, Any]) -> bool:
    text = f"{entry.get('title') or ''} {entry.get('explanation') or ''}"
    return bool(EARTH_KEYWORDS.search(text))


def demo_index(name: str) -> int:
    key = "".join(name.lower().split())
    return zlib.crc32(key.encode("utf-8")) % len(DEMO_IMAGES)


def demo_imagery(target: GeoTarget, requested: date, note: Optional[str] = None) -> SatelliteImagery:
    key = "".join(target.name.lower().split())
    idx = demo_index(target.name)
    coords = {"lat": target.lat, "lon": target.lon}
    images = [
        {
            "identifier": f"demo_satellite_{key}_1",
            "caption": f"Satellite view of {target.name} - True color composite ({iso(requested)})",
            "date": iso(requested),
            "imageUrl": DEMO_IMAGES[idx],
            "thumbnailUrl": DEMO_IMAGES[idx],
            "coordinates": coords,
        },
        {
            "identifier": f"demo_satellite_{key}_2",
            "caption": f"{target.name} region - Multi-spectral satellite imagery ({iso(requested)})",
            "date": iso(requested),
            "imageUrl": DEMO_IMAGES[(idx + 1) % len(DEMO_IMAGES)],
            "thumbnailUrl": DEMO_IMAGES[(idx + 1) % len(DEMO_IMAGES)],
            "coordinates": coords,
        },
    ]
    return SatelliteImagery(
        state=SatelliteState.DEMO_FALLBACK,
        payload={"location": target.name, "date": iso(requested), "images": images},
        metadata={
            "note": note or "Demo satellite imagery using NASA Earth Observatory data",
            "totalImages": len(images),
            "satellite": "Demo Earth Observatory",
            "resolution": "2048x2048 (NASA Earth Observatory)",
            "source": "https://earthobservatory.nasa.gov/",
            "demo": True,
            "disclaimer": DEMO_DISCLAIMER,
        },
    )


class SatelliteFallbackChain:
    def __init__(self, cfg: Settings = settings, clock: Callable[[], date] = today):
        self.cfg = cfg
        self.clock = clock

    def _timeout(self, base: float, deadline: Optional[Deadline]) -> float:
        return deadline.clamp(base) if deadline else base

    def _epic_image(self, target: GeoTarget, day: date, img: Dict[str, Any], caption: str) -> Dict[str, Any]:
        centroid = img.get("centroid_coordinates") or {}
        return {
            "identifier": img.get("identifier"),
            "caption": caption,
            "date": img.get("date"),
            **nasa.epic_archive_urls(day, img.get("image", ""), cfg=self.cfg),
            "coordinates": {
                "lat": centroid.get("lat", target.lat),
                "lon": centroid.get("lon", target.lon),
            },
        }

    async def _primary(self, target, start, end, deadline, tried) -> Optional[SatelliteImagery]:
        for day in generate_date_range(start, end, self.cfg.satellite_max_samples):
            timeout = self._timeout(self.cfg.satellite_attempt_timeout, deadline)
            if timeout <= 0:
                break
            tried.add(day)
            logger.info("[Satellite] Trying date %s", iso(day))
            try:
                found = await nasa.epic_images(day, timeout=timeout, cfg=self.cfg)
            except (httpx.HTTPError, EarthInsightsError) as e:
                logger.info("[Satellite] No data for date %s: %s", iso(day), e)
                continue
            if found:
                images = found[:MAX_PRIMARY_IMAGES]
                logger.info("[Satellite] Found %d images for date %s", len(images), iso(day))
                return SatelliteImagery(
                    state=SatelliteState.PRIMARY_ATTEMPT,
                    payload={
                        "location": target.name,
                        "date": iso(day),
                        "images": [
                            self._epic_image(target, day, img, img.get("caption") or f"EPIC view of Earth - {iso(day)}")
                            for img in images
                        ],
                    },
                    metadata={
                        "totalImages": len(images),
                        "satellite": "DSCOVR EPIC",
                        "resolution": "Full Earth disk (2048x2048)",
                        "actualDate": iso(day),
                        "requestedRange": {"start": iso(start), "end": iso(end)},
                    },
                )
        return None

    async def _apod_check(self, target, start, end, deadline, tried) -> Optional[SatelliteImagery]:
        entry = await nasa.apod(start, timeout=self._timeout(self.cfg.satellite_attempt_timeout, deadline), cfg=self.cfg)
        if not entry or entry.get("media_type") != "image" or not is_earth_related(entry):
            logger.info("[Satellite] APOD for %s is not Earth imagery", iso(start))
            return None
        return SatelliteImagery(
            state=SatelliteState.APOD_CHECK,
            payload={
                "location": target.name,
                "date": iso(start),
                "images": [{
                    "identifier": "nasa_apod_earth_fallback",
                    "caption": f"NASA Earth View: {entry.get('title')}",
                    "date": entry.get("date"),
                    "imageUrl": entry.get("url"),
                    "thumbnailUrl": entry.get("url"),
                    "coordinates": {"lat": target.lat, "lon": target.lon},
                    "explanation": entry.get("explanation"),
                }],
            },
            metadata={
                "note": "NASA APOD Earth imagery - EPIC satellite data not available for this date",
                "totalImages": 1,
                "satellite": "NASA APOD",
                "type": "Earth observation from space",
            },
        )

    async def _recent_scan(self, target, start, end, deadline, tried) -> Optional[SatelliteImagery]:
        day = self.clock()
        for _ in range(self.cfg.recent_scan_days):
            day -= timedelta(days=1)
            if day in tried:
                continue
            timeout = self._timeout(self.cfg.recent_scan_timeout, deadline)
            if timeout <= 0:
                return None
            try:
                found = await nasa.epic_images(day, timeout=timeout, cfg=self.cfg)
            except (httpx.HTTPError, EarthInsightsError):
                continue
            if found:
                image = self._epic_image(target, day, found[0],
                                         f"Recent EPIC view of Earth (closest available to {iso(start)})")
                image["identifier"] = f"epic_recent_{iso(day)}"
                return SatelliteImagery(
                    state=SatelliteState.RECENT_SCAN,
                    payload={"location": target.name, "date": iso(day), "images": [image]},
                    metadata={
                        "note": f"Recent EPIC imagery from {iso(day)} - No data available for requested timeframe {iso(start)}",
                        "totalImages": 1,
                        "satellite": "DSCOVR EPIC",
                        "resolution": "Full Earth disk (2048x2048)",
                        "actualDate": iso(day),
                        "requestedDate": iso(start),
                    },
                )
        return None

    async def run(self, target: GeoTarget, start: date, end: date,
                  deadline: Optional[Deadline] = None) -> SatelliteImagery:
        handlers = {
            SatelliteState.PRIMARY_ATTEMPT: self._primary,
            SatelliteState.APOD_CHECK: self._apod_check,
            SatelliteState.RECENT_SCAN: self._recent_scan,
        }
        if not self.cfg.nasa_api_key:
            logger.info("[Satellite] NASA API key not configured, using demo data")
            return demo_imagery(
                target, start, note="Demo satellite imagery - Configure NASA_API_KEY for real-time EPIC data"
            )

        tried: set[date] = set()
        state = SatelliteState.PRIMARY_ATTEMPT
        while state is not SatelliteState.DEMO_FALLBACK:
            if deadline is not None and deadline.expired:
                logger.warning("[Satellite] Request budget exhausted in %s", state.value)
                break
            try:
                found = await handlers[state](target, start, end, deadline, tried)
            except Exception as e:
                logger.warning("[Satellite] %s failed: %s", state.value, e)
                found = None
            if found is not None:
                return found
            state = advance(state)
            logger.info("[Satellite] Falling back to %s", state.value)

        logger.info("[Satellite] All fallbacks failed, using demo Earth Observatory data")
        return demo_imagery(target, start)
