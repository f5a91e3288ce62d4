# earthinsights/routers/nasa.py
import logging
import re
from typing import Optional

import httpx
from fastapi import APIRouter, Depends

from ..core.config import Settings
from ..core.deps import get_settings
from ..core.errors import NotFoundError, UpstreamError, ValidationError
from ..services import nasa
from ..utils.geo import haversine_km
from ..utils.time import parse_day

logger = logging.getLogger(__name__)

router = APIRouter(tags=["nasa"])

DATE_FORMAT = re.compile(r"\d{4}-\d{2}-\d{2}")


def _upstream(name: str, e: httpx.HTTPError) -> UpstreamError:
    if isinstance(e, httpx.TimeoutException):
        return UpstreamError(f"{name} request timed out", title="Request timeout", status_code=408)
    if isinstance(e, httpx.HTTPStatusError):
        code = e.response.status_code
        return UpstreamError(f"{name} returned HTTP {code}", title=f"Failed to fetch {name}",
                             status_code=429 if code == 429 else None)
    return UpstreamError(f"{name} unreachable: {e}", title=f"Failed to fetch {name}")


@router.get("/apod")
async def apod(date: Optional[str] = None, cfg: Settings = Depends(get_settings)):
    try:
        return await nasa.apod(parse_day(date), cfg=cfg)
    except httpx.HTTPError as e:
        raise _upstream("APOD", e)


@router.api_route("/epic", methods=["GET", "POST"])
async def epic(
    date: Optional[str] = None,
    lat: Optional[float] = None,
    lon: Optional[float] = None,
    radius: float = 1000.0,
    cfg: Settings = Depends(get_settings),
):
    """EPIC natural-color images for a day, optionally limited to `radius` km around a point."""
    if not date:
        raise ValidationError("Please provide a date in YYYY-MM-DD format.", title="Date is required")
    if not DATE_FORMAT.fullmatch(date):
        raise ValidationError("Date must be in YYYY-MM-DD format.", title="Invalid date format")
    if (lat is None) != (lon is None):
        raise ValidationError("Both latitude and longitude must be provided together", title="Invalid coordinates")
    if lat is not None and not -90 <= lat <= 90:
        raise ValidationError("Latitude must be between -90 and 90", title="Invalid latitude")
    if lon is not None and not -180 <= lon <= 180:
        raise ValidationError("Longitude must be between -180 and 180", title="Invalid longitude")

    day = parse_day(date)
    logger.info("Fetching EPIC images for date: %s", date)
    try:
        found = await nasa.epic_images(day, timeout=cfg.satellite_attempt_timeout, cfg=cfg)
    except httpx.HTTPError as e:
        raise _upstream("EPIC", e)
    if not found:
        raise NotFoundError("No images found for this date.", title="No images found")

    images = []
    for img in found:
        centroid = img.get("centroid_coordinates") or {}
        images.append({
            "caption": img.get("caption"),
            "date": img.get("date"),
            "lat": centroid.get("lat"),
            "lon": centroid.get("lon"),
            "imageUrl": nasa.epic_archive_urls(day, img.get("image", ""), cfg=cfg)["jpgUrl"],
        })

    query = None
    if lat is not None:
        located = [(haversine_km(lat, lon, img["lat"], img["lon"]), img)
                   for img in images if img["lat"] is not None and img["lon"] is not None]
        near = sorted((pair for pair in located if pair[0] <= radius), key=lambda pair: pair[0])
        if not near:
            raise NotFoundError("No images found near the specified location", title="No images found")
        images = [img for _, img in near]
        query = {"lat": lat, "lon": lon, "radius": radius}

    return {"date": date, "count": len(images), "query": query, "images": images}
