# earthinsights/services/nasa.py
from datetime import date
from typing import Any, Dict, List

from ..core.config import Settings, settings
from ..core.errors import ConfigurationError
from ..utils.http import get_json
from ..utils.time import iso


def _key(cfg: Settings) -> str:
    if not cfg.nasa_api_key:
        raise ConfigurationError("NASA_API_KEY is not configured")
    return cfg.nasa_api_key


async def epic_images(day: date, timeout: float = 10.0, cfg: Settings = settings) -> List[Dict[str, Any]]:
    """EPIC natural-color metadata for one day; empty list when DSCOVR has nothing."""
    url = f"{cfg.nasa_base}/EPIC/api/natural/date/{iso(day)}"
    data = await get_json(url, params={"api_key": _key(cfg)}, timeout=timeout)
    return data if isinstance(data, list) else []


def epic_archive_urls(day: date, image: str, cfg: Settings = settings) -> Dict[str, str]:
    base = f"{cfg.epic_archive_base}/{day:%Y}/{day:%m}/{day:%d}"
    return {
        "imageUrl": f"{base}/png/{image}.png",
        "thumbnailUrl": f"{base}/thumbs/{image}.jpg",
        "jpgUrl": f"{base}/jpg/{image}.jpg",
    }


async def apod(day: date | None = None, timeout: float = 10.0, cfg: Settings = settings) -> Dict[str, Any]:
    params = {"api_key": _key(cfg)}
    if day is not None:
        params["date"] = iso(day)
    return await get_json(f"{cfg.nasa_base}/planetary/apod", params=params, timeout=timeout)


async def apod_range(start: date, end: date, timeout: float = 15.0, cfg: Settings = settings) -> List[Dict[str, Any]]:
    params = {"api_key": _key(cfg), "start_date": iso(start), "end_date": iso(end)}
    data = await get_json(f"{cfg.nasa_base}/planetary/apod", params=params, timeout=timeout)
    return data if isinstance(data, list) else [data]
