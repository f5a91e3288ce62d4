# earthinsights/services/news.py
import logging
from typing import Dict, List

import httpx

from ..core.config import Settings, settings
from ..utils.http import get_json

logger = logging.getLogger(__name__)

MAX_ARTICLES = 3


def normalize_articles(articles: List[dict]) -> List[Dict[str, str]]:
    return [
        {
            "title": a.get("title"),
            "source": (a.get("source") or {}).get("name"),
            "url": a.get("url"),
        }
        for a in (articles or [])[:MAX_ARTICLES]
    ]


async def top_headlines(iso2: str, timeout: float = 8.0, cfg: Settings = settings) -> List[Dict[str, str]]:
    """
    Current top headlines for a country (GNews). Best-effort: a missing key or
    any upstream failure yields an empty list.
    """
    if not cfg.gnews_api_key:
        logger.warning("GNEWS_API_KEY is not set. Skipping news fetch.")
        return []
    params = {"country": iso2.lower(), "lang": "en", "apikey": cfg.gnews_api_key}
    try:
        data = await get_json(f"{cfg.gnews_base}/top-headlines", params=params, timeout=timeout)
    except httpx.HTTPStatusError as e:
        logger.warning("GNews %s for %s", e.response.status_code, iso2)
        return []
    except httpx.HTTPError as e:
        logger.warning("GNews unreachable for %s: %s", iso2, e)
        return []
    return normalize_articles((data or {}).get("articles"))
