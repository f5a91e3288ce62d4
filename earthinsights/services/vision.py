# earthinsights/services/vision.py
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..core.config import Settings, settings
from ..core.errors import ConfigurationError, EarthInsightsError, UpstreamError, ValidationError
from ..utils.http import post_json
from .llm import LanguageModel

logger = logging.getLogger(__name__)

MAX_COUNTRIES = 10

EXPLAIN_PROMPT = (
    "You are a NASA Earth scientist and satellite imagery analyst. Based only on what is visible in this "
    "image, identify whether the photo shows any parts of Earth. If so, describe what continents and "
    "countries might be visible, using natural landforms and coastline patterns for reference. If "
    "possible, identify and list up to 10 major cities that can be seen in the photo. Analyze the "
    "atmospheric features too, such as clouds, their shapes, and their densities. Comment on what the "
    "cloud formations might indicate: clear skies, light clouds, storm systems, or heavy cloud cover. If "
    "visible, describe ocean currents, snow, deserts, or mountain ranges. The goal is to educate a general "
    "audience about what this satellite image likely reveals about Earth's geography and weather, without "
    "using any external metadata or assumptions."
)


def image_payload(image: str) -> Dict[str, Any]:
    if image.startswith("http"):
        return {"source": {"imageUri": image}}
    if image.startswith("data:"):
        _, sep, content = image.partition(",")
        if not sep or not content:
            raise ValidationError("Data URI images must look like data:image/<type>;base64,<content>",
                                  title="Invalid image format")
        return {"content": content}
    return {"content": image}


def countries_from_annotation(result: Dict[str, Any]) -> List[str]:
    """
    Single-word web entities scoring above 0.5 are taken as country
    candidates; landmark descriptions are the fallback.
    """
    found: List[str] = []
    for entity in (result.get("webDetection") or {}).get("webEntities") or []:
        desc = entity.get("description")
        if desc and entity.get("score", 0) > 0.5 and " " not in desc and desc not in found:
            found.append(desc)
    if not found:
        for landmark in result.get("landmarkAnnotations") or []:
            desc = landmark.get("description")
            if desc and desc not in found:
                found.append(desc)
    return found[:MAX_COUNTRIES]


class VisionService:
    def __init__(self, cfg: Settings = settings, llm: Optional[LanguageModel] = None):
        self.cfg = cfg
        self.llm = llm or LanguageModel(cfg)

    async def detect_countries(self, image_url: str) -> List[str]:
        if not self.cfg.google_vision_api_key:
            raise ConfigurationError("GOOGLE_VISION_API_KEY is not configured")
        body = {"requests": [{
            "image": image_payload(image_url),
            "features": [{"type": "WEB_DETECTION"}, {"type": "LANDMARK_DETECTION"}],
        }]}
        try:
            data = await post_json(f"{self.cfg.vision_base}/images:annotate", body,
                                   params={"key": self.cfg.google_vision_api_key},
                                   timeout=self.cfg.vision_timeout)
        except httpx.TimeoutException:
            raise UpstreamError("Google Vision request timed out", title="Request timeout", status_code=408)
        except httpx.HTTPStatusError as e:
            raise UpstreamError(f"Failed to analyze image with Google Vision API ({e.response.status_code})",
                                status_code=429 if e.response.status_code == 429 else None)
        except httpx.RequestError as e:
            raise UpstreamError(f"Google Vision unreachable: {e}")

        result = ((data or {}).get("responses") or [{}])[0]
        if "error" in result:
            raise UpstreamError(f"Google Vision error: {result['error'].get('message')}")
        return countries_from_annotation(result)

    async def explain_image(self, image_url: str) -> str:
        """Best-effort narrative; never raises."""
        if not self.llm.configured:
            logger.warning("OPENAI_API_KEY is not set. Skipping AI explanation.")
            return "AI explanation is unavailable because the API key is not configured."
        try:
            return await self.llm.describe_images(EXPLAIN_PROMPT, [image_url], max_tokens=400)
        except EarthInsightsError as e:
            logger.warning("Image explanation failed: %s", e)
            return "Failed to get explanation from AI service."
