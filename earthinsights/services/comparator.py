"""Side-by-side comparison of 2 to 4 images by the vision model."""
import asyncio
import logging
import re
from types import MappingProxyType
from typing import Any, Dict, List, Sequence

import httpx

from ..core.errors import ValidationError
from ..utils.http import head
from .llm import LanguageModel

logger = logging.getLogger(__name__)

MIN_IMAGES = 2
MAX_IMAGES = 4

DATA_URI = re.compile(r"^data:image/(jpeg|jpg|png|gif|webp);base64,")

TEMPLATES = MappingProxyType({
    "satellite": (
        "You are an expert satellite imagery analyst. Compare these satellite images and provide a detailed "
        "analysis in plain text, without any markdown formatting.",
        "Compare these satellite images by analyzing geographic features, environmental conditions, urban "
        "development, land use changes, and weather patterns. Note any significant differences or similarities.",
        "Focus particularly on",
    ),
    "weather": (
        "You are a meteorological expert. Analyze these images for weather-related comparisons in plain text, "
        "without any markdown formatting.",
        "Compare these images focusing on weather patterns, including cloud formations, atmospheric conditions, "
        "and indicators of precipitation or climate changes.",
        "Pay special attention to",
    ),
    "temporal": (
        "You are a temporal analysis expert. Compare these images to identify changes over time. Provide the "
        "analysis in plain text, without any markdown formatting.",
        "Analyze these images for temporal changes. Describe what has changed, any evidence of progression or "
        "development, seasonal differences, and any patterns of growth, decay, or transformation.",
        "Focus on changes in",
    ),
    "general": (
        "You are an expert image analyst. Provide a comprehensive comparison of these images in plain text, "
        "without any markdown formatting.",
        "Compare and analyze these images, discussing visual similarities and differences, key features, "
        "content, and subject matter to provide an overall assessment.",
        "Give special attention to",
    ),
})


def build_prompt(comparison_type: str, focus_areas: Sequence[str]) -> tuple[str, str]:
    if comparison_type not in TEMPLATES:
        raise ValidationError(f"Supported types: {', '.join(TEMPLATES)}", title="Invalid comparison type")
    system, prompt, focus_lead = TEMPLATES[comparison_type]
    if focus_areas:
        prompt = f"{prompt}\n{focus_lead}: {', '.join(focus_areas)}"
    return system, prompt


def detail_for(count: int) -> str:
    return "high" if count <= MIN_IMAGES else "low"


async def _check_url(url: str, index: int) -> None:
    try:
        info = await head(url)
    except httpx.HTTPError as e:
        raise ValidationError(f"Image URL validation failed at index {index}: {e}", title="Image validation failed")
    content_type = next((v for k, v in info["headers"].items() if k.lower() == "content-type"), "")
    if info["status_code"] >= 400 or not content_type.startswith("image/"):
        raise ValidationError(f"Image URL validation failed at index {index}: URL does not point to an image",
                              title="Image validation failed")


async def validate_images(images: Sequence[str]) -> List[str]:
    if len(images) < MIN_IMAGES:
        raise ValidationError("Please provide at least 2 images for comparison")
    if len(images) > MAX_IMAGES:
        raise ValidationError("Maximum 4 images allowed for comparison", title="Too many images")
    urls = []
    for i, img in enumerate(images):
        if img.startswith("http"):
            urls.append((img, i))
        elif img.startswith("data:image/"):
            if not DATA_URI.match(img):
                raise ValidationError(f"Invalid base64 image format at index {i}", title="Image validation failed")
        else:
            raise ValidationError(f"Invalid image format at index {i}. Must be URL or base64",
                                  title="Image validation failed")
    await asyncio.gather(*(_check_url(url, i) for url, i in urls))
    return list(images)


class ImageComparator:
    def __init__(self, llm: LanguageModel):
        self.llm = llm

    async def compare(self, images: Sequence[str], comparison_type: str = "general",
                      focus_areas: Sequence[str] = ()) -> Dict[str, Any]:
        self.llm.ensure_configured()
        system, prompt = build_prompt(comparison_type, focus_areas)
        urls = await validate_images(images)
        detail = detail_for(len(urls))
        logger.info("[ImageComparator] Comparing %d images, type: %s", len(urls), comparison_type)
        analysis = await self.llm.describe_images(
            prompt, urls, system=system, detail=detail,
            temperature=0.5, max_tokens=min(1500, 300 * len(urls)),
        )
        return {
            "success": True,
            "comparisonType": comparison_type,
            "imageCount": len(urls),
            "focusAreas": list(focus_areas),
            "analysis": analysis,
            "metadata": {"model": self.llm.cfg.openai_vision_model, "imageDetail": detail},
        }
