# earthinsights/routers/imagery.py
import logging

from fastapi import APIRouter, Depends, Request

from ..core.deps import get_comparator, get_vision
from ..schemas.requests import ImageCompareRequest, ImageRequest
from ..services.comparator import ImageComparator
from ..services.vision import VisionService
from ..utils.time import elapsed_ms

logger = logging.getLogger(__name__)

router = APIRouter(tags=["imagery"])


@router.post("/image-comparator")
async def image_comparator(
    q: ImageCompareRequest,
    request: Request,
    comparator: ImageComparator = Depends(get_comparator),
):
    body = await comparator.compare(q.images, q.comparison_type, q.focus_areas)
    body["metadata"]["processingTimeMs"] = elapsed_ms(request.state.started_at)
    logger.info("[ImageComparator] Completed in %dms", body["metadata"]["processingTimeMs"])
    return body


@router.post("/explain")
async def explain(q: ImageRequest, vision: VisionService = Depends(get_vision)):
    return {"imageUrl": q.image_url, "explanation": await vision.explain_image(q.image_url)}


@router.post("/vision/detect-countries")
async def detect_countries(q: ImageRequest, vision: VisionService = Depends(get_vision)):
    countries = await vision.detect_countries(q.image_url)
    return {"imageUrl": q.image_url, "countries": countries}
