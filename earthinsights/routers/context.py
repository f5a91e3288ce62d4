# earthinsights/routers/context.py
import logging
from datetime import date

from fastapi import APIRouter, Depends, Request

from ..core.config import Settings
from ..core.deps import get_orchestrator, get_settings, get_synthesizer, get_vision
from ..schemas.common import ResponseEnvelope, Timeframe
from ..schemas.requests import ContextRequest
from ..services.briefing import regions_from_envelope
from ..services.orchestrator import Orchestrator
from ..services.resolver import ResolveInput, resolve
from ..services.synthesizer import Synthesizer
from ..services.vision import VisionService
from ..utils.time import Deadline, iso, parse_day

logger = logging.getLogger(__name__)

router = APIRouter(tags=["context"])

DEFAULT_DATE = date(2024, 6, 1)


async def _regional_envelope(q: ContextRequest, data_types: list[str], request: Request,
                             orchestrator: Orchestrator, synthesizer: Synthesizer,
                             vision: VisionService, cfg: Settings) -> tuple[date, ResponseEnvelope]:
    day = parse_day(q.date) or DEFAULT_DATE
    targets = await resolve(ResolveInput(image_url=q.image_url, location=q.location, countries=q.countries), vision)
    logger.info("Regional context for %s on %s", ", ".join(t.name for t in targets), iso(day))
    results = await orchestrator.gather(targets, data_types, Timeframe(start=day, end=day),
                                        Deadline(cfg.context_budget), strict=True)
    envelope = await synthesizer.synthesize(q.model_dump(by_alias=True, mode="json"), None, targets, results,
                                            include_analysis=False, started_at=request.state.started_at)
    return day, envelope


@router.post("/contextualize")
async def contextualize(
    q: ContextRequest,
    request: Request,
    orchestrator: Orchestrator = Depends(get_orchestrator),
    synthesizer: Synthesizer = Depends(get_synthesizer),
    vision: VisionService = Depends(get_vision),
    cfg: Settings = Depends(get_settings),
):
    day, envelope = await _regional_envelope(q, ["weather", "news"], request, orchestrator, synthesizer, vision, cfg)
    return {
        "imageUrl": q.image_url,
        "date": iso(day),
        "contextualData": regions_from_envelope(envelope),
        "metadata": envelope.metadata.model_dump(by_alias=True),
    }


@router.post("/weather-summary")
async def weather_summary(
    q: ContextRequest,
    request: Request,
    orchestrator: Orchestrator = Depends(get_orchestrator),
    synthesizer: Synthesizer = Depends(get_synthesizer),
    vision: VisionService = Depends(get_vision),
    cfg: Settings = Depends(get_settings),
):
    day, envelope = await _regional_envelope(q, ["weather"], request, orchestrator, synthesizer, vision, cfg)
    regions = [{k: v for k, v in r.items() if k != "news"} for r in regions_from_envelope(envelope)]
    return {
        "imageUrl": q.image_url,
        "date": iso(day),
        "regions": regions,
        "metadata": envelope.metadata.model_dump(by_alias=True),
    }
