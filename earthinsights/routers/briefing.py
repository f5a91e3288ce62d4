# earthinsights/routers/briefing.py
import asyncio
import logging

from fastapi import APIRouter, Depends, Request

from ..core.config import Settings
from ..core.deps import get_dispatcher, get_orchestrator, get_settings, get_synthesizer, get_vision
from ..schemas.common import Timeframe
from ..schemas.requests import EmailBriefingRequest
from ..services.briefing import BriefingDispatcher, regions_from_envelope
from ..services.orchestrator import Orchestrator
from ..services.resolver import ResolveInput, resolve
from ..services.synthesizer import Synthesizer
from ..services.vision import VisionService
from ..utils.time import Deadline, iso, parse_day, today

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/email-briefing", tags=["briefing"])


@router.post("")
async def email_briefing(
    q: EmailBriefingRequest,
    request: Request,
    dispatcher: BriefingDispatcher = Depends(get_dispatcher),
    orchestrator: Orchestrator = Depends(get_orchestrator),
    synthesizer: Synthesizer = Depends(get_synthesizer),
    vision: VisionService = Depends(get_vision),
    cfg: Settings = Depends(get_settings),
):
    dispatcher.ensure_configured()
    day = parse_day(q.date) or today()

    targets = await resolve(ResolveInput(image_url=q.image_url, countries=q.countries), vision)
    logger.info("Processing briefing for: %s", ", ".join(t.name for t in targets))

    explanation, results = await asyncio.gather(
        vision.explain_image(q.image_url),
        orchestrator.gather(targets, ["weather", "news"], Timeframe(start=day, end=day),
                            Deadline(cfg.context_budget), strict=True),
    )
    envelope = await synthesizer.synthesize(q.model_dump(by_alias=True, mode="json"), None, targets, results,
                                            include_analysis=False, started_at=request.state.started_at)
    await dispatcher.send(q.recipient_email, q.image_url, iso(day), explanation, regions_from_envelope(envelope))
    return {"message": f"Briefing sent successfully to {q.recipient_email}"}
