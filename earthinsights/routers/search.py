# earthinsights/routers/search.py
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from ..core.config import Settings
from ..core.deps import get_interpreter, get_orchestrator, get_settings, get_synthesizer
from ..core.errors import NotFoundError
from ..schemas.common import GeoTarget
from ..schemas.requests import SearchRequest
from ..services.interpreter import SUGGESTIONS, QueryInterpreter
from ..services.orchestrator import Orchestrator
from ..services.synthesizer import Synthesizer
from ..utils.time import Deadline

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["search"])

# Astronomy-only queries need no place on Earth.
GLOBAL_TARGET = GeoTarget(name="Earth", kind="point", lat=0.0, lon=0.0)


@router.post("")
async def search(
    q: SearchRequest,
    request: Request,
    interpreter: QueryInterpreter = Depends(get_interpreter),
    orchestrator: Orchestrator = Depends(get_orchestrator),
    synthesizer: Synthesizer = Depends(get_synthesizer),
    cfg: Settings = Depends(get_settings),
):
    started_at = request.state.started_at
    deadline = Deadline(cfg.search_budget)
    logger.info('[NL Search] Processing query: "%s"', q.query)

    intent = await interpreter.interpret(q.query)
    targets = intent.locations[:min(q.max_results, cfg.max_targets)]
    if not targets:
        if intent.data_types != ["historical"]:
            raise NotFoundError("No recognizable location in the query", title="No locations found",
                                suggestions=SUGGESTIONS)
        targets = [GLOBAL_TARGET]

    results = await orchestrator.gather(targets, intent.data_types, intent.timeframe, deadline)
    envelope = await synthesizer.synthesize(q.query, intent, targets, results,
                                            include_analysis=q.include_analysis, started_at=started_at)

    overall = None
    if envelope.synthesis:
        overall = {
            "analysis": envelope.synthesis,
            "confidence": intent.confidence,
            "dataSourcesUsed": envelope.metadata.sources_used,
            "generatedAt": datetime.now(timezone.utc).isoformat(),
        }
    elif envelope.synthesis_note:
        overall = {"error": envelope.synthesis_note}

    logger.info("[NL Search] Completed in %dms", envelope.metadata.processing_time_ms)
    return {
        "success": True,
        "originalQuery": q.query,
        "queryAnalysis": intent.model_dump(by_alias=True, mode="json"),
        "results": [r.model_dump(by_alias=True, mode="json") for r in envelope.results],
        "overallAnalysis": overall,
        "metadata": envelope.metadata.model_dump(by_alias=True),
    }
