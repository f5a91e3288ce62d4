# earthinsights/routers/time_travel.py
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from ..core.config import Settings
from ..core.deps import get_range_orchestrator, get_settings, get_synthesizer
from ..schemas.common import Timeframe
from ..schemas.intent import QueryIntent
from ..schemas.requests import TimeTravelRequest
from ..services.orchestrator import Orchestrator, normalize_timeframe
from ..services.resolver import ResolveInput, resolve
from ..services.synthesizer import Synthesizer
from ..utils.time import Deadline, iso, parse_day, relative_range

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/time-travel", tags=["time-travel"])

# request data type -> (adapter data type, response key)
FETCH_TYPES = {"satellite": "satellite", "weather": "weather", "apod": "historical"}
RESPONSE_KEYS = {"satellite": "satellite", "weather": "weather", "historical": "apod"}


def request_timeframe(q: TimeTravelRequest) -> Timeframe:
    start = parse_day(q.start_date, "startDate")
    end = parse_day(q.end_date, "endDate")
    if start is None and end is None:
        start, end = relative_range(q.time_range)
    return normalize_timeframe(Timeframe(start=start, end=end, period=q.time_range), strict=True)


@router.post("")
async def time_travel(
    q: TimeTravelRequest,
    request: Request,
    orchestrator: Orchestrator = Depends(get_range_orchestrator),
    synthesizer: Synthesizer = Depends(get_synthesizer),
    cfg: Settings = Depends(get_settings),
):
    started_at = request.state.started_at
    timeframe = request_timeframe(q)
    targets = await resolve(ResolveInput(location=q.location))
    target = targets[0]
    fetch = [FETCH_TYPES[t] for t in dict.fromkeys(q.data_types) if t in FETCH_TYPES]
    logger.info("[TimeTravel] Request for %s, %s | %s to %s | Types: %s",
                target.lat, target.lon, timeframe.start, timeframe.end, ",".join(q.data_types))

    results = await orchestrator.gather([target], fetch, timeframe, Deadline(cfg.time_travel_budget), strict=True)
    include_analysis = "analysis" in q.data_types and bool(results)
    envelope = await synthesizer.synthesize(
        q.model_dump(by_alias=True, mode="json"),
        QueryIntent(locations=[target], timeframe=timeframe, data_types=fetch, intent="time travel"),
        [target], results, include_analysis=include_analysis, started_at=started_at, style="history",
    )

    historical = {}
    for r in envelope.results:
        key = RESPONSE_KEYS[r.source]
        if r.ok:
            historical[key] = {"type": r.type, **r.payload, "metadata": r.metadata}
        else:
            historical[key] = {"error": f"{key.capitalize()} data unavailable: {r.error}"}
    if include_analysis:
        if envelope.synthesis:
            historical["analysis"] = {
                "type": "analysis",
                "coordinates": {"lat": target.lat, "lon": target.lon},
                "dateRange": {"start": iso(timeframe.start), "end": iso(timeframe.end)},
                "insights": envelope.synthesis,
                "metadata": {"model": cfg.openai_model, "dataTypesAnalyzed": envelope.metadata.sources_used},
            }
        else:
            historical["analysis"] = {"error": envelope.synthesis_note}

    logger.info("[TimeTravel] Completed in %dms", envelope.metadata.processing_time_ms)
    return {
        "success": True,
        "location": target.model_dump(by_alias=True, mode="json"),
        "timeRange": q.time_range,
        "dateRange": {"start": iso(timeframe.start), "end": iso(timeframe.end)},
        "dataTypes": q.data_types,
        "historicalData": historical,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "metadata": {
            **envelope.metadata.model_dump(by_alias=True),
            "totalDataPoints": len(historical),
            "timeSpan": f"{iso(timeframe.start)} to {iso(timeframe.end)}",
            "dataTypesProcessed": list(historical),
        },
    }
