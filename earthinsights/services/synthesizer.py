# earthinsights/services/synthesizer.py
import json
import logging
import time
from typing import Any, List, Literal, Optional, Sequence

from ..core.errors import EarthInsightsError, NoDataError, UpstreamError
from ..schemas.common import EnvelopeMetadata, GeoTarget, ResponseEnvelope, SourceResult, SourceSuccess
from ..schemas.intent import QueryIntent
from ..utils.time import elapsed_ms
from .llm import LanguageModel

logger = logging.getLogger(__name__)

Style = Literal["search", "history"]

ANALYST_SYSTEM = (
    "You are a world-class data analyst and synthesist. Your expertise is in connecting disparate sources of "
    "information (satellite imagery, weather patterns, and geopolitical news) and inferring causal relationships "
    "to form a single, coherent narrative. Your tone is that of a confident expert providing a briefing: "
    "analytical, insightful, and direct. You NEVER refer to the 'user' or the person asking the question. "
    "You generate plain text only, without any markdown formatting like '###' or '**'."
)

HISTORY_SYSTEM = "You are a concise data analyst. Provide brief, insightful analysis."

SEARCH_PROMPT = """
Objective: Provide an expert analysis for the search query, synthesizing the provided data into a coherent narrative.

Original Query: "{query}"

Parsed Query Context:
{context}
The key event to focus on is "{event}".

Available Data Summary:
- {summary}

---

Analysis Task (400-500 words):

As a world-class data analyst, synthesize the available data to address the original query's intent. Structure your response as plain text. Do not use any markdown formatting like '###' or '**'.

Key Insights
Begin with a 2-3 sentence executive summary. What are the most critical, non-obvious conclusions you can draw from the intersection of the satellite, weather, and news data regarding the specified event?

Event Breakdown
1. Event Context: Based on the query, describe the event in detail.
2. Satellite Evidence: What do the satellite images reveal about the event's impact on the landscape?
3. Weather Corroboration: How does the historical weather data confirm or add context to the event?
4. On-the-Ground Perspective: What do the news headlines tell us about the human and societal impact of the event?

Cause & Effect Analysis
Based on the combined data, analyze the likely causal chain. What factors likely led to the event? What were the primary environmental and societal effects observed in the data?

Conclusion & Further Questions
Summarize the findings and pose 2-3 insightful follow-up questions for deeper investigation.
"""

HISTORY_PROMPT = """Analyze historical data for {place} ({start} to {end}).

Data summary: {summary}

Provide a concise analysis (max 300 words) covering:
1. Key patterns or trends
2. Notable weather or environmental conditions
3. Any interesting observations
4. Brief implications for the location"""


def _count_images(results: Sequence[SourceSuccess]) -> int:
    return sum(len(r.payload.get("images") or []) for r in results)


def build_data_summary(results: Sequence[SourceResult]) -> List[str]:
    """One line per source that produced data, in first-seen order."""
    by_source: dict[str, List[SourceSuccess]] = {}
    for r in results:
        if r.ok:
            by_source.setdefault(r.source, []).append(r)

    lines = []
    for source, found in by_source.items():
        if source == "satellite":
            dates = sorted({r.payload.get("date") for r in found if r.payload.get("date")})
            when = ", ".join(dates) if dates else "various dates"
            line = f"Satellite imagery: {_count_images(found)} images from {when}"
            if any(r.metadata.get("demo") for r in found):
                line += " (sample imagery)"
        elif source == "weather":
            line = f"Weather data: Historical weather available for {len({r.target for r in found})} locations."
            ranged = [r.payload.get("summary") for r in found if isinstance(r.payload.get("summary"), dict)]
            for summary in ranged:
                if summary.get("avgMaxTemp") is not None:
                    line += (f" Avg max temp {summary['avgMaxTemp']:.1f}°C,"
                             f" total precipitation {summary.get('totalPrecipitation') or 0:.1f}mm.")
        elif source == "news":
            regions = {r.target for r in found if r.payload.get("articles")}
            line = f"News data: Found news articles for {len(regions)} regions."
        elif source == "historical":
            line = f"Historical data: {_count_images(found)} astronomical images from NASA's APOD."
        else:
            line = f"{source}: Data is available."
        lines.append(line)
    return lines


def _primary_event(intent: Optional[QueryIntent]) -> str:
    if intent and intent.events and intent.events[0].keywords:
        return ", ".join(intent.events[0].keywords)
    return "general conditions"


class Synthesizer:
    def __init__(self, llm: LanguageModel):
        self.llm = llm

    def _prompt(self, style: Style, original_input: Any, intent: Optional[QueryIntent],
                targets: Sequence[GeoTarget], summary: List[str]) -> tuple[str, str, float, int]:
        if style == "history":
            tf = intent.timeframe if intent else None
            place = ", ".join(f"{t.name} ({t.lat}, {t.lon})" for t in targets) or "the selected location"
            prompt = HISTORY_PROMPT.format(
                place=place,
                start=tf.start if tf else "",
                end=tf.end if tf else "",
                summary=". ".join(summary),
            )
            return HISTORY_SYSTEM, prompt, 0.6, 500
        context = intent.model_dump_json(by_alias=True, indent=2) if intent else "{}"
        prompt = SEARCH_PROMPT.format(
            query=original_input if isinstance(original_input, str) else json.dumps(original_input, default=str),
            context=context,
            event=_primary_event(intent),
            summary="\n- ".join(summary),
        )
        return ANALYST_SYSTEM, prompt, 0.4, 800

    async def synthesize(self, original_input: Any, intent: Optional[QueryIntent], targets: Sequence[GeoTarget],
                         results: List[SourceResult], include_analysis: bool = True,
                         started_at: Optional[float] = None, style: Style = "search") -> ResponseEnvelope:
        """
        Assemble the response envelope. The narrative step is best-effort:
        its failure leaves `synthesis` empty and explains why in
        `synthesis_note`.
        """
        started_at = started_at or time.perf_counter()
        successes = [r for r in results if r.ok]
        failures = [r for r in results if not r.ok]

        if not successes and results:
            sources = {r.source for r in results}
            if include_analysis:
                raise NoDataError(
                    {"message": "No valid data available for analysis",
                     "failures": [f"{r.source} for {r.target}: {r.error}" for r in failures]},
                    suggestions=["Try a different date range", "Request fewer data types"],
                )
            if len(sources) == 1:
                raise UpstreamError([f"{r.target}: {r.error}" for r in failures],
                                    title=f"{sources.pop().capitalize()} data unavailable")

        synthesis = None
        note = None
        if include_analysis:
            summary = build_data_summary(successes)
            system, prompt, temperature, max_tokens = self._prompt(style, original_input, intent, targets, summary)
            try:
                synthesis = await self.llm.complete(system, prompt, temperature=temperature, max_tokens=max_tokens)
            except EarthInsightsError as e:
                logger.warning("Analysis generation failed: %s", e)
                note = f"Analysis unavailable: {e}"

        metadata = EnvelopeMetadata(
            total_requested=len(results),
            success_count=len(successes),
            failure_count=len(failures),
            processing_time_ms=elapsed_ms(started_at),
            sources_used=sorted({r.source for r in successes}),
        )
        return ResponseEnvelope(
            original_input=original_input,
            resolved_targets=list(targets),
            results=results,
            synthesis=synthesis,
            synthesis_note=note,
            metadata=metadata,
        )
