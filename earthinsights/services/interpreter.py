"""
Natural-language query interpretation, in two stages:

1. `QueryInterpreter.generate` asks the language model for a JSON document
   following SYSTEM_PROMPT and returns the raw text.
2. `parse_intent` pulls the first balanced JSON object out of that text,
   validates it and builds a QueryIntent, letting the gazetteer override the
   model's guesses for any place it knows.
"""
import json
import logging
import re
from datetime import date
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from ..core.errors import EarthInsightsError, ParseError
from ..schemas.common import DATA_TYPES, GeoTarget, Timeframe
from ..schemas.intent import EventSpec, QueryIntent, RawEvent, RawIntent, RawLocation, RawTimeframe
from . import gazetteer
from .llm import LanguageModel

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are an expert at parsing natural language queries for satellite imagery, weather, and geographical data searches.

Extract structured information from user queries and return ONLY valid JSON in this exact format:
{
  "locations": [{"name": "string", "type": "country|continent|city", "coordinates": {"lat": number, "lon": number}, "region": "string"}],
  "timeframe": {"start": "YYYY-MM-DD", "end": "YYYY-MM-DD", "period": "string", "confidence": "high|medium|low"},
  "events": [{"type": "string", "keywords": ["string"], "severity": "high|medium|low"}],
  "dataTypes": ["satellite", "weather", "news", "historical"],
  "intent": "string describing what user wants to find",
  "confidence": "high|medium|low"
}

Key guidelines:
- For timeframes: If year mentioned, use full year range. If season mentioned, estimate months.
- For locations: Include coordinates if you can reasonably estimate them
- For events: Extract weather events, disasters, political events, etc.
- Set confidence based on clarity of the query
- ALWAYS include multiple relevant dataTypes - most queries should include ["satellite", "weather", "news"] at minimum
- Include "historical" dataType for space/astronomy related queries

Examples:
"Show me Europe during 2023 heatwave" -> dataTypes: ["satellite", "weather", "news"], events: heatwave
"What did Nigeria look like during 2020 floods?" -> dataTypes: ["satellite", "weather", "news"], events: flooding
"Find images of California wildfires" -> dataTypes: ["satellite", "weather", "news"], events: wildfire"""

SUGGESTIONS = [
    'Try including a specific location (e.g., "Europe", "Nigeria", "New York")',
    'Mention a time period (e.g., "2023", "last summer", "during 2020")',
    'Include event keywords (e.g., "heatwave", "floods", "drought")',
]

DEFAULT_DATA_TYPES = ("satellite", "weather", "news")

ASTRONOMY_TERMS = re.compile(
    r"\b(astronom\w*|space|galax\w*|nebula\w*|stars?|planets?|moon|comets?|eclipse|apod|cosmos|cosmic|telescope)\b",
    re.IGNORECASE,
)

EVENT_KEYWORDS = {
    "heatwave": "weather",
    "heat wave": "weather",
    "drought": "weather",
    "flood": "weather",
    "flooding": "weather",
    "floods": "weather",
    "hurricane": "weather",
    "typhoon": "weather",
    "wildfire": "environmental",
    "wildfires": "environmental",
    "fire": "environmental",
    "earthquake": "geological",
    "volcano": "geological",
    "eruption": "geological",
    "pandemic": "health",
    "covid": "health",
    "war": "conflict",
    "conflict": "conflict",
    "election": "political",
    "olympics": "sports",
    "world cup": "sports",
}


def extract_json_block(text: str) -> str:
    """First balanced {...} block in `text`, ignoring braces inside strings."""
    start = text.find("{")
    if start < 0:
        raise ParseError("The language model response contained no JSON object", suggestions=SUGGESTIONS)
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    raise ParseError("The language model response contained an unterminated JSON object", suggestions=SUGGESTIONS)


def _as_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _confidence(value: Optional[str]) -> Optional[str]:
    return value if value in ("high", "medium", "low") else None


def _location(raw: RawLocation) -> Optional[GeoTarget]:
    name = (raw.name or "").strip()
    if not name:
        return None
    known = gazetteer.lookup(name)
    if known is not None:
        return known
    lat, lon = (raw.coordinates.lat, raw.coordinates.lon) if raw.coordinates else (raw.lat, raw.lon)
    if lat is None or lon is None:
        logger.warning("[Query Parser] Dropping location %r without usable coordinates", name)
        return None
    kind = raw.type if raw.type in ("country", "continent", "city") else "city"
    return GeoTarget(name=name, kind=kind, lat=lat, lon=lon, region=raw.region)


def _events(raw_events: Optional[List[RawEvent]], query: str) -> List[EventSpec]:
    events = []
    for ev in raw_events or []:
        if not ev.type:
            continue
        events.append(EventSpec(type=ev.type, keywords=list(ev.keywords or []), severity=_confidence(ev.severity)))
    reported = {k.lower() for ev in events for k in ev.keywords}
    lowered = query.lower()
    for keyword, kind in EVENT_KEYWORDS.items():
        if keyword in reported or not re.search(rf"\b{re.escape(keyword)}\b", lowered):
            continue
        match = next((ev for ev in events if ev.type == kind), None)
        if match is not None:
            match.keywords.append(keyword)
        else:
            events.append(EventSpec(type=kind, keywords=[keyword]))
        reported.add(keyword)
    return events


def default_data_types(raw_types: Optional[List[str]], query: str) -> List[str]:
    types = [t for t in DATA_TYPES if t in set(raw_types or [])]
    if not types:
        types = list(DEFAULT_DATA_TYPES)
        if ASTRONOMY_TERMS.search(query):
            types.append("historical")
    return types


def parse_intent(text: str, query: str = "") -> QueryIntent:
    block = extract_json_block(text)
    try:
        parsed = json.loads(block)
    except json.JSONDecodeError as e:
        raise ParseError(f"Failed to parse natural language query: {e}", suggestions=SUGGESTIONS)
    if not isinstance(parsed, dict):
        raise ParseError("Expected a JSON object", suggestions=SUGGESTIONS)
    try:
        raw = RawIntent.model_validate(parsed)
    except PydanticValidationError as e:
        logger.warning("[Query Parser] Malformed model reply: %s", e)
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ParseError(f"Unexpected structure in the interpreted query ({fields})", suggestions=SUGGESTIONS)

    locations: List[GeoTarget] = []
    for raw_loc in raw.locations or []:
        loc = _location(raw_loc)
        if loc is not None and loc not in locations:
            locations.append(loc)

    tf = raw.timeframe or RawTimeframe()
    timeframe = Timeframe(
        start=_as_date(tf.start),
        end=_as_date(tf.end),
        period=tf.period,
        confidence=_confidence(tf.confidence),
    )
    return QueryIntent(
        locations=locations,
        timeframe=timeframe,
        events=_events(raw.events, query),
        data_types=default_data_types(raw.data_types, query),
        intent=raw.intent or query,
        confidence=_confidence(raw.confidence) or "medium",
    )


class QueryInterpreter:
    def __init__(self, llm: LanguageModel):
        self.llm = llm

    async def generate(self, query: str) -> str:
        return await self.llm.complete(SYSTEM_PROMPT, query, temperature=0.1, max_tokens=1000)

    async def interpret(self, query: str) -> QueryIntent:
        if not query or not query.strip():
            raise ParseError("A natural language query string is required", title="Invalid input",
                             suggestions=SUGGESTIONS)
        self.llm.ensure_configured()
        logger.info('[Query Parser] Processing query: "%s"', query)
        try:
            text = await self.generate(query)
        except EarthInsightsError as e:
            if e.status_code == 500:
                raise
            raise ParseError(f"Failed to parse natural language query: {e}", suggestions=SUGGESTIONS)
        intent = parse_intent(text, query)
        logger.info("[Query Parser] %d locations, data types %s, confidence %s",
                    len(intent.locations), intent.data_types, intent.confidence)
        return intent
