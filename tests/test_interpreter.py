import json
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest

from earthinsights.core.errors import ConfigurationError, ParseError, UpstreamError
from earthinsights.services.interpreter import QueryInterpreter, extract_json_block, parse_intent

EUROPE_HEATWAVE = {
    "locations": [{"name": "Europe", "type": "continent", "coordinates": {"lat": 50.0, "lon": 10.0}}],
    "timeframe": {"start": "2023-06-01", "end": "2023-08-31", "period": "summer 2023", "confidence": "high"},
    "events": [{"type": "weather", "keywords": ["heatwave", "extreme heat"], "severity": "high"}],
    "dataTypes": ["satellite", "weather", "news"],
    "intent": "Europe during the 2023 heatwave",
    "confidence": "high",
}


def _llm(reply=None, error=None, configured=True):
    llm = MagicMock()
    llm.configured = configured
    if configured:
        llm.ensure_configured.return_value = None
    else:
        llm.ensure_configured.side_effect = ConfigurationError("OPENAI_API_KEY missing")
    llm.complete = AsyncMock(return_value=reply, side_effect=error)
    return llm


class TestExtractJsonBlock:
    def test_plain_object(self):
        assert extract_json_block('{"a": 1}') == '{"a": 1}'

    def test_surrounding_prose_and_fences(self):
        text = 'Here you go:\n```json\n{"a": {"b": [1, 2]}}\n```\nHope that helps {really}'
        assert json.loads(extract_json_block(text)) == {"a": {"b": [1, 2]}}

    def test_braces_inside_strings(self):
        text = '{"intent": "find {weird} \\"quoted\\" } text", "n": 1} trailing }'
        assert json.loads(extract_json_block(text)) == {"intent": 'find {weird} "quoted" } text', "n": 1}

    def test_no_object(self):
        with pytest.raises(ParseError):
            extract_json_block("I cannot help with that.")

    def test_unterminated(self):
        with pytest.raises(ParseError):
            extract_json_block('{"a": {"b": 1}')


class TestParseIntent:
    def test_europe_heatwave(self):
        intent = parse_intent(json.dumps(EUROPE_HEATWAVE), "Show me Europe during 2023 heatwave")

        [europe] = intent.locations
        assert europe.name == "Europe"
        assert europe.kind == "continent"
        # gazetteer coordinates win over the model's guess
        assert europe.lat == pytest.approx(54.5, abs=0.1)
        assert europe.lon == pytest.approx(15.3, abs=0.1)
        assert {"satellite", "weather", "news"} <= set(intent.data_types)
        assert intent.events[0].type == "weather"
        assert "heatwave" in intent.events[0].keywords
        assert intent.timeframe.start == date(2023, 6, 1)
        assert intent.confidence == "high"

    def test_missing_event_is_added_from_query(self):
        body = dict(EUROPE_HEATWAVE, events=[])
        intent = parse_intent(json.dumps(body), "Show me Europe during 2023 heatwave")
        assert [(e.type, e.keywords) for e in intent.events] == [("weather", ["heatwave"])]

    def test_event_keywords_merge_into_existing_type(self):
        body = dict(EUROPE_HEATWAVE, events=[{"type": "weather", "keywords": ["heat"]}])
        intent = parse_intent(json.dumps(body), "Europe drought and heatwave")
        assert len(intent.events) == 1
        assert set(intent.events[0].keywords) == {"heat", "heatwave", "drought"}

    def test_unknown_place_with_coordinates_is_kept(self):
        body = {"locations": [{"name": "Lake Chad", "type": "city", "coordinates": {"lat": 13.0, "lon": 14.5}}]}
        [loc] = parse_intent(json.dumps(body), "Lake Chad").locations
        assert (loc.name, loc.lat, loc.lon) == ("Lake Chad", 13.0, 14.5)

    def test_unknown_place_without_coordinates_is_dropped(self):
        body = {"locations": [{"name": "Lake Chad"}, {"name": "Nigeria"}]}
        locations = parse_intent(json.dumps(body), "Lake Chad in Nigeria").locations
        assert [loc.name for loc in locations] == ["Nigeria"]
        assert locations[0].iso2 == "NG"

    def test_default_data_types(self):
        intent = parse_intent('{"locations": [], "dataTypes": []}', "Nigeria floods")
        assert intent.data_types == ["satellite", "weather", "news"]

    def test_astronomy_adds_historical(self):
        intent = parse_intent("{}", "What did the night sky and the stars look like in 2020?")
        assert "historical" in intent.data_types

    def test_bad_dates_are_ignored(self):
        intent = parse_intent('{"timeframe": {"start": "last summer", "end": "2023-08-31"}}', "")
        assert intent.timeframe.start is None
        assert intent.timeframe.end == date(2023, 8, 31)

    def test_invalid_json(self):
        with pytest.raises(ParseError) as exc:
            parse_intent('{"locations": [,]}', "x")
        assert exc.value.suggestions

    @pytest.mark.parametrize("body", [
        {"locations": [{"name": "Europe"}], "timeframe": "2023"},
        {"locations": [{"name": 42}]},
        {"locations": [{"name": "Lake Chad", "coordinates": [13.0, 14.5]}]},
        {"locations": [{"name": "Lake Chad", "coordinates": {"lat": 999, "lon": 14.5}}]},
        {"locations": "Europe"},
        {"dataTypes": [{"type": "satellite"}]},
        {"events": [{"type": "weather", "keywords": "heatwave"}]},
        {"events": "heatwave"},
    ])
    def test_malformed_structure(self, body):
        with pytest.raises(ParseError) as exc:
            parse_intent(json.dumps(body), "Show me Europe during 2023 heatwave")
        assert exc.value.status_code == 400
        assert exc.value.suggestions

    def test_nulls_are_tolerated(self):
        body = {"locations": None, "timeframe": None, "events": None, "dataTypes": None, "intent": None}
        intent = parse_intent(json.dumps(body), "Nigeria floods")
        assert intent.locations == []
        assert intent.data_types == ["satellite", "weather", "news"]
        assert intent.intent == "Nigeria floods"


class TestQueryInterpreter:
    @pytest.mark.asyncio
    async def test_interpret(self):
        llm = _llm(reply="Sure!\n" + json.dumps(EUROPE_HEATWAVE))
        intent = await QueryInterpreter(llm).interpret("Show me Europe during 2023 heatwave")
        assert intent.locations[0].name == "Europe"
        llm.complete.assert_awaited_once()
        assert llm.complete.await_args.args[1] == "Show me Europe during 2023 heatwave"

    @pytest.mark.asyncio
    async def test_empty_query(self):
        llm = _llm()
        with pytest.raises(ParseError):
            await QueryInterpreter(llm).interpret("   ")
        llm.complete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_key_checked_first(self):
        llm = _llm(configured=False)
        with pytest.raises(ConfigurationError):
            await QueryInterpreter(llm).interpret("Europe heatwave")
        llm.complete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_model_failure_is_parse_error(self):
        llm = _llm(error=UpstreamError("Language model unreachable"))
        with pytest.raises(ParseError) as exc:
            await QueryInterpreter(llm).interpret("Europe heatwave")
        assert exc.value.status_code == 400

    @pytest.mark.asyncio
    async def test_wrong_shape_reply(self):
        llm = _llm(reply='{"locations": [{"name": "Europe"}], "timeframe": "2023"}')
        with pytest.raises(ParseError):
            await QueryInterpreter(llm).interpret("Europe in 2023")

    @pytest.mark.asyncio
    async def test_non_json_reply(self):
        llm = _llm(reply="I'm not sure what you mean.")
        with pytest.raises(ParseError):
            await QueryInterpreter(llm).interpret("Europe heatwave")
