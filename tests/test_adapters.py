import asyncio
from datetime import date, timedelta
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from earthinsights.schemas.common import Timeframe
from earthinsights.services import news, weather
from earthinsights.services.adapters import HistoricalAdapter, NewsAdapter, WeatherAdapter
from earthinsights.utils.time import Deadline

LONDON_DAY = {
    "daily": {
        "temperature_2m_max": [22.0],
        "temperature_2m_min": [14.0],
        "weathercode": [1],
        "uv_index_max": [5],
    }
}


def _status_error(code):
    request = httpx.Request("GET", "https://example.test")
    return httpx.HTTPStatusError("boom", request=request, response=httpx.Response(code, request=request))


class TestWeatherFormatting:
    @pytest.mark.asyncio
    async def test_historical_weather_string(self, cfg):
        with patch("earthinsights.services.weather.get_json", AsyncMock(return_value=LONDON_DAY)) as get:
            text = await weather.historical_weather(51.5, -0.13, date(2024, 6, 1), cfg=cfg)
        assert text == "High: 22°C, Low: 14°C, Mainly clear, UV Index 5"
        params = get.await_args.kwargs["params"]
        assert params["start_date"] == params["end_date"] == "2024-06-01"

    def test_rounds_half_up(self):
        daily = {"temperature_2m_max": [21.5], "temperature_2m_min": [-0.5], "weathercode": [3], "uv_index_max": [4.49]}
        assert weather.format_daily(daily) == "High: 22°C, Low: 0°C, Overcast, UV Index 4"

    def test_unknown_code_and_gaps(self):
        daily = {"temperature_2m_max": [None], "temperature_2m_min": [10.2], "weathercode": [42], "uv_index_max": []}
        assert weather.format_daily(daily) == "High: n/a°C, Low: 10°C, Unknown weather, UV Index n/a"

    def test_no_rows(self):
        assert weather.format_daily({}) == weather.NO_DATA
        assert weather.format_daily({"time": [], "temperature_2m_max": []}) == weather.NO_DATA

    def test_summarize_range_skips_nulls(self):
        summary = weather.summarize_range({
            "time": ["2024-06-01", "2024-06-02", "2024-06-03"],
            "temperature_2m_max": [20.0, None, 24.0],
            "temperature_2m_min": [10.0, 12.0, None],
            "precipitation_sum": [1.5, None, 2.0],
            "windspeed_10m_max": [None, None, None],
        })
        assert summary == {
            "avgMaxTemp": 22.0,
            "avgMinTemp": 11.0,
            "totalPrecipitation": 3.5,
            "avgWindSpeed": None,
            "dataPoints": 3,
        }


class TestWeatherAdapter:
    @pytest.mark.asyncio
    async def test_day_mode(self, cfg, london, june_2024):
        with patch("earthinsights.services.weather.get_json", AsyncMock(return_value=LONDON_DAY)):
            result = await WeatherAdapter(cfg).fetch(london, june_2024)
        assert result.ok
        assert result.source == "weather"
        assert result.target == "London"
        assert result.payload["weather"] == "High: 22°C, Low: 14°C, Mainly clear, UV Index 5"
        assert result.payload["date"] == "2024-06-01"

    @pytest.mark.asyncio
    async def test_range_mode(self, cfg, london, june_2024):
        data = {
            "daily": {
                "time": ["2024-06-01", "2024-06-02"],
                "temperature_2m_max": [20.0, 22.0],
                "temperature_2m_min": [10.0, 12.0],
                "precipitation_sum": [0.0, 4.2],
                "windspeed_10m_max": [15.0, 25.0],
            },
            "daily_units": {"temperature_2m_max": "°C"},
        }
        with patch("earthinsights.services.weather.get_json", AsyncMock(return_value=data)):
            result = await WeatherAdapter(cfg, mode="range").fetch(london, june_2024)
        assert result.ok
        assert result.payload["summary"]["avgMaxTemp"] == 21.0
        assert result.payload["summary"]["totalPrecipitation"] == 4.2
        assert result.payload["dailyData"]["dates"] == ["2024-06-01", "2024-06-02"]
        assert result.payload["dateRange"] == {"start": "2024-06-01", "end": "2024-06-30"}

    @pytest.mark.asyncio
    async def test_range_mode_without_rows_is_success(self, cfg, london, june_2024):
        with patch("earthinsights.services.weather.get_json", AsyncMock(return_value={"daily": {}})):
            result = await WeatherAdapter(cfg, mode="range").fetch(london, june_2024)
        assert result.ok
        assert result.metadata["note"] == weather.NO_DATA

    @pytest.mark.asyncio
    async def test_upstream_error_is_failure(self, cfg, london, june_2024):
        with patch("earthinsights.services.weather.get_json", AsyncMock(side_effect=_status_error(500))):
            result = await WeatherAdapter(cfg).fetch(london, june_2024)
        assert not result.ok
        assert "HTTP 500" in result.error
        assert result.target == "London"

    @pytest.mark.asyncio
    async def test_slow_upstream_times_out(self, cfg, london, june_2024):
        async def slow(*args, **kwargs):
            await asyncio.sleep(5)

        with patch("earthinsights.services.weather.get_json", slow):
            result = await WeatherAdapter(cfg).fetch(london, june_2024, Deadline(0.05))
        assert not result.ok
        assert "timed out" in result.error

    @pytest.mark.asyncio
    async def test_exhausted_deadline_skips_call(self, cfg, london, june_2024):
        get = AsyncMock(return_value=LONDON_DAY)
        with patch("earthinsights.services.weather.get_json", get):
            result = await WeatherAdapter(cfg).fetch(london, june_2024, Deadline(0))
        assert not result.ok
        get.assert_not_awaited()


class TestNewsAdapter:
    @pytest.mark.asyncio
    async def test_collaborator_error_degrades_to_empty(self, cfg, london, june_2024):
        with patch.object(news, "top_headlines", AsyncMock(side_effect=RuntimeError("socket closed"))):
            result = await NewsAdapter(cfg).fetch(london, june_2024)
        assert result.ok
        assert result.payload["articles"] == []
        assert result.metadata["note"] == "News unavailable"

    @pytest.mark.asyncio
    async def test_slow_news_degrades_to_empty(self, cfg, london, june_2024):
        async def slow(*args, **kwargs):
            await asyncio.sleep(5)

        with patch.object(news, "top_headlines", slow):
            result = await NewsAdapter(cfg).fetch(london, june_2024, Deadline(0.05))
        assert result.ok
        assert result.payload["articles"] == []

    @pytest.mark.asyncio
    async def test_no_iso_code_is_skipped(self, cfg, europe, june_2024):
        top = AsyncMock()
        with patch.object(news, "top_headlines", top):
            result = await NewsAdapter(cfg).fetch(europe, june_2024)
        assert result.ok
        assert result.payload["articles"] == []
        assert "skipped" in result.metadata
        top.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_top_three_normalized(self, cfg):
        articles = [{"title": f"t{i}", "url": f"https://n.test/{i}", "source": {"name": "Wire"}} for i in range(5)]
        with patch("earthinsights.services.news.get_json", AsyncMock(return_value={"articles": articles})) as get:
            found = await news.top_headlines("GB", cfg=cfg)
        assert found == [{"title": f"t{i}", "source": "Wire", "url": f"https://n.test/{i}"} for i in range(3)]
        assert get.await_args.kwargs["params"]["country"] == "gb"

    @pytest.mark.asyncio
    async def test_missing_key_is_empty(self, bare_cfg):
        get = AsyncMock()
        with patch("earthinsights.services.news.get_json", get):
            assert await news.top_headlines("GB", cfg=bare_cfg) == []
        get.assert_not_awaited()


class TestHistoricalAdapter:
    @pytest.mark.asyncio
    async def test_range_capped_and_truncated(self, cfg, london):
        entries = [{"title": f"APOD {i}", "date": f"2024-01-{i + 1:02d}", "url": f"https://apod.test/{i}.jpg",
                    "media_type": "image", "explanation": "..."} for i in range(31)]
        get = AsyncMock(return_value=entries)
        tf = Timeframe(start=date(2024, 1, 1), end=date(2024, 12, 31))
        with patch("earthinsights.services.nasa.get_json", get):
            result = await HistoricalAdapter(cfg).fetch(london, tf)
        assert result.ok
        assert get.await_args.kwargs["params"]["end_date"] == "2024-01-31"
        assert len(result.payload["images"]) == 5
        assert result.metadata["totalImages"] == 31
        assert result.metadata["rangeCapped"] is True

    def test_cap_never_passes_today(self, cfg):
        start = date.today() - timedelta(days=3)
        s, e, capped = HistoricalAdapter(cfg).cap_range(start, start + timedelta(days=60))
        assert s == start
        assert e <= date.today() + timedelta(days=1)
        assert capped

    @pytest.mark.asyncio
    async def test_missing_key_is_failure(self, bare_cfg, london, june_2024):
        result = await HistoricalAdapter(bare_cfg).fetch(london, june_2024)
        assert not result.ok
        assert "NASA_API_KEY" in result.error

    @pytest.mark.asyncio
    async def test_bad_range_message(self, cfg, london, june_2024):
        with patch("earthinsights.services.nasa.get_json", AsyncMock(side_effect=_status_error(400))):
            result = await HistoricalAdapter(cfg).fetch(london, june_2024)
        assert not result.ok
        assert result.error == "Invalid date range for APOD data"
