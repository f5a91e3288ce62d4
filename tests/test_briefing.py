import smtplib
from unittest.mock import patch

import pytest

from earthinsights.core.errors import ConfigurationError, UpstreamError
from earthinsights.schemas.common import EnvelopeMetadata, GeoTarget, ResponseEnvelope, SourceFailure, SourceSuccess
from earthinsights.services.briefing import BriefingDispatcher, regions_from_envelope, render_briefing_html
from earthinsights.services.weather import NO_DATA

REGIONS = [
    {
        "country": "France",
        "capital": "Paris",
        "weather": "High: 22°C, Low: 14°C, Mainly clear, UV Index 5",
        "news": [{"title": "Storms <script>alert(1)</script>", "source": "Le Monde", "url": "https://n.test/?a=1&b=2"}],
    },
    {"country": "Kenya", "capital": "Nairobi", "weather": NO_DATA, "news": []},
]


def test_render_escapes_interpolated_text():
    html = render_briefing_html('https://img.test/earth.png?x="1"', "2024-06-01", "Clouds over <Europe>\nClear skies", REGIONS)
    assert "<script>" not in html
    assert "Storms &lt;script&gt;alert(1)&lt;/script&gt;" in html
    assert 'href="https://n.test/?a=1&amp;b=2"' in html
    assert 'src="https://img.test/earth.png?x=&quot;1&quot;"' in html
    assert "Clouds over &lt;Europe&gt;<br>Clear skies" in html
    assert "France (Paris)" in html
    assert "No recent news found." in html
    assert "Briefing for 2024-06-01" in html


def test_render_without_explanation():
    html = render_briefing_html("https://img.test/a.png", "2024-06-01", None, [])
    assert "No analysis available." in html


def test_regions_from_envelope():
    france = GeoTarget(name="France", kind="country", lat=48.85, lon=2.35, iso2="FR", capital="Paris")
    kenya = GeoTarget(name="Kenya", kind="country", lat=-1.29, lon=36.82, iso2="KE", capital="Nairobi")
    envelope = ResponseEnvelope(
        original_input={},
        resolved_targets=[france, kenya],
        results=[
            SourceSuccess(source="weather", type="weather_data", target="France", payload={"weather": "sunny"}),
            SourceSuccess(source="news", type="news_data", target="France", payload={"articles": [{"title": "t"}]}),
            SourceFailure(source="weather", target="Kenya", error="down"),
            SourceSuccess(source="news", type="news_data", target="Kenya", payload={"articles": []}),
        ],
        metadata=EnvelopeMetadata(total_requested=4, success_count=3, failure_count=1, processing_time_ms=1),
    )
    france_region, kenya_region = regions_from_envelope(envelope)
    assert france_region["weather"] == "sunny"
    assert france_region["news"] == [{"title": "t"}]
    assert france_region["capital"] == "Paris"
    assert kenya_region["weather"] == NO_DATA
    assert kenya_region["news"] == []


def test_unconfigured(cfg):
    with pytest.raises(ConfigurationError) as exc:
        BriefingDispatcher(cfg).ensure_configured()
    assert exc.value.status_code == 500


@pytest.mark.asyncio
async def test_unconfigured_send_never_connects(cfg):
    with patch("earthinsights.services.briefing.smtplib.SMTP") as smtp:
        with pytest.raises(ConfigurationError):
            await BriefingDispatcher(cfg).send("a@b.test", "https://img.test/a.png", "2024-06-01", "x", REGIONS)
    smtp.assert_not_called()


@pytest.mark.asyncio
async def test_send(smtp_cfg):
    with patch("earthinsights.services.briefing.smtplib.SMTP") as smtp:
        await BriefingDispatcher(smtp_cfg).send("reader@example.com", "https://img.test/a.png", "2024-06-01",
                                                "Clear skies", REGIONS)
    smtp.assert_called_once_with("smtp.gmail.com", 587, timeout=30)
    server = smtp.return_value.__enter__.return_value
    server.starttls.assert_called_once()
    server.login.assert_called_once_with("briefings@example.com", "app-password")
    msg = server.send_message.call_args.args[0]
    assert msg["To"] == "reader@example.com"
    assert msg["Subject"] == "Your Earth & Space Briefing for 2024-06-01"


@pytest.mark.asyncio
async def test_delivery_failure(smtp_cfg):
    with patch("earthinsights.services.briefing.smtplib.SMTP") as smtp:
        server = smtp.return_value.__enter__.return_value
        server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")
        with pytest.raises(UpstreamError):
            await BriefingDispatcher(smtp_cfg).send("reader@example.com", "https://img.test/a.png", "2024-06-01",
                                                    None, [])
