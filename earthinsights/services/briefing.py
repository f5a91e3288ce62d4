# earthinsights/services/briefing.py
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import Any, Dict, List, Optional

from fastapi.concurrency import run_in_threadpool

from ..core.config import Settings, settings
from ..core.errors import ConfigurationError, UpstreamError
from ..schemas.common import ResponseEnvelope
from .weather import NO_DATA

logger = logging.getLogger(__name__)

TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <style>
    body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #555555; }}
    .container {{ max-width: 600px; margin: 20px auto; padding: 20px; border: 1px solid #dddddd; }}
    h2 {{ color: #2c3e50; }}
    img {{ max-width: 100%; height: auto; border-radius: 5px; }}
  </style>
</head>
<body>
  <div class="container">
    <h2>Your Earth &amp; Space Briefing for {date}</h2>
    <img src="{image_url}" alt="Satellite Image" />
    <h3 style="color: #333333; margin-top: 25px;">AI Scientist's Analysis</h3>
    <p>{explanation}</p>
    <h3 style="color: #333333; margin-top: 25px;">Regional Data</h3>
    {regions}
  </div>
</body>
</html>
"""

REGION = """<div style="margin-bottom: 20px; padding-bottom: 15px; border-bottom: 1px solid #eeeeee;">
      <h3 style="color: #333333;">{title}</h3>
      <p><strong>Weather:</strong> {weather}</p>
      <div><strong>Top Headlines:</strong></div>
      <ul>{headlines}</ul>
    </div>"""


def regions_from_envelope(envelope: ResponseEnvelope) -> List[Dict[str, Any]]:
    """Per-target weather and headlines, in resolved-target order."""
    regions = []
    for target in envelope.resolved_targets:
        by_source = envelope.for_target(target.name)
        weather = by_source.get("weather")
        news = by_source.get("news")
        regions.append({
            "country": target.name,
            "capital": target.capital,
            "lat": target.lat,
            "lon": target.lon,
            "weather": weather.payload.get("weather", NO_DATA) if weather is not None and weather.ok else NO_DATA,
            "news": news.payload.get("articles", []) if news is not None and news.ok else [],
        })
    return regions


def _headline(article: Dict[str, Any]) -> str:
    return '<li><a href="{url}" target="_blank">{title}</a> ({source})</li>'.format(
        url=escape(article.get("url") or "", quote=True),
        title=escape(article.get("title") or ""),
        source=escape(article.get("source") or ""),
    )


def render_briefing_html(image_url: str, date: str, explanation: Optional[str],
                         regions: List[Dict[str, Any]]) -> str:
    blocks = []
    for region in regions:
        title = region["country"] if not region.get("capital") else f"{region['country']} ({region['capital']})"
        articles = region.get("news") or []
        headlines = "".join(_headline(a) for a in articles) or "<li>No recent news found.</li>"
        blocks.append(REGION.format(title=escape(title), weather=escape(str(region.get("weather") or NO_DATA)),
                                    headlines=headlines))
    return TEMPLATE.format(
        date=escape(date),
        image_url=escape(image_url, quote=True),
        explanation=escape(explanation or "No analysis available.").replace("\n", "<br>"),
        regions="\n    ".join(blocks),
    )


class BriefingDispatcher:
    def __init__(self, cfg: Settings = settings):
        self.cfg = cfg

    def ensure_configured(self) -> None:
        if not self.cfg.smtp_configured:
            logger.error("Email service is not configured. Missing SMTP credentials or sender email.")
            raise ConfigurationError("Email service is not available: set SMTP_USERNAME, SMTP_PASSWORD and SENDER_EMAIL")

    def _send(self, recipient: str, subject: str, html: str) -> None:
        msg = MIMEMultipart("alternative")
        msg["From"] = self.cfg.sender_email
        msg["To"] = recipient
        msg["Subject"] = subject
        msg.attach(MIMEText(html, "html", "utf-8"))
        with smtplib.SMTP(self.cfg.smtp_host, self.cfg.smtp_port, timeout=30) as server:
            server.starttls()
            server.login(self.cfg.smtp_username, self.cfg.smtp_password)
            server.send_message(msg)

    async def send(self, recipient: str, image_url: str, date: str, explanation: Optional[str],
                   regions: List[Dict[str, Any]]) -> None:
        self.ensure_configured()
        html = render_briefing_html(image_url, date, explanation, regions)
        try:
            await run_in_threadpool(self._send, recipient, f"Your Earth & Space Briefing for {date}", html)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Error sending briefing to %s: %s", recipient, e)
            raise UpstreamError("Failed to send the briefing email")
        logger.info("Briefing email sent to %s", recipient)
