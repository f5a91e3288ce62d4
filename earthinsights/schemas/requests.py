# earthinsights/schemas/requests.py
from pydantic import Field
from typing import Literal, Optional
from .common import CamelModel, Location

class SearchRequest(CamelModel):
    query: str
    max_results: int = Field(10, ge=1, le=25)
    include_analysis: bool = True

class TimeTravelRequest(CamelModel):
    location: Location | str
    time_range: Literal["week", "month", "year", "decade"] = "year"
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    data_types: list[Literal["satellite", "weather", "apod", "analysis"]] = ["satellite", "weather"]

class ContextRequest(CamelModel):
    image_url: Optional[str] = None
    location: Location | str | None = None
    countries: list[str] = []
    date: Optional[str] = Field(None, description="YYYY-MM-DD; default 2024-06-01")

class EmailBriefingRequest(CamelModel):
    image_url: str
    recipient_email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    date: Optional[str] = None
    countries: list[str] = []

class ImageCompareRequest(CamelModel):
    images: list[str]
    comparison_type: Literal["general", "satellite", "weather", "temporal"] = "general"
    focus_areas: list[str] = []

class ImageRequest(CamelModel):
    image_url: str
