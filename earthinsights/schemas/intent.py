from pydantic import BaseModel, Field

from .common import CamelModel, Confidence, DataType, GeoTarget, Timeframe


class EventSpec(CamelModel):
    type: str
    keywords: list[str] = []
    severity: Confidence | None = None


class QueryIntent(CamelModel):
    locations: list[GeoTarget] = []
    timeframe: Timeframe = Field(default_factory=Timeframe)
    events: list[EventSpec] = []
    data_types: list[DataType] = []
    intent: str = ""
    confidence: Confidence = "medium"


# Shape of the language model reply before it becomes a QueryIntent.
class RawCoordinates(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)


class RawLocation(BaseModel):
    name: str | None = None
    type: str | None = None
    coordinates: RawCoordinates | None = None
    lat: float | None = Field(None, ge=-90, le=90)
    lon: float | None = Field(None, ge=-180, le=180)
    region: str | None = None


class RawTimeframe(BaseModel):
    start: str | None = None
    end: str | None = None
    period: str | None = None
    confidence: str | None = None


class RawEvent(BaseModel):
    type: str | None = None
    keywords: list[str] | None = None
    severity: str | None = None


class RawIntent(CamelModel):
    locations: list[RawLocation] | None = None
    timeframe: RawTimeframe | None = None
    events: list[RawEvent] | None = None
    data_types: list[str] | None = None
    intent: str | None = None
    confidence: str | None = None
