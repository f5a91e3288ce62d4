from datetime import date
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DataType = Literal["satellite", "weather", "news", "historical"]
DATA_TYPES: tuple[str, ...] = ("satellite", "weather", "news", "historical")

TargetKind = Literal["country", "continent", "city", "point"]
Confidence = Literal["high", "medium", "low"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Location(BaseModel):
    lat: float
    lon: float


class GeoTarget(CamelModel):
    model_config = ConfigDict(frozen=True)

    name: str
    kind: TargetKind
    lat: float
    lon: float
    iso2: str | None = None
    capital: str | None = None
    region: str | None = None
    countries: tuple[str, ...] = ()


class Timeframe(CamelModel):
    start: date | None = None
    end: date | None = None
    period: str | None = None
    confidence: Confidence | None = None


class SourceSuccess(CamelModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["success"] = "success"
    source: DataType
    type: str
    target: str
    payload: dict[str, Any]
    metadata: dict[str, Any] = {}

    @property
    def ok(self) -> bool:
        return True


class SourceFailure(CamelModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["failure"] = "failure"
    source: DataType
    target: str
    error: str

    @property
    def ok(self) -> bool:
        return False


SourceResult = Annotated[Union[SourceSuccess, SourceFailure], Field(discriminator="status")]


class EnvelopeMetadata(CamelModel):
    total_requested: int
    success_count: int
    failure_count: int
    processing_time_ms: int
    sources_used: list[str] = []


class ResponseEnvelope(CamelModel):
    original_input: Any
    resolved_targets: list[GeoTarget]
    results: list[SourceResult]
    synthesis: str | None = None
    synthesis_note: str | None = None
    metadata: EnvelopeMetadata

    def successes(self) -> list[SourceSuccess]:
        return [r for r in self.results if r.ok]

    def for_target(self, name: str) -> dict[str, SourceSuccess | SourceFailure]:
        return {r.source: r for r in self.results if r.target == name}
