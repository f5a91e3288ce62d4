# earthinsights/services/resolver.py
import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

from ..core.errors import NotFoundError, ValidationError
from ..schemas.common import GeoTarget, Location
from ..utils.geo import valid_coordinates
from . import gazetteer

logger = logging.getLogger(__name__)

MAX_DETECTED_COUNTRIES = 10


class CountryDetector(Protocol):
    async def detect_countries(self, image_url: str) -> list[str]: ...


@dataclass(frozen=True)
class ResolveInput:
    image_url: Optional[str] = None
    location: Location | dict | str | None = None
    countries: tuple[str, ...] | list[str] = field(default_factory=tuple)


def _coords(location) -> Optional[tuple[float, float]]:
    if isinstance(location, Location):
        return location.lat, location.lon
    if isinstance(location, dict) and "lat" in location and "lon" in location:
        try:
            return float(location["lat"]), float(location["lon"])
        except (TypeError, ValueError):
            raise ValidationError("Latitude and longitude must be numbers", title="Invalid coordinates")
    return None


def resolve_coordinates(lat: float, lon: float) -> GeoTarget:
    if not valid_coordinates(lat, lon):
        raise ValidationError(
            "Latitude must be between -90 and 90, longitude between -180 and 180",
            title="Invalid coordinates",
        )
    near = gazetteer.nearest_city(lat, lon)
    if near:
        key, row = near
        return GeoTarget(name=key.title(), kind="city", lat=lat, lon=lon, iso2=row["iso2"], region="city")
    return GeoTarget(name=f"{lat:.4f}, {lon:.4f}", kind="point", lat=lat, lon=lon)


def resolve_name(name: str) -> GeoTarget:
    target = gazetteer.lookup(name)
    if target is None:
        target = gazetteer.fuzzy_lookup(name)
        if target is not None:
            logger.info('Fuzzy matched "%s" to %s', name, target.name)
    if target is None:
        raise NotFoundError(
            f'Location "{name}" not found',
            title="Location not found",
            suggestions=[
                "Provide coordinates {lat, lon}",
                "Known places: " + ", ".join(gazetteer.known_places()),
            ],
        )
    return target


def resolve_countries(countries) -> list[GeoTarget]:
    targets = []
    for country in countries:
        t = gazetteer.capital_target(country)
        if t is None:
            logger.warning("Skipping %s: no capital mapping", country)
            continue
        targets.append(t)
    return targets


async def resolve(inp: ResolveInput, detector: Optional[CountryDetector] = None) -> list[GeoTarget]:
    """
    Turn the request's location inputs into GeoTargets. The first available
    input wins: coordinates, location name, country list, then image.
    """
    coords = _coords(inp.location)
    if coords is not None:
        return [resolve_coordinates(*coords)]

    if isinstance(inp.location, str) and inp.location.strip():
        return [resolve_name(inp.location)]

    if inp.countries:
        logger.info("Using manually provided countries: %s", ", ".join(inp.countries))
        targets = resolve_countries(inp.countries)
    elif inp.image_url and detector is not None:
        logger.info("Detecting countries from image")
        detected = (await detector.detect_countries(inp.image_url))[:MAX_DETECTED_COUNTRIES]
        logger.info("Detected countries: %s", ", ".join(detected) or "none")
        targets = resolve_countries(detected)
    else:
        raise ValidationError("Provide a location, coordinates, a country list or an image URL")

    if not targets:
        raise NotFoundError(
            "Could not resolve any countries from the request",
            title="No locations found",
            suggestions=["Pass an explicit `countries` list", "Use a clearer image of Earth"],
        )
    return targets
