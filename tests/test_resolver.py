from unittest.mock import AsyncMock

import pytest

from earthinsights.core.errors import NotFoundError, ValidationError
from earthinsights.schemas.common import Location
from earthinsights.services import gazetteer
from earthinsights.services.resolver import ResolveInput, resolve


@pytest.mark.asyncio
@pytest.mark.parametrize("lat,lon", [(0, 0), (90, 180), (-90, -180), (51.5, -0.13), (-33.87, 151.21), (12.345678, 98.7654)])
async def test_coordinates_returned_exactly(lat, lon):
    [target] = await resolve(ResolveInput(location={"lat": lat, "lon": lon}))
    assert (target.lat, target.lon) == (lat, lon)


@pytest.mark.asyncio
@pytest.mark.parametrize("lat,lon", [(90.5, 0), (-91, 0), (0, 180.01), (0, -200), (1000, 1000)])
async def test_coordinates_out_of_range(lat, lon):
    with pytest.raises(ValidationError) as exc:
        await resolve(ResolveInput(location={"lat": lat, "lon": lon}))
    assert exc.value.title == "Invalid coordinates"


@pytest.mark.asyncio
async def test_coordinates_are_idempotent():
    inp = ResolveInput(location=Location(lat=48.85, lon=2.35))
    first = await resolve(inp)
    second = await resolve(inp)
    assert first == second


@pytest.mark.asyncio
async def test_coordinates_near_known_city():
    [target] = await resolve(ResolveInput(location={"lat": 51.5, "lon": -0.13}))
    assert target.name == "London"
    assert target.kind == "city"
    assert target.iso2 == "GB"


@pytest.mark.asyncio
async def test_coordinates_in_open_ocean():
    [target] = await resolve(ResolveInput(location={"lat": -40.0, "lon": -30.0}))
    assert target.kind == "point"
    assert target.name == "-40.0000, -30.0000"
    assert target.iso2 is None


@pytest.mark.asyncio
async def test_non_numeric_coordinates():
    with pytest.raises(ValidationError):
        await resolve(ResolveInput(location={"lat": "north", "lon": 0}))


@pytest.mark.asyncio
@pytest.mark.parametrize("name,expected,kind", [
    ("Europe", "Europe", "continent"),
    ("  NIGERIA ", "Nigeria", "country"),
    ("tokyo", "Tokyo", "city"),
    ("NYC", "New York", "city"),
    ("uk", "United Kingdom", "country"),
    ("Greater London area", "London", "city"),
])
async def test_resolve_by_name(name, expected, kind):
    [target] = await resolve(ResolveInput(location=name))
    assert target.name == expected
    assert target.kind == kind


@pytest.mark.asyncio
async def test_continent_carries_member_countries():
    [target] = await resolve(ResolveInput(location="europe"))
    assert "Germany" in target.countries
    assert target.lat == pytest.approx(54.5, abs=0.1)
    assert target.lon == pytest.approx(15.3, abs=0.1)


@pytest.mark.asyncio
async def test_unknown_name_has_suggestions():
    with pytest.raises(NotFoundError) as exc:
        await resolve(ResolveInput(location="Atlantis"))
    assert exc.value.status_code == 404
    assert any("London" in s for s in exc.value.suggestions)


@pytest.mark.asyncio
async def test_countries_resolve_to_capitals():
    targets = await resolve(ResolveInput(countries=["France", "Narnia", "Kenya"]))
    assert [t.name for t in targets] == ["France", "Kenya"]
    assert targets[0].capital == "Paris"
    assert (targets[1].lat, targets[1].lon) == (-1.2921, 36.8219)


@pytest.mark.asyncio
async def test_unmapped_countries_only():
    with pytest.raises(NotFoundError):
        await resolve(ResolveInput(countries=["Narnia", "Gondor"]))


@pytest.mark.asyncio
async def test_image_detection_path():
    detector = AsyncMock()
    detector.detect_countries.return_value = ["Nigeria", "Ghana", "Wakanda"]
    targets = await resolve(ResolveInput(image_url="https://example.com/earth.png"), detector)
    detector.detect_countries.assert_awaited_once_with("https://example.com/earth.png")
    assert [t.iso2 for t in targets] == ["NG", "GH"]


@pytest.mark.asyncio
async def test_countries_take_priority_over_image():
    detector = AsyncMock()
    targets = await resolve(ResolveInput(image_url="https://example.com/earth.png", countries=["Japan"]), detector)
    detector.detect_countries.assert_not_awaited()
    assert targets[0].capital == "Tokyo"


@pytest.mark.asyncio
async def test_no_input():
    with pytest.raises(ValidationError):
        await resolve(ResolveInput())


def test_gazetteer_tables_are_read_only():
    with pytest.raises(TypeError):
        gazetteer.CITIES["atlantis"] = {"lat": 0, "lon": 0, "iso2": "XX"}
