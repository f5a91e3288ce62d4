"""
Static place tables: continents, country centroids, major cities and
country capitals. All tables are read-only after import.
"""
from types import MappingProxyType
from typing import Optional

from ..schemas.common import GeoTarget
from ..utils.geo import haversine_km

CONTINENTS = MappingProxyType({
    "europe": {"lat": 54.5260, "lon": 15.2551, "countries": ("Germany", "France", "Italy", "Spain", "United Kingdom", "Poland", "Netherlands", "Belgium", "Greece", "Portugal")},
    "africa": {"lat": -8.7832, "lon": 34.5085, "countries": ("Nigeria", "Egypt", "South Africa", "Kenya", "Morocco", "Ethiopia", "Ghana", "Algeria", "Sudan", "Tanzania")},
    "asia": {"lat": 34.0479, "lon": 100.6197, "countries": ("China", "India", "Japan", "South Korea", "Thailand", "Vietnam", "Malaysia", "Indonesia", "Philippines", "Singapore")},
    "north america": {"lat": 45.0000, "lon": -100.0000, "countries": ("United States", "Canada", "Mexico")},
    "south america": {"lat": -8.7832, "lon": -55.4915, "countries": ("Brazil", "Argentina", "Chile", "Peru", "Colombia", "Venezuela", "Ecuador", "Bolivia", "Uruguay", "Paraguay")},
    "oceania": {"lat": -22.7359, "lon": 140.0188, "countries": ("Australia", "New Zealand")},
})

# country -> centroid + ISO 3166-1 alpha-2
COUNTRIES = MappingProxyType({
    "nigeria": {"lat": 9.0820, "lon": 8.6753, "iso2": "NG"},
    "united states": {"lat": 39.8283, "lon": -98.5795, "iso2": "US"},
    "china": {"lat": 35.8617, "lon": 104.1954, "iso2": "CN"},
    "india": {"lat": 20.5937, "lon": 78.9629, "iso2": "IN"},
    "brazil": {"lat": -14.2350, "lon": -51.9253, "iso2": "BR"},
    "russia": {"lat": 61.5240, "lon": 105.3188, "iso2": "RU"},
    "australia": {"lat": -25.2744, "lon": 133.7751, "iso2": "AU"},
    "germany": {"lat": 51.1657, "lon": 10.4515, "iso2": "DE"},
    "france": {"lat": 46.6034, "lon": 1.8883, "iso2": "FR"},
    "united kingdom": {"lat": 55.3781, "lon": -3.4360, "iso2": "GB"},
    "japan": {"lat": 36.2048, "lon": 138.2529, "iso2": "JP"},
    "canada": {"lat": 56.1304, "lon": -106.3468, "iso2": "CA"},
    "mexico": {"lat": 23.6345, "lon": -102.5528, "iso2": "MX"},
    "south africa": {"lat": -30.5595, "lon": 22.9375, "iso2": "ZA"},
    "egypt": {"lat": 26.8206, "lon": 30.8025, "iso2": "EG"},
    "kenya": {"lat": -0.0236, "lon": 37.9062, "iso2": "KE"},
    "ethiopia": {"lat": 9.1450, "lon": 40.4897, "iso2": "ET"},
    "argentina": {"lat": -38.4161, "lon": -63.6167, "iso2": "AR"},
    "chile": {"lat": -35.6751, "lon": -71.5430, "iso2": "CL"},
    "italy": {"lat": 41.8719, "lon": 12.5674, "iso2": "IT"},
    "spain": {"lat": 40.4637, "lon": -3.7492, "iso2": "ES"},
    "indonesia": {"lat": -0.7893, "lon": 113.9213, "iso2": "ID"},
})

# city -> coordinates + ISO2 of the country it is in
CITIES = MappingProxyType({
    "new york": {"lat": 40.7128, "lon": -74.0060, "iso2": "US"},
    "los angeles": {"lat": 34.0522, "lon": -118.2437, "iso2": "US"},
    "london": {"lat": 51.5074, "lon": -0.1278, "iso2": "GB"},
    "paris": {"lat": 48.8566, "lon": 2.3522, "iso2": "FR"},
    "berlin": {"lat": 52.5200, "lon": 13.4050, "iso2": "DE"},
    "tokyo": {"lat": 35.6762, "lon": 139.6503, "iso2": "JP"},
    "beijing": {"lat": 39.9042, "lon": 116.4074, "iso2": "CN"},
    "moscow": {"lat": 55.7558, "lon": 37.6176, "iso2": "RU"},
    "mumbai": {"lat": 19.0760, "lon": 72.8777, "iso2": "IN"},
    "sydney": {"lat": -33.8688, "lon": 151.2093, "iso2": "AU"},
    "dubai": {"lat": 25.2048, "lon": 55.2708, "iso2": "AE"},
    "toronto": {"lat": 43.6532, "lon": -79.3832, "iso2": "CA"},
    "cape town": {"lat": -33.9249, "lon": 18.4241, "iso2": "ZA"},
    "mexico city": {"lat": 19.4326, "lon": -99.1332, "iso2": "MX"},
    "rio de janeiro": {"lat": -22.9068, "lon": -43.1729, "iso2": "BR"},
    "nairobi": {"lat": -1.2921, "lon": 36.8219, "iso2": "KE"},
    "lagos": {"lat": 6.5244, "lon": 3.3792, "iso2": "NG"},
    "istanbul": {"lat": 41.0082, "lon": 28.9784, "iso2": "TR"},
    "seoul": {"lat": 37.5665, "lon": 126.9780, "iso2": "KR"},
    "buenos aires": {"lat": -34.6037, "lon": -58.3816, "iso2": "AR"},
    "singapore": {"lat": 1.3521, "lon": 103.8198, "iso2": "SG"},
    "cairo": {"lat": 30.0444, "lon": 31.2357, "iso2": "EG"},
    "jakarta": {"lat": -6.2088, "lon": 106.8456, "iso2": "ID"},
    "bangkok": {"lat": 13.7563, "lon": 100.5018, "iso2": "TH"},
    "athens": {"lat": 37.9838, "lon": 23.7275, "iso2": "GR"},
    "helsinki": {"lat": 60.1699, "lon": 24.9384, "iso2": "FI"},
    "amsterdam": {"lat": 52.3676, "lon": 4.9041, "iso2": "NL"},
    "california": {"lat": 36.7783, "lon": -119.4179, "iso2": "US"},
})

# country -> capital
CAPITALS = MappingProxyType({
    "united states": {"capital": "Washington, D.C.", "lat": 38.9072, "lon": -77.0369, "iso2": "US"},
    "canada": {"capital": "Ottawa", "lat": 45.4215, "lon": -75.6972, "iso2": "CA"},
    "mexico": {"capital": "Mexico City", "lat": 19.4326, "lon": -99.1332, "iso2": "MX"},
    "brazil": {"capital": "Brasília", "lat": -15.7939, "lon": -47.8828, "iso2": "BR"},
    "argentina": {"capital": "Buenos Aires", "lat": -34.6037, "lon": -58.3816, "iso2": "AR"},
    "chile": {"capital": "Santiago", "lat": -33.4489, "lon": -70.6693, "iso2": "CL"},
    "peru": {"capital": "Lima", "lat": -12.0464, "lon": -77.0428, "iso2": "PE"},
    "colombia": {"capital": "Bogotá", "lat": 4.7110, "lon": -74.0721, "iso2": "CO"},
    "venezuela": {"capital": "Caracas", "lat": 10.4806, "lon": -66.9036, "iso2": "VE"},
    "united kingdom": {"capital": "London", "lat": 51.5074, "lon": -0.1278, "iso2": "GB"},
    "ireland": {"capital": "Dublin", "lat": 53.3498, "lon": -6.2603, "iso2": "IE"},
    "france": {"capital": "Paris", "lat": 48.8566, "lon": 2.3522, "iso2": "FR"},
    "germany": {"capital": "Berlin", "lat": 52.5200, "lon": 13.4050, "iso2": "DE"},
    "italy": {"capital": "Rome", "lat": 41.9028, "lon": 12.4964, "iso2": "IT"},
    "spain": {"capital": "Madrid", "lat": 40.4168, "lon": -3.7038, "iso2": "ES"},
    "portugal": {"capital": "Lisbon", "lat": 38.7223, "lon": -9.1393, "iso2": "PT"},
    "netherlands": {"capital": "Amsterdam", "lat": 52.3676, "lon": 4.9041, "iso2": "NL"},
    "belgium": {"capital": "Brussels", "lat": 50.8503, "lon": 4.3517, "iso2": "BE"},
    "poland": {"capital": "Warsaw", "lat": 52.2297, "lon": 21.0122, "iso2": "PL"},
    "greece": {"capital": "Athens", "lat": 37.9838, "lon": 23.7275, "iso2": "GR"},
    "sweden": {"capital": "Stockholm", "lat": 59.3293, "lon": 18.0686, "iso2": "SE"},
    "norway": {"capital": "Oslo", "lat": 59.9139, "lon": 10.7522, "iso2": "NO"},
    "finland": {"capital": "Helsinki", "lat": 60.1699, "lon": 24.9384, "iso2": "FI"},
    "russia": {"capital": "Moscow", "lat": 55.7558, "lon": 37.6173, "iso2": "RU"},
    "turkey": {"capital": "Ankara", "lat": 39.9334, "lon": 32.8597, "iso2": "TR"},
    "egypt": {"capital": "Cairo", "lat": 30.0444, "lon": 31.2357, "iso2": "EG"},
    "nigeria": {"capital": "Abuja", "lat": 9.0765, "lon": 7.3986, "iso2": "NG"},
    "kenya": {"capital": "Nairobi", "lat": -1.2921, "lon": 36.8219, "iso2": "KE"},
    "ethiopia": {"capital": "Addis Ababa", "lat": 8.9806, "lon": 38.7578, "iso2": "ET"},
    "south africa": {"capital": "Pretoria", "lat": -25.7479, "lon": 28.2293, "iso2": "ZA"},
    "morocco": {"capital": "Rabat", "lat": 34.0209, "lon": -6.8416, "iso2": "MA"},
    "algeria": {"capital": "Algiers", "lat": 36.7538, "lon": 3.0588, "iso2": "DZ"},
    "ghana": {"capital": "Accra", "lat": 5.6037, "lon": -0.1870, "iso2": "GH"},
    "tanzania": {"capital": "Dodoma", "lat": -6.1630, "lon": 35.7516, "iso2": "TZ"},
    "sudan": {"capital": "Khartoum", "lat": 15.5007, "lon": 32.5599, "iso2": "SD"},
    "saudi arabia": {"capital": "Riyadh", "lat": 24.7136, "lon": 46.6753, "iso2": "SA"},
    "united arab emirates": {"capital": "Abu Dhabi", "lat": 24.4539, "lon": 54.3773, "iso2": "AE"},
    "india": {"capital": "New Delhi", "lat": 28.6139, "lon": 77.2090, "iso2": "IN"},
    "china": {"capital": "Beijing", "lat": 39.9042, "lon": 116.4074, "iso2": "CN"},
    "japan": {"capital": "Tokyo", "lat": 35.6762, "lon": 139.6503, "iso2": "JP"},
    "south korea": {"capital": "Seoul", "lat": 37.5665, "lon": 126.9780, "iso2": "KR"},
    "thailand": {"capital": "Bangkok", "lat": 13.7563, "lon": 100.5018, "iso2": "TH"},
    "vietnam": {"capital": "Hanoi", "lat": 21.0278, "lon": 105.8342, "iso2": "VN"},
    "malaysia": {"capital": "Kuala Lumpur", "lat": 3.1390, "lon": 101.6869, "iso2": "MY"},
    "indonesia": {"capital": "Jakarta", "lat": -6.2088, "lon": 106.8456, "iso2": "ID"},
    "philippines": {"capital": "Manila", "lat": 14.5995, "lon": 120.9842, "iso2": "PH"},
    "singapore": {"capital": "Singapore", "lat": 1.3521, "lon": 103.8198, "iso2": "SG"},
    "australia": {"capital": "Canberra", "lat": -35.2809, "lon": 149.1300, "iso2": "AU"},
    "new zealand": {"capital": "Wellington", "lat": -41.2865, "lon": 174.7762, "iso2": "NZ"},
})

ALIASES = MappingProxyType({
    "usa": "united states",
    "us": "united states",
    "united states of america": "united states",
    "uk": "united kingdom",
    "great britain": "united kingdom",
    "england": "united kingdom",
    "nyc": "new york",
})


def normalize(name: str) -> str:
    key = " ".join(name.lower().strip().split())
    return ALIASES.get(key, key)


def _continent(key: str) -> GeoTarget:
    row = CONTINENTS[key]
    return GeoTarget(name=key.title(), kind="continent", lat=row["lat"], lon=row["lon"],
                     region="continent", countries=row["countries"])


def _country(key: str) -> GeoTarget:
    row = COUNTRIES[key]
    cap = CAPITALS.get(key)
    return GeoTarget(name=key.title(), kind="country", lat=row["lat"], lon=row["lon"], iso2=row["iso2"],
                     capital=cap["capital"] if cap else None, region="country")


def _city(key: str) -> GeoTarget:
    row = CITIES[key]
    return GeoTarget(name=key.title(), kind="city", lat=row["lat"], lon=row["lon"], iso2=row["iso2"], region="city")


_TABLES = ((CONTINENTS, _continent), (COUNTRIES, _country), (CITIES, _city))


def lookup(name: str) -> Optional[GeoTarget]:
    """Exact, case-insensitive match over continents, countries, then cities."""
    key = normalize(name)
    for table, build in _TABLES:
        if key in table:
            return build(key)
    if key in CAPITALS:
        return capital_target(key)
    return None


def fuzzy_lookup(name: str) -> Optional[GeoTarget]:
    """Substring match in either direction; longest known key wins."""
    key = normalize(name)
    if not key:
        return None
    candidates = []
    for table, build in _TABLES:
        for known in table:
            if known in key or (len(key) >= 3 and key in known):
                candidates.append((len(known), known, build))
    if not candidates:
        return None
    _, known, build = max(candidates, key=lambda c: c[0])
    return build(known)


def capital_target(country: str) -> Optional[GeoTarget]:
    key = normalize(country)
    cap = CAPITALS.get(key)
    if cap is None:
        return None
    return GeoTarget(name=country.strip(), kind="country", lat=cap["lat"], lon=cap["lon"],
                     iso2=cap["iso2"], capital=cap["capital"], region="country")


def nearest_city(lat: float, lon: float, max_km: float = 100.0) -> Optional[tuple[str, dict]]:
    best = None
    for key, row in CITIES.items():
        d = haversine_km(lat, lon, row["lat"], row["lon"])
        if d <= max_km and (best is None or d < best[0]):
            best = (d, key, row)
    if best is None:
        return None
    return best[1], best[2]


def known_places() -> list[str]:
    return sorted({k.title() for table, _ in _TABLES for k in table})
