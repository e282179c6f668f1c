# travelog/api/geocoding.py
from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional

import googlemaps
import requests

from travelog.api.models import DestinationSuggestion

logger = logging.getLogger(__name__)

GEOAPIFY_SEARCH_URL = "https://api.geoapify.com/v1/geocode/search"
MAX_GEOCODE_WORKERS = 4


@dataclass(frozen=True)
class GeoResult:
    lat: float
    lng: float
    address: Optional[str] = None


class Geocoder:
    """Resolve a free-text place to coordinates. ``None`` means no match."""

    def lookup(self, query: str) -> Optional[GeoResult]:
        raise NotImplementedError


class GeoapifyGeocoder(Geocoder):
    """Geoapify forward geocoding.

    Each lookup is its own ``requests.get`` call, so one instance may be
    used from several worker threads at once.
    """

    def __init__(self, api_key: str, timeout: float = 10.0):
        self.api_key = api_key
        self.timeout = timeout

    def lookup(self, query: str) -> Optional[GeoResult]:
        """Return the first Geoapify feature for ``query``.

        Raises:
            requests.RequestException: on transport errors or a non-success status.
        """
        response = requests.get(
            GEOAPIFY_SEARCH_URL,
            params={"text": query, "apiKey": self.api_key},
            timeout=self.timeout,
        )
        response.raise_for_status()
        features = response.json().get("features") or []
        if not features:
            logger.warning(f"No results found for place: {query}")
            return None
        feature = features[0]
        lng, lat = feature["geometry"]["coordinates"][:2]
        return GeoResult(lat=float(lat), lng=float(lng), address=feature.get("properties", {}).get("formatted"))


class GoogleGeocoder(Geocoder):
    def __init__(self, api_key: str, timeout: float = 10.0):
        self._gmaps = googlemaps.Client(key=api_key, timeout=timeout)

    def lookup(self, query: str) -> Optional[GeoResult]:
        logger.debug(f"Geocoding place: {query}")
        results = self._gmaps.geocode(query, language="en")
        if not results:
            logger.warning(f"No results found for place: {query}")
            return None
        first = results[0]
        loc = first["geometry"]["location"]
        return GeoResult(lat=loc["lat"], lng=loc["lng"], address=first.get("formatted_address"))


def build_geocoder(geoapify_api_key: str = "", google_maps_api_key: str = "", timeout: float = 10.0) -> Optional[Geocoder]:
    """Pick Geoapify when configured, then Google, else no enrichment."""
    if geoapify_api_key:
        return GeoapifyGeocoder(geoapify_api_key, timeout=timeout)
    if google_maps_api_key:
        try:
            return GoogleGeocoder(google_maps_api_key, timeout=timeout)
        except ValueError as e:
            # googlemaps rejects malformed keys at construction time
            logger.error(f"Failed to initialize Google Maps client: {e}")
            return None
    logger.warning("No geocoding API key configured; destination enrichment disabled")
    return None


# ────────────────────────────────────────────────────────────────────────────────
# Destination enrichment
# ────────────────────────────────────────────────────────────────────────────────
def _enrich_one(destination: DestinationSuggestion, geocoder: Geocoder) -> DestinationSuggestion:
    try:
        result = geocoder.lookup(destination.geocode_query)
    except Exception as e:
        logger.error(f"Geocoding error for '{destination.name}': {e}")
        return destination
    if result is None:
        return destination
    destination.coordinates = {"lat": result.lat, "lng": result.lng}
    destination.address = result.address
    return destination


def enrich_destinations(
    destinations: List[DestinationSuggestion],
    geocoder: Optional[Geocoder],
    max_workers: int = MAX_GEOCODE_WORKERS,
) -> List[DestinationSuggestion]:
    """
    Attach coordinates and a formatted address to each destination.

    * Lookups run concurrently on a small thread pool; the returned list has
      the same length and order as the input.
    * A failed or empty lookup leaves that destination unchanged and is only
      logged, so the caller can still return the rest.
    """
    if not destinations or geocoder is None:
        return list(destinations)

    start_time = time.time()
    workers = max(1, min(max_workers, len(destinations)))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        enriched = list(pool.map(lambda d: _enrich_one(d, geocoder), destinations))

    found = sum(1 for d in enriched if d.coordinates is not None)
    logger.info(f"Geocoded {found}/{len(enriched)} destinations in {time.time() - start_time:.2f}s")
    return enriched


__all__ = [
    "GeoResult",
    "Geocoder",
    "GeoapifyGeocoder",
    "GoogleGeocoder",
    "build_geocoder",
    "enrich_destinations",
]
