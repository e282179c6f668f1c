"""
Unit tests for travelog/api/geocoding.py

Geoapify is exercised through a patched requests.get; enrichment runs
against the in-memory FakeGeocoder from conftest.
"""
from unittest.mock import MagicMock, patch

import pytest
import requests

from conftest import FakeGeocoder
from travelog.api.geocoding import (
    GEOAPIFY_SEARCH_URL,
    GeoapifyGeocoder,
    GeoResult,
    GoogleGeocoder,
    build_geocoder,
    enrich_destinations,
)
from travelog.api.models import DestinationSuggestion


def _geoapify_response(payload, status_error=None):
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status.side_effect = status_error
    return response


class TestGeoapifyGeocoder:

    @patch("travelog.api.geocoding.requests.get")
    def test_first_feature(self, mock_get):
        mock_get.return_value = _geoapify_response({
            "features": [
                {"geometry": {"coordinates": [2.35, 48.85]}, "properties": {"formatted": "Paris, France"}},
                {"geometry": {"coordinates": [0, 0]}, "properties": {}},
            ]
        })
        geocoder = GeoapifyGeocoder("geo-key", timeout=5)

        result = geocoder.lookup("Paris, France")

        assert result == GeoResult(lat=48.85, lng=2.35, address="Paris, France")
        mock_get.assert_called_once_with(
            GEOAPIFY_SEARCH_URL,
            params={"text": "Paris, France", "apiKey": "geo-key"},
            timeout=5,
        )

    @patch("travelog.api.geocoding.requests.get")
    def test_each_lookup_is_its_own_request(self, mock_get):
        mock_get.return_value = _geoapify_response({"features": []})
        geocoder = GeoapifyGeocoder("geo-key")

        geocoder.lookup("Lisbon")
        geocoder.lookup("Porto")

        assert [c.kwargs["params"]["text"] for c in mock_get.call_args_list] == ["Lisbon", "Porto"]
        assert not hasattr(geocoder, "session")

    @patch("travelog.api.geocoding.requests.get")
    def test_no_features(self, mock_get):
        mock_get.return_value = _geoapify_response({"features": []})
        assert GeoapifyGeocoder("geo-key").lookup("Atlantis") is None

    @patch("travelog.api.geocoding.requests.get")
    def test_http_error_propagates(self, mock_get):
        mock_get.return_value = _geoapify_response({}, status_error=requests.HTTPError("401"))
        with pytest.raises(requests.HTTPError):
            GeoapifyGeocoder("bad-key").lookup("Paris")


class TestGoogleGeocoder:

    def test_lookup(self):
        with patch("travelog.api.geocoding.googlemaps.Client") as client_cls:
            client_cls.return_value.geocode.return_value = [{
                "geometry": {"location": {"lat": 35.01, "lng": 135.77}},
                "formatted_address": "Kyoto, Japan",
            }]
            result = GoogleGeocoder("AIza-test").lookup("Kyoto, Japan")

        assert result == GeoResult(lat=35.01, lng=135.77, address="Kyoto, Japan")
        client_cls.return_value.geocode.assert_called_once_with("Kyoto, Japan", language="en")


class TestBuildGeocoder:

    def test_prefers_geoapify(self):
        assert isinstance(build_geocoder("geo-key", "AIza-test"), GeoapifyGeocoder)

    def test_falls_back_to_google(self):
        with patch("travelog.api.geocoding.googlemaps.Client"):
            assert isinstance(build_geocoder("", "AIza-test"), GoogleGeocoder)

    def test_none_without_keys(self):
        assert build_geocoder("", "") is None


class TestEnrichDestinations:

    def _destinations(self):
        return [
            DestinationSuggestion(name="Lisbon", country="Portugal"),
            DestinationSuggestion(name="Porto", country="Portugal"),
            DestinationSuggestion(name="Faro", country="Portugal"),
        ]

    def test_preserves_order_and_length(self):
        geocoder = FakeGeocoder({
            "Lisbon, Portugal": GeoResult(38.72, -9.14, "Lisbon"),
            "Porto, Portugal": GeoResult(41.15, -8.61, "Porto"),
            "Faro, Portugal": GeoResult(37.02, -7.93, "Faro"),
        })
        result = enrich_destinations(self._destinations(), geocoder)
        assert [d.name for d in result] == ["Lisbon", "Porto", "Faro"]
        assert [d.address for d in result] == ["Lisbon", "Porto", "Faro"]
        assert result[1].coordinates == {"lat": 41.15, "lng": -8.61}

    def test_one_failure_leaves_only_that_item_unchanged(self):
        geocoder = FakeGeocoder({
            "Lisbon, Portugal": GeoResult(38.72, -9.14, "Lisbon"),
            "Porto, Portugal": requests.ConnectionError("network down"),
            "Faro, Portugal": GeoResult(37.02, -7.93, "Faro"),
        })
        result = enrich_destinations(self._destinations(), geocoder)
        assert len(result) == 3
        assert result[1].coordinates is None
        assert result[1].address is None
        assert result[0].coordinates is not None
        assert result[2].coordinates is not None

    def test_no_match_leaves_item_unchanged(self):
        result = enrich_destinations(self._destinations(), FakeGeocoder())
        assert all(d.coordinates is None for d in result)

    def test_without_geocoder(self):
        destinations = self._destinations()
        assert enrich_destinations(destinations, None) == destinations
