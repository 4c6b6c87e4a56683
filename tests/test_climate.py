"""Tests for climate.py: zone classification, season lookup and weather fetching."""

from unittest.mock import patch, MagicMock

import pytest
import requests

from climate import (
    MOCK_WEATHER,
    WeatherServiceError,
    determine_climate_zone,
    fetch_current_weather,
    get_current_season,
    predict_climate,
)
from crop_database import InvalidInput


def _weather_response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.text = "{}" if payload is not None else ""
    response.json.return_value = payload if payload is not None else {}
    return response


# ── Climate zones ──

class TestDetermineClimateZone:
    def test_tropical_wet(self):
        zone = determine_climate_zone(30, 85)
        assert zone["name"] == "Tropical"
        assert zone["type"] == "Tropical Wet"
        assert zone["suitable_for_farming"] is True

    def test_tropical_dry(self):
        assert determine_climate_zone(25, 60)["type"] == "Tropical Dry"

    def test_arid(self):
        zone = determine_climate_zone(32, 25)
        assert zone["name"] == "Arid"
        assert zone["suitable_for_farming"] is True

    def test_arid_takes_precedence_over_temperate(self):
        assert determine_climate_zone(22, 30)["name"] == "Arid"

    def test_temperate(self):
        assert determine_climate_zone(18, 55)["name"] == "Temperate"

    def test_cold_not_suitable(self):
        zone = determine_climate_zone(4, 70)
        assert zone["name"] == "Cold"
        assert zone["suitable_for_farming"] is False

    def test_hot_mid_humidity_unclassified(self):
        zone = determine_climate_zone(30, 50)
        assert zone["name"] == "Unclassified"
        assert zone["suitable_for_farming"] is False


# ── Seasons ──

class TestGetCurrentSeason:
    @pytest.mark.parametrize("month,name", [
        (3, "Summer"), (6, "Summer"),
        (7, "Monsoon"), (10, "Monsoon"),
        (11, "Winter"), (1, "Winter"), (2, "Winter"),
    ])
    def test_month_to_season(self, month, name):
        assert get_current_season(month)["name"] == name

    def test_kharif_crops(self):
        season = get_current_season(8)
        assert season["farming_season"].startswith("Kharif")
        assert "Rice" in season["crops"]

    def test_defaults_to_current_month(self):
        assert get_current_season()["name"] in {"Summer", "Monsoon", "Winter"}


# ── Weather fetching ──

class TestFetchCurrentWeather:
    def test_no_api_key_returns_mock(self):
        assert fetch_current_weather(12.9, 77.6, api_key="") is MOCK_WEATHER

    @patch("climate.requests.get")
    def test_calls_openweathermap(self, mock_get):
        mock_get.return_value = _weather_response(payload={"main": {"temp": 31, "humidity": 40}})
        data = fetch_current_weather(12.9, 77.6, api_key="k")
        assert data["main"]["temp"] == 31
        _, kwargs = mock_get.call_args
        assert kwargs["params"]["units"] == "metric"
        assert kwargs["params"]["lat"] == 12.9
        assert kwargs["timeout"] > 0

    @patch("climate.requests.get")
    def test_http_error_raises(self, mock_get):
        mock_get.return_value = _weather_response(401, {"message": "Invalid API key"})
        with pytest.raises(WeatherServiceError, match="Invalid API key"):
            fetch_current_weather(12.9, 77.6, api_key="bad")

    @patch("climate.requests.get")
    def test_timeout_raises(self, mock_get):
        mock_get.side_effect = requests.exceptions.Timeout()
        with pytest.raises(WeatherServiceError, match="timed out"):
            fetch_current_weather(12.9, 77.6, api_key="k")

    @patch("climate.requests.get")
    def test_connection_error_raises(self, mock_get):
        mock_get.side_effect = requests.exceptions.ConnectionError("refused")
        with pytest.raises(WeatherServiceError):
            fetch_current_weather(12.9, 77.6, api_key="k")


# ── Prediction ──

class TestPredictClimate:
    def test_mock_weather_prediction(self):
        result = predict_climate(18.5, 73.8, api_key="", month=8)
        assert result["success"] is True
        assert result["location"]["area"] == "Test Location, IN"
        assert result["location"]["coordinates"] == {"latitude": 18.5, "longitude": 73.8}
        assert result["current_weather"]["temperature"] == 25
        assert result["current_weather"]["description"] == "clear sky"
        assert result["climate_zone"]["name"] == "Tropical"
        assert result["season"]["name"] == "Monsoon"
        assert result["suitable_for_farming"] is True
        assert "timestamp" in result

    def test_area_overrides_weather_name(self):
        assert predict_climate(18.5, 73.8, area="Pune Farm", api_key="")["location"]["area"] == "Pune Farm"

    def test_zero_coordinates_allowed(self):
        assert predict_climate(0, 0, api_key="")["success"] is True

    @pytest.mark.parametrize("lat,lon", [(None, 73.8), (18.5, None), ("", 73.8)])
    def test_missing_coordinates(self, lat, lon):
        with pytest.raises(InvalidInput):
            predict_climate(lat, lon, api_key="")

    @patch("climate.requests.get")
    def test_live_weather_classified(self, mock_get):
        mock_get.return_value = _weather_response(payload={
            "name": "Jodhpur",
            "sys": {"country": "IN"},
            "main": {"temp": 36, "feels_like": 38, "humidity": 20, "pressure": 1005},
            "weather": [{"main": "Clear", "description": "clear sky"}],
            "wind": {"speed": 4.1},
        })
        result = predict_climate(26.2, 73.0, api_key="k")
        assert result["climate_zone"]["name"] == "Arid"
        assert result["current_weather"]["wind_speed"] == 4.1

    @patch("climate.requests.get")
    def test_incomplete_weather_payload(self, mock_get):
        mock_get.return_value = _weather_response(payload={"main": {}})
        with pytest.raises(WeatherServiceError):
            predict_climate(26.2, 73.0, api_key="k")
