"""
AgriSense - Climate insights.
Current weather at a coordinate (OpenWeatherMap), rule-based climate-zone
classification and the Indian farming season for the month.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, Any, Optional

import requests

from config import Config
from crop_database import InvalidInput

logger = logging.getLogger(__name__)

OPENWEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"

# Returned when no API key is configured (local development / tests)
MOCK_WEATHER: Dict[str, Any] = {
    "name": "Test Location",
    "sys": {"country": "IN"},
    "main": {"temp": 25, "feels_like": 28, "humidity": 70, "pressure": 1013},
    "weather": [{"description": "clear sky", "main": "Clear"}],
    "wind": {"speed": 2.5},
}


class WeatherServiceError(RuntimeError):
    """The weather provider could not be reached or returned an error."""


CLIMATE_ZONES = [
    {
        "name": "Tropical",
        "types": ["Tropical Wet", "Tropical Dry"],
        "temperature_range": "25°C and above",
        "humidity_range": "60% and above",
        "typical_crops": ["Rice", "Sugarcane", "Banana", "Jute", "Turmeric"],
        "regions": ["Kerala", "Coastal Karnataka", "West Bengal", "Assam"],
    },
    {
        "name": "Arid",
        "types": ["Desert/Semi-arid"],
        "temperature_range": "20°C and above",
        "humidity_range": "below 40%",
        "typical_crops": ["Bajra", "Jowar", "Cumin", "Watermelon"],
        "regions": ["Rajasthan", "Kutch", "Western Haryana"],
    },
    {
        "name": "Temperate",
        "types": ["Moderate climate"],
        "temperature_range": "10°C to 25°C",
        "humidity_range": "any",
        "typical_crops": ["Wheat", "Barley", "Mustard", "Potato", "Cauliflower"],
        "regions": ["Punjab", "Uttar Pradesh", "Himachal foothills"],
    },
    {
        "name": "Cold",
        "types": ["Alpine/Mountain"],
        "temperature_range": "below 10°C",
        "humidity_range": "any",
        "typical_crops": ["Barley", "Apple", "Saffron"],
        "regions": ["Ladakh", "Upper Himachal", "Sikkim highlands"],
    },
]


def determine_climate_zone(temperature: float, humidity: float) -> Dict[str, Any]:
    """Classify a weather observation into a climate zone. First matching rule wins."""
    if temperature >= 25 and humidity >= 60:
        return {
            "name": "Tropical",
            "type": "Tropical Wet" if humidity >= 80 else "Tropical Dry",
            "characteristics": [
                "High temperature year-round",
                "Abundant rainfall",
                "High humidity",
                "Suitable for rice, sugarcane, tropical fruits",
            ],
            "suitable_for_farming": True,
        }
    if temperature >= 20 and humidity < 40:
        return {
            "name": "Arid",
            "type": "Desert/Semi-arid",
            "characteristics": [
                "Low rainfall",
                "High temperature variation",
                "Low humidity",
                "Suitable for drought-resistant crops: bajra, jowar",
            ],
            # with irrigation
            "suitable_for_farming": True,
        }
    if 10 <= temperature < 25:
        return {
            "name": "Temperate",
            "type": "Moderate climate",
            "characteristics": [
                "Moderate temperature",
                "Four distinct seasons",
                "Suitable for wheat, barley, vegetables",
            ],
            "suitable_for_farming": True,
        }
    if temperature < 10:
        return {
            "name": "Cold",
            "type": "Alpine/Mountain",
            "characteristics": [
                "Low temperature",
                "Short growing season",
                "Limited crop variety",
            ],
            "suitable_for_farming": False,
        }
    # Hot with moderate humidity (40-60%) falls between the rules above
    return {
        "name": "Unclassified",
        "type": "",
        "characteristics": [],
        "suitable_for_farming": False,
    }


def get_current_season(month: Optional[int] = None) -> Dict[str, Any]:
    """Indian farming season for a month (1-12); defaults to the current month."""
    if month is None:
        month = datetime.now().month
    if 3 <= month <= 6:
        return {
            "name": "Summer",
            "farming_season": "Zaid (March-June)",
            "crops": ["Watermelon", "Cucumber", "Muskmelon", "Pumpkin"],
        }
    if 7 <= month <= 10:
        return {
            "name": "Monsoon",
            "farming_season": "Kharif (June-October)",
            "crops": ["Rice", "Maize", "Cotton", "Soybean", "Groundnut"],
        }
    return {
        "name": "Winter",
        "farming_season": "Rabi (October-March)",
        "crops": ["Wheat", "Barley", "Mustard", "Chickpea", "Potato"],
    }


def fetch_current_weather(latitude: float, longitude: float, api_key: Optional[str] = None) -> Dict[str, Any]:
    """
    Raw OpenWeatherMap current-weather payload (metric units).
    Without an API key returns MOCK_WEATHER.
    """
    api_key = api_key if api_key is not None else Config.OPENWEATHER_API_KEY
    if not api_key:
        logger.debug("No OpenWeatherMap API key configured, using mock weather")
        return MOCK_WEATHER

    params = {"lat": latitude, "lon": longitude, "appid": api_key, "units": "metric"}
    try:
        response = requests.get(OPENWEATHER_URL, params=params, timeout=Config.WEATHER_TIMEOUT)
    except requests.exceptions.Timeout:
        raise WeatherServiceError("Weather API request timed out")
    except requests.exceptions.RequestException as e:
        raise WeatherServiceError(f"Failed to fetch weather: {e}")

    if response.status_code != 200:
        try:
            error_data = response.json() if response.text else {}
        except ValueError:
            error_data = {}
        raise WeatherServiceError(
            f"Weather API error: {error_data.get('message', f'HTTP {response.status_code}')}"
        )
    return response.json()


def _required_coordinate(value: Any, field: str) -> float:
    if value is None or isinstance(value, bool) or (isinstance(value, str) and not value.strip()):
        raise InvalidInput("Latitude and longitude are required")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"{field} must be a number")


def predict_climate(
    latitude: Any,
    longitude: Any,
    area: Optional[str] = None,
    api_key: Optional[str] = None,
    month: Optional[int] = None,
) -> Dict[str, Any]:
    """Weather, climate zone and farming season for a location."""
    latitude = _required_coordinate(latitude, "latitude")
    longitude = _required_coordinate(longitude, "longitude")

    data = fetch_current_weather(latitude, longitude, api_key=api_key)
    main = data.get("main", {})
    weather = data.get("weather", [{}])[0] if data.get("weather") else {}

    temperature = main.get("temp")
    humidity = main.get("humidity")
    if temperature is None or humidity is None:
        raise WeatherServiceError("Weather API response missing temperature or humidity")

    zone = determine_climate_zone(temperature, humidity)
    logger.info("Climate for (%s, %s): %s at %s°C / %s%%", latitude, longitude, zone["name"], temperature, humidity)

    return {
        "success": True,
        "location": {
            "area": area or f"{data.get('name', 'Unknown')}, {data.get('sys', {}).get('country', '')}",
            "coordinates": {"latitude": latitude, "longitude": longitude},
        },
        "current_weather": {
            "temperature": temperature,
            "feels_like": main.get("feels_like"),
            "humidity": humidity,
            "pressure": main.get("pressure"),
            "description": weather.get("description", "unknown"),
            "wind_speed": data.get("wind", {}).get("speed"),
        },
        "climate_zone": zone,
        "season": get_current_season(month),
        "suitable_for_farming": zone["suitable_for_farming"],
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
