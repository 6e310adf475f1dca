from dataclasses import asdict
from typing import Any, Dict, List, Sequence

from src.weather_api.models import Location, Statistics, WeatherReading


def location_to_dict(location: Location) -> Dict[str, Any]:
    return {
        "location_id": location.location_id,
        "city_name": location.city_name,
        "country_code": location.country_code,
        "latitude": location.latitude,
        "longitude": location.longitude,
    }


def locations_to_list(locations: Sequence[Location]) -> List[Dict[str, Any]]:
    """Serialize a sequence of locations; an empty input yields `[]`."""
    return [location_to_dict(location) for location in locations or []]


def reading_to_dict(reading: WeatherReading) -> Dict[str, Any]:
    return {
        "id": reading.id,
        "location_id": reading.location_id,
        "temperature": reading.temperature,
        "temp_min": reading.temp_min,
        "temp_max": reading.temp_max,
        "date": reading.date.isoformat() if reading.date else None,
        "conditions": [
            {"type": condition.type, "weather_id": condition.weather_id}
            for condition in reading.conditions
        ],
    }


def statistics_to_dict(statistics: Statistics) -> Dict[str, Any]:
    return {
        "count": statistics.count,
        "month_temperature": [
            asdict(month) for month in statistics.month_temperature
        ],
        "daily_condition": dict(statistics.daily_condition),
    }
