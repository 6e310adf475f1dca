from .base import Base
from .condition import Condition
from .location import Location
from .statistics import MonthTemperature, Statistics
from .weather_reading import WeatherReading

__all__ = [
    "Base",
    "Condition",
    "Location",
    "MonthTemperature",
    "Statistics",
    "WeatherReading",
]
