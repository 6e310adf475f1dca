from dataclasses import dataclass, field
from typing import Dict, List


@dataclass
class MonthTemperature:
    """Temperature summary for one calendar month.

    Attributes:
        min (float): Lowest `temp_min` seen during the month.
        max (float): Highest `temp_max` seen during the month.
        avg (float): Mean of the observed temperatures.
        month (str): Month label formatted as YYYY-MM.
    """

    min: float
    max: float
    avg: float
    month: str


@dataclass
class Statistics:
    """Derived weather history of a location. Never persisted.

    Attributes:
        count (int): Number of stored readings.
        month_temperature (List[MonthTemperature]): Per-month summaries in
            ascending month order.
        daily_condition (Dict[str, List[str]]): ISO date mapped to the
            distinct condition labels observed that day.
    """

    count: int = 0
    month_temperature: List[MonthTemperature] = field(default_factory=list)
    daily_condition: Dict[str, List[str]] = field(default_factory=dict)
