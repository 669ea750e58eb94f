"""Weather conditions along the route."""

from enum import Enum


class WeatherCondition(str, Enum):
    """Weather condition types."""

    CLEAR = "clear"
    SUNNY = "sunny"
    PARTLY_CLOUDY = "partly_cloudy"
    CLOUDY = "cloudy"
    HEADWIND = "headwind"
    TAILWIND = "tailwind"
    SIDEWIND = "sidewind"
    RAIN = "rain"
    STORM = "storm"
    HOT = "hot"
    COLD = "cold"
    HOT_SUNNY = "hot_sunny"

    def is_wet(self) -> bool:
        """Check if the road is wet."""
        return self in (WeatherCondition.RAIN, WeatherCondition.STORM)

    def is_windy(self) -> bool:
        """Check if wind dominates the conditions."""
        return self in (
            WeatherCondition.HEADWIND,
            WeatherCondition.TAILWIND,
            WeatherCondition.SIDEWIND,
        )
