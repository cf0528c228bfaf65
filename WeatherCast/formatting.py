"""Display helpers - pure functions turning a snapshot into text."""
import math
from datetime import datetime
from enum import Enum
from typing import Tuple
from weather_data import WeatherSnapshot


class TemperatureUnit(Enum):
    CELSIUS = "C"
    FAHRENHEIT = "F"


def _round_half_away(value: float) -> int:
    # round() would send 20.5 to 20
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def format_temperature(temp: float, unit: TemperatureUnit = TemperatureUnit.CELSIUS) -> str:
    """
    Format a temperature for display.

    Args:
        temp: Temperature already in the requested unit
        unit: Unit suffix to append

    Returns:
        e.g. "21°C" or "-3°F"
    """
    return f"{_round_half_away(temp)}°{unit.value}"


def format_time(time_string: str) -> str:
    """Turn "2024-06-01 14:00" into "14:00"; other input comes back as is."""
    try:
        return datetime.strptime(time_string, "%Y-%m-%d %H:%M").strftime("%H:%M")
    except ValueError:
        return time_string


def weather_icon_url(icon: str) -> str:
    """WeatherAPI icon paths are protocol-relative ("//cdn...")."""
    if icon.startswith("http://") or icon.startswith("https://"):
        return icon
    return f"https:{icon}"


def format_weather_lines(weather: WeatherSnapshot,
                         unit: TemperatureUnit = TemperatureUnit.CELSIUS) -> Tuple[str, str, str]:
    """
    Build the three summary lines for a terminal display.

    Returns:
        (headline, condition, details), e.g.
        ("England, London  12°C", "Partly cloudy", "Feels 10°C  Hum 82%  Wind 15.1 km/h")
    """
    current = weather.current
    if unit is TemperatureUnit.CELSIUS:
        temp, feels = current.temp_c, current.feelslike_c
        wind = f"Wind {current.wind_kph:.1f} km/h"
    else:
        temp, feels = current.temp_f, current.feelslike_f
        wind = f"Wind {current.wind_mph:.1f} mph"

    place = f"{weather.location.region}, {weather.location.name}" if weather.location.region else weather.location.name
    headline = f"{place}  {format_temperature(temp, unit)}"
    details = f"Feels {format_temperature(feels, unit)}  Hum {current.humidity}%  {wind}"
    return headline, current.condition.text, details


def format_day_line(day, unit: TemperatureUnit = TemperatureUnit.CELSIUS) -> str:
    """One line per ForecastDay: date, min/max and condition."""
    if unit is TemperatureUnit.CELSIUS:
        low, high = day.day.mintemp_c, day.day.maxtemp_c
    else:
        low, high = day.day.mintemp_f, day.day.maxtemp_f
    return (
        f"{day.date}  {format_temperature(low, unit)} / {format_temperature(high, unit)}"
        f"  {day.day.condition.text}  rain {day.day.daily_chance_of_rain}%"
    )
