"""Shared fixtures: WeatherAPI.com payloads."""
import pytest


def _condition(text="Partly cloudy", code=1003):
    return {"text": text, "icon": "//cdn.weatherapi.com/weather/64x64/day/116.png", "code": code}


def _current():
    return {
        "temp_c": 12.0, "temp_f": 53.6, "is_day": 1,
        "condition": _condition(),
        "wind_mph": 9.4, "wind_kph": 15.1, "wind_degree": 240, "wind_dir": "WSW",
        "pressure_mb": 1015.0, "pressure_in": 29.97,
        "precip_mm": 0.1, "precip_in": 0.0,
        "humidity": 82, "cloud": 75,
        "feelslike_c": 10.2, "feelslike_f": 50.4,
        "vis_km": 10.0, "vis_miles": 6.0,
        "uv": 3.0, "gust_mph": 13.2, "gust_kph": 21.2,
    }


def _hour(date, h):
    return {
        "time_epoch": 1717200000 + h * 3600, "time": f"{date} {h:02d}:00",
        "temp_c": 10.0 + h / 4, "temp_f": 50.0 + h / 2, "is_day": 1 if 6 <= h < 21 else 0,
        "condition": _condition("Clear", 1000),
        "wind_mph": 5.6, "wind_kph": 9.0, "wind_degree": 200, "wind_dir": "SSW",
        "pressure_mb": 1016.0, "pressure_in": 30.0,
        "precip_mm": 0.0, "precip_in": 0.0,
        "humidity": 70, "cloud": 20,
        "feelslike_c": 9.0, "feelslike_f": 48.2,
        "windchill_c": 9.0, "windchill_f": 48.2,
        "heatindex_c": 10.0, "heatindex_f": 50.0,
        "dewpoint_c": 5.0, "dewpoint_f": 41.0,
        "will_it_rain": 0, "chance_of_rain": 10,
        "will_it_snow": 0, "chance_of_snow": 0,
        "vis_km": 10.0, "vis_miles": 6.0,
        "gust_mph": 8.1, "gust_kph": 13.0, "uv": 4.0,
    }


def _forecast_day(index, hours, moon_illumination):
    date = f"2024-06-{index + 1:02d}"
    return {
        "date": date,
        "date_epoch": 1717200000 + index * 86400,
        "day": {
            "maxtemp_c": 18.4, "maxtemp_f": 65.1,
            "mintemp_c": 9.1, "mintemp_f": 48.4,
            "avgtemp_c": 13.6, "avgtemp_f": 56.5,
            "maxwind_mph": 11.2, "maxwind_kph": 18.0,
            "totalprecip_mm": 0.5, "totalprecip_in": 0.02,
            "totalsnow_cm": 0.0,
            "avgvis_km": 9.9, "avgvis_miles": 6.0,
            "avghumidity": 71,
            "daily_will_it_rain": 1, "daily_chance_of_rain": 80,
            "daily_will_it_snow": 0, "daily_chance_of_snow": 0,
            "condition": _condition("Patchy rain nearby", 1063),
            "uv": 4.0,
        },
        "astro": {
            "sunrise": "04:43 AM", "sunset": "09:11 PM",
            "moonrise": "02:31 AM", "moonset": "06:50 PM",
            "moon_phase": "Waning Crescent",
            "moon_illumination": moon_illumination,
        },
        "hour": [_hour(date, h) for h in range(hours)],
    }


def build_payload(days=0, hours=24, moon_illumination="56", name="London"):
    payload = {
        "location": {
            "name": name, "region": "City of London, Greater London", "country": "United Kingdom",
            "lat": 51.52, "lon": -0.11, "localtime": "2024-06-01 14:05",
        },
        "current": _current(),
    }
    if days:
        payload["forecast"] = {
            "forecastday": [_forecast_day(i, hours, moon_illumination) for i in range(days)]
        }
    return payload


@pytest.fixture
def make_payload():
    """Factory for WeatherAPI payloads: make_payload(days=3, hours=24, ...)."""
    return build_payload


@pytest.fixture
def current_payload():
    return build_payload()


@pytest.fixture
def forecast_payload():
    return build_payload(days=3)
