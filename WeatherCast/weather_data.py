"""Weather domain model - WeatherAPI.com payload as plain dataclasses."""
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional


class SchemaError(ValueError):
    """Raised when a payload does not match the expected shape."""
    pass


def _field(data: Dict[str, Any], key: str, path: str) -> Any:
    if not isinstance(data, dict):
        raise SchemaError(f"{path}: expected object, got {type(data).__name__}")
    if key not in data:
        raise SchemaError(f"{path}.{key}: missing required field")
    return data[key]


def _str(data: Dict[str, Any], key: str, path: str) -> str:
    value = _field(data, key, path)
    if not isinstance(value, str):
        raise SchemaError(f"{path}.{key}: expected string, got {type(value).__name__}")
    return value


def _float(data: Dict[str, Any], key: str, path: str) -> float:
    value = _field(data, key, path)
    # bool is an int subclass, but JSON true/false is not a number
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SchemaError(f"{path}.{key}: expected number, got {type(value).__name__}")
    return float(value)


def _int(data: Dict[str, Any], key: str, path: str) -> int:
    value = _field(data, key, path)
    if isinstance(value, bool):
        raise SchemaError(f"{path}.{key}: expected integer, got bool")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise SchemaError(f"{path}.{key}: expected integer, got {type(value).__name__}")


def _list(data: Dict[str, Any], key: str, path: str) -> list:
    value = _field(data, key, path)
    if not isinstance(value, list):
        raise SchemaError(f"{path}.{key}: expected array, got {type(value).__name__}")
    return value


def normalize_moon_illumination(value: Any) -> str:
    """
    Coerce moon_illumination into a string.

    WeatherAPI emits it as "56", 56 or 56.0 depending on the endpoint and
    day. Anything else (null, bool, objects) becomes "".

    Integers keep their integer form ("56"). A decoder that reads every
    number as a double would give "56.0" instead; both parse to the same
    value.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return ""
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def _flat(cls, data: Dict[str, Any], path: str):
    """Decode a dataclass of str/float/int scalars plus an optional Condition."""
    readers = {str: _str, float: _float, int: _int}
    kwargs = {}
    for f in fields(cls):
        if f.type is Condition:
            kwargs[f.name] = Condition.from_dict(_field(data, f.name, path), f"{path}.{f.name}")
        else:
            kwargs[f.name] = readers[f.type](data, f.name, path)
    return cls(**kwargs)


def _encode(obj) -> Dict[str, Any]:
    result = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if isinstance(value, list):
            result[f.name] = [_encode(item) for item in value]
        elif hasattr(value, "__dataclass_fields__"):
            result[f.name] = _encode(value)
        else:
            result[f.name] = value
    return result


@dataclass
class Condition:
    """Weather condition label (e.g. "Partly cloudy") and icon path."""
    text: str
    icon: str  # protocol-relative, e.g. "//cdn.weatherapi.com/weather/64x64/day/116.png"
    code: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any], path: str = "condition") -> "Condition":
        return _flat(cls, data, path)


@dataclass
class Location:
    name: str
    region: str
    country: str
    lat: float
    lon: float
    localtime: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any], path: str = "location") -> "Location":
        return _flat(cls, data, path)


@dataclass
class Current:
    """Current conditions block."""
    temp_c: float
    temp_f: float
    is_day: int
    condition: Condition
    wind_mph: float
    wind_kph: float
    wind_degree: int
    wind_dir: str
    pressure_mb: float
    pressure_in: float
    precip_mm: float
    precip_in: float
    humidity: int
    cloud: int
    feelslike_c: float
    feelslike_f: float
    vis_km: float
    vis_miles: float
    uv: float
    gust_mph: float
    gust_kph: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any], path: str = "current") -> "Current":
        return _flat(cls, data, path)


@dataclass
class Day:
    """Daily aggregates for one forecast day."""
    maxtemp_c: float
    maxtemp_f: float
    mintemp_c: float
    mintemp_f: float
    avgtemp_c: float
    avgtemp_f: float
    maxwind_mph: float
    maxwind_kph: float
    totalprecip_mm: float
    totalprecip_in: float
    totalsnow_cm: float
    avgvis_km: float
    avgvis_miles: float
    avghumidity: float
    daily_will_it_rain: int
    daily_chance_of_rain: int
    daily_will_it_snow: int
    daily_chance_of_snow: int
    condition: Condition
    uv: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any], path: str = "day") -> "Day":
        return _flat(cls, data, path)


@dataclass
class Astro:
    sunrise: str
    sunset: str
    moonrise: str
    moonset: str
    moon_phase: str
    moon_illumination: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any], path: str = "astro") -> "Astro":
        return cls(
            sunrise=_str(data, "sunrise", path),
            sunset=_str(data, "sunset", path),
            moonrise=_str(data, "moonrise", path),
            moonset=_str(data, "moonset", path),
            moon_phase=_str(data, "moon_phase", path),
            moon_illumination=normalize_moon_illumination(data.get("moon_illumination")),
        )


@dataclass
class Hour:
    """One hourly forecast entry."""
    time_epoch: int
    time: str
    temp_c: float
    temp_f: float
    is_day: int
    condition: Condition
    wind_mph: float
    wind_kph: float
    wind_degree: int
    wind_dir: str
    pressure_mb: float
    pressure_in: float
    precip_mm: float
    precip_in: float
    humidity: int
    cloud: int
    feelslike_c: float
    feelslike_f: float
    windchill_c: float
    windchill_f: float
    heatindex_c: float
    heatindex_f: float
    dewpoint_c: float
    dewpoint_f: float
    will_it_rain: int
    chance_of_rain: int
    will_it_snow: int
    chance_of_snow: int
    vis_km: float
    vis_miles: float
    gust_mph: float
    gust_kph: float
    uv: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any], path: str = "hour") -> "Hour":
        return _flat(cls, data, path)


@dataclass
class ForecastDay:
    date: str
    date_epoch: int
    day: Day
    astro: Astro
    hour: List[Hour] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], path: str = "forecastday") -> "ForecastDay":
        return cls(
            date=_str(data, "date", path),
            date_epoch=_int(data, "date_epoch", path),
            day=Day.from_dict(_field(data, "day", path), f"{path}.day"),
            astro=Astro.from_dict(_field(data, "astro", path), f"{path}.astro"),
            hour=[
                Hour.from_dict(item, f"{path}.hour[{i}]")
                for i, item in enumerate(_list(data, "hour", path))
            ],
        )


@dataclass
class Forecast:
    forecastday: List[ForecastDay] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], path: str = "forecast") -> "Forecast":
        return cls(forecastday=[
            ForecastDay.from_dict(item, f"{path}.forecastday[{i}]")
            for i, item in enumerate(_list(data, "forecastday", path))
        ])


@dataclass
class WeatherSnapshot:
    """
    Full decoded response of current.json or forecast.json.

    Only ``forecast`` may be absent; current.json never carries it.
    """
    location: Location
    current: Current
    forecast: Optional[Forecast] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WeatherSnapshot":
        """
        Strictly decode an API payload.

        Raises:
            SchemaError: If a required field is missing or has the wrong type
        """
        forecast = data.get("forecast") if isinstance(data, dict) else None
        return cls(
            location=Location.from_dict(_field(data, "location", "$"), "location"),
            current=Current.from_dict(_field(data, "current", "$"), "current"),
            forecast=Forecast.from_dict(forecast) if forecast is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Re-encode into the API's JSON shape."""
        result = {
            "location": _encode(self.location),
            "current": _encode(self.current),
        }
        if self.forecast is not None:
            result["forecast"] = _encode(self.forecast)
        return result

    @property
    def days(self) -> List[ForecastDay]:
        return self.forecast.forecastday if self.forecast else []
