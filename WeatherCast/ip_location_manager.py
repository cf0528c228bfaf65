"""Location manager backed by IP geolocation, for machines without a GPS."""
import asyncio
import logging
import requests
from typing import Callable, Dict, Optional
from location_service import (
    AuthorizationState,
    Coordinate,
    GeocodeCompletion,
    LocationManagerBase,
    Placemark,
)


class IPLocationManager(LocationManagerBase):
    """
    Resolves the machine's approximate position through ip-api.com.

    The same lookup carries city/region/country, so reverse geocoding is
    answered from the last lookup when the coordinate matches it and
    returns no placemarks otherwise.

    Authorization is a plain consent flag: True/False answer immediately,
    None asks ``prompt`` (a blocking yes/no callable) on request.
    """

    LOOKUP_URL = "http://ip-api.com/json/"

    def __init__(
        self,
        consent: Optional[bool] = True,
        prompt: Optional[Callable[[], bool]] = None,
        timeout: int = 5
    ):
        self.consent = consent
        self.prompt = prompt
        self.timeout = timeout
        self._last_lookup: Optional[Dict] = None

    def authorization_status(self) -> AuthorizationState:
        if self.consent is None:
            return AuthorizationState.NOT_DETERMINED
        return AuthorizationState.GRANTED if self.consent else AuthorizationState.DENIED

    def request_authorization(self) -> None:
        loop = asyncio.get_running_loop()
        if self.consent is not None or self.prompt is None:
            state = self.authorization_status()
            if state is AuthorizationState.NOT_DETERMINED:
                # nobody to ask
                state = AuthorizationState.DENIED
            loop.call_soon(self.delegate.did_change_authorization, state)
            return

        def answered(future):
            try:
                self.consent = bool(future.result())
            except Exception as e:
                logging.warning(f"Location consent prompt failed: {e}")
                self.consent = False
            self.delegate.did_change_authorization(self.authorization_status())

        loop.run_in_executor(None, self.prompt).add_done_callback(answered)

    def request_location(self) -> None:
        loop = asyncio.get_running_loop()
        loop.run_in_executor(None, self._lookup).add_done_callback(self._deliver_location)

    def reverse_geocode(self, coordinate: Coordinate, completion: GeocodeCompletion) -> None:
        loop = asyncio.get_running_loop()
        lookup = self._last_lookup
        if lookup is None or _coordinate_of(lookup) != coordinate:
            logging.debug(f"No IP lookup matches {coordinate}, no placemarks")
            loop.call_soon(completion, [], None)
            return
        placemark = Placemark(
            locality=lookup.get("city") or None,
            administrative_area=lookup.get("regionName") or None,
            country=lookup.get("country") or None,
        )
        loop.call_soon(completion, [placemark], None)

    def _lookup(self) -> Dict:
        """Blocking ip-api.com request, run in the default executor."""
        logging.info(f"Requesting IP geolocation: {self.LOOKUP_URL}")
        response = requests.get(
            self.LOOKUP_URL,
            timeout=self.timeout,
            headers={"User-Agent": "WeatherCast/1.0"}
        )
        response.raise_for_status()
        data = response.json()
        logging.debug(f"IP geolocation response: {data}")
        if data.get("status") == "fail":
            raise RuntimeError(f"ip-api lookup failed: {data.get('message', 'unknown error')}")
        if "lat" not in data or "lon" not in data:
            raise RuntimeError("ip-api response has no coordinates")
        return data

    def _deliver_location(self, future) -> None:
        # add_done_callback runs on the loop thread
        try:
            data = future.result()
        except Exception as e:
            self.delegate.did_fail_with_error(e)
            return
        self._last_lookup = data
        logging.info(f"IP geolocation: {data.get('city')}, {data.get('country')}")
        self.delegate.did_update_locations([_coordinate_of(data)])


def _coordinate_of(data: Dict) -> Coordinate:
    return Coordinate(latitude=float(data["lat"]), longitude=float(data["lon"]))
