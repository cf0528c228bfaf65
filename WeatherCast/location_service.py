"""Device location resolution: permission, single-shot fix, reverse geocode.

The platform side (``LocationManagerBase``) answers through callbacks. The
resolver turns each callback pair into a one-shot asyncio future that is
armed on request, consumed by the first event, and cleared before it is
resolved so a late or duplicate callback finds nothing to resume.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional


class AuthorizationState(Enum):
    NOT_DETERMINED = "not_determined"
    GRANTED = "granted"
    DENIED = "denied"
    RESTRICTED = "restricted"  # treated like DENIED


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    def as_query(self) -> str:
        """Format as "lat,lon" without rounding (repr is round-trip exact)."""
        return f"{self.latitude!r},{self.longitude!r}"


@dataclass
class Placemark:
    """Reverse geocoding result."""
    locality: Optional[str] = None
    administrative_area: Optional[str] = None
    country: Optional[str] = None


class LocationError(Exception):
    """Exception raised when the device location cannot be resolved."""
    pass


class PermissionDenied(LocationError):
    def __init__(self, message: str = "Location access denied. Allow access in settings."):
        super().__init__(message)


class PositionUnavailable(LocationError):
    def __init__(self, cause: Optional[Exception] = None):
        self.cause = cause
        message = "Current position is unavailable"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


GeocodeCompletion = Callable[[Optional[List[Placemark]], Optional[Exception]], None]


class LocationManagerBase(ABC):
    """
    Platform location services.

    Answers are delivered to ``delegate`` (a LocationResolver) on the
    resolver's event loop thread. Implementations that do their work on
    other threads must marshal with ``loop.call_soon_threadsafe``.
    """

    delegate = None

    @abstractmethod
    def authorization_status(self) -> AuthorizationState:
        pass

    @abstractmethod
    def request_authorization(self) -> None:
        """Ask the user; answer via delegate.did_change_authorization(state)."""
        pass

    @abstractmethod
    def request_location(self) -> None:
        """
        Request one fix.

        Answer via delegate.did_update_locations([Coordinate, ...]) or
        delegate.did_fail_with_error(exc).
        """
        pass

    @abstractmethod
    def reverse_geocode(self, coordinate: Coordinate, completion: GeocodeCompletion) -> None:
        """Look up placemarks; call completion(placemarks, error) once."""
        pass


class LocationResolver:
    """
    Resolves the device position into a weather query string.

    Holds at most one pending future per concern (authorization, location
    fix, geocode). Concurrent callers join the pending future instead of
    issuing a second platform request.
    """

    def __init__(self, manager: LocationManagerBase):
        self.manager = manager
        manager.delegate = self

        self._auth_future: Optional[asyncio.Future] = None
        self._location_future: Optional[asyncio.Future] = None
        self._geocode_future: Optional[asyncio.Future] = None

    async def resolve_coordinate_query(self) -> str:
        """
        Return the current position as "lat,lon".

        Raises:
            PermissionDenied: If location access is denied or restricted
            PositionUnavailable: If the platform cannot produce a fix
        """
        await self._request_authorization_if_needed()
        coordinate = await self._request_location_once()
        return coordinate.as_query()

    async def resolve_city_name(self) -> str:
        """
        Return the locality (or administrative area) for the current position.

        Falls back to "lat,lon" when reverse geocoding yields no name.

        Raises:
            PermissionDenied: If location access is denied or restricted
            PositionUnavailable: If the platform cannot produce a fix
        """
        await self._request_authorization_if_needed()
        coordinate = await self._request_location_once()
        return await self._reverse_geocode(coordinate)

    # Authorization

    async def _request_authorization_if_needed(self) -> None:
        status = self.manager.authorization_status()
        if status is AuthorizationState.GRANTED:
            return
        if status is not AuthorizationState.NOT_DETERMINED:
            logging.warning(f"Location authorization is {status.value}")
            raise PermissionDenied()

        future = self._auth_future
        if future is None:
            future = self._auth_future = asyncio.get_running_loop().create_future()
            logging.info("Requesting location authorization")
            try:
                self.manager.request_authorization()
            except Exception as e:
                self._auth_future = None
                logging.error(f"Location authorization request failed: {e}")
                raise PermissionDenied(f"Location authorization request failed: {e}") from e
        else:
            logging.debug("Authorization request already pending, joining it")
        await asyncio.shield(future)

    def did_change_authorization(self, state: AuthorizationState) -> None:
        if state is AuthorizationState.NOT_DETERMINED:
            return
        future, self._auth_future = self._auth_future, None
        if future is None or future.done():
            logging.debug(f"Dropping authorization callback ({state.value}): nothing pending")
            return
        logging.info(f"Location authorization changed: {state.value}")
        if state is AuthorizationState.GRANTED:
            future.set_result(None)
        else:
            future.set_exception(PermissionDenied("Location access was denied by the user."))

    # Single-shot location

    async def _request_location_once(self) -> Coordinate:
        future = self._location_future
        if future is None:
            future = self._location_future = asyncio.get_running_loop().create_future()
            logging.info("Requesting a single location fix")
            try:
                self.manager.request_location()
            except Exception as e:
                self.did_fail_with_error(e)
        else:
            logging.debug("Location fix already pending, joining it")
        return await asyncio.shield(future)

    def did_update_locations(self, locations: List[Coordinate]) -> None:
        if not locations:
            return
        future, self._location_future = self._location_future, None
        if future is None or future.done():
            logging.debug("Dropping location update: nothing pending")
            return
        logging.debug(f"Location fix: {locations[0]}")
        future.set_result(locations[0])

    def did_fail_with_error(self, error: Exception) -> None:
        future, self._location_future = self._location_future, None
        if future is None or future.done():
            logging.debug(f"Dropping location error ({error}): nothing pending")
            return
        logging.warning(f"Location fix failed: {error}")
        future.set_exception(PositionUnavailable(error))

    # Reverse geocoding

    async def _reverse_geocode(self, coordinate: Coordinate) -> str:
        future = self._geocode_future
        if future is None:
            future = self._geocode_future = asyncio.get_running_loop().create_future()

            def completion(placemarks, error):
                self._geocode_completed(coordinate, placemarks, error)

            try:
                self.manager.reverse_geocode(coordinate, completion)
            except Exception as e:
                completion(None, e)
        return await asyncio.shield(future)

    def _geocode_completed(self, coordinate: Coordinate,
                           placemarks: Optional[List[Placemark]],
                           error: Optional[Exception]) -> None:
        future, self._geocode_future = self._geocode_future, None
        if future is None or future.done():
            logging.debug("Dropping geocode result: nothing pending")
            return
        future.set_result(place_name(coordinate, placemarks, error))


def place_name(coordinate: Coordinate,
               placemarks: Optional[List[Placemark]],
               error: Optional[Exception]) -> str:
    """Pick locality, then administrative area, else "lat,lon"."""
    if error is not None:
        logging.info(f"Reverse geocode failed ({error}), using coordinates")
        return coordinate.as_query()
    if not placemarks:
        return coordinate.as_query()
    first = placemarks[0]
    return first.locality or first.administrative_area or coordinate.as_query()
