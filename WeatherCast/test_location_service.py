"""Tests for the location resolver, driven by simulated platform callbacks."""
import asyncio
import pytest
from location_service import (
    AuthorizationState,
    Coordinate,
    LocationManagerBase,
    LocationResolver,
    PermissionDenied,
    Placemark,
    PositionUnavailable,
    place_name,
)


class FakeLocationManager(LocationManagerBase):
    """Records requests; the test plays the OS by calling the delegate."""

    def __init__(self, status=AuthorizationState.GRANTED):
        self.status = status
        self.auth_requests = 0
        self.location_requests = 0
        self.geocode_requests = []

    def authorization_status(self):
        return self.status

    def request_authorization(self):
        self.auth_requests += 1

    def request_location(self):
        self.location_requests += 1

    def reverse_geocode(self, coordinate, completion):
        self.geocode_requests.append((coordinate, completion))


async def _settle():
    for _ in range(3):
        await asyncio.sleep(0)


LONDON = Coordinate(latitude=51.507351, longitude=-0.127758)


def test_coordinate_query_round_trips():
    async def scenario():
        manager = FakeLocationManager()
        resolver = LocationResolver(manager)
        task = asyncio.ensure_future(resolver.resolve_coordinate_query())
        await _settle()
        resolver.did_update_locations([LONDON, Coordinate(0.0, 0.0)])
        return await task

    query = asyncio.run(scenario())

    lat, lon = query.split(",")
    assert float(lat) == LONDON.latitude
    assert float(lon) == LONDON.longitude


def test_coordinate_query_keeps_full_precision():
    coordinate = Coordinate(latitude=55.75582600000001, longitude=37.6173)

    lat, lon = coordinate.as_query().split(",")

    assert float(lat) == coordinate.latitude
    assert float(lon) == coordinate.longitude


def test_denied_fails_immediately():
    async def scenario():
        manager = FakeLocationManager(AuthorizationState.DENIED)
        resolver = LocationResolver(manager)
        with pytest.raises(PermissionDenied):
            await resolver.resolve_coordinate_query()
        return manager

    manager = asyncio.run(scenario())

    assert manager.auth_requests == 0
    assert manager.location_requests == 0


def test_restricted_is_denied():
    async def scenario():
        resolver = LocationResolver(FakeLocationManager(AuthorizationState.RESTRICTED))
        with pytest.raises(PermissionDenied):
            await resolver.resolve_city_name()

    asyncio.run(scenario())


def test_not_determined_then_granted():
    async def scenario():
        manager = FakeLocationManager(AuthorizationState.NOT_DETERMINED)
        resolver = LocationResolver(manager)
        task = asyncio.ensure_future(resolver.resolve_coordinate_query())
        await _settle()
        assert manager.auth_requests == 1
        assert manager.location_requests == 0

        # not terminal, keeps waiting
        resolver.did_change_authorization(AuthorizationState.NOT_DETERMINED)
        await _settle()
        assert not task.done()

        manager.status = AuthorizationState.GRANTED
        resolver.did_change_authorization(AuthorizationState.GRANTED)
        await _settle()
        assert manager.location_requests == 1
        resolver.did_update_locations([LONDON])
        return await task

    assert asyncio.run(scenario()) == LONDON.as_query()


def test_not_determined_then_denied():
    async def scenario():
        manager = FakeLocationManager(AuthorizationState.NOT_DETERMINED)
        resolver = LocationResolver(manager)
        task = asyncio.ensure_future(resolver.resolve_coordinate_query())
        await _settle()
        resolver.did_change_authorization(AuthorizationState.DENIED)
        with pytest.raises(PermissionDenied):
            await task
        return manager

    manager = asyncio.run(scenario())

    assert manager.location_requests == 0


def test_concurrent_authorization_is_requested_once():
    async def scenario():
        manager = FakeLocationManager(AuthorizationState.NOT_DETERMINED)
        resolver = LocationResolver(manager)
        first = asyncio.ensure_future(resolver.resolve_coordinate_query())
        second = asyncio.ensure_future(resolver.resolve_coordinate_query())
        await _settle()
        assert manager.auth_requests == 1

        resolver.did_change_authorization(AuthorizationState.GRANTED)
        await _settle()
        assert manager.location_requests == 1
        resolver.did_update_locations([LONDON])
        return await asyncio.gather(first, second)

    assert asyncio.run(scenario()) == [LONDON.as_query(), LONDON.as_query()]


def test_duplicate_authorization_callback_is_ignored():
    async def scenario():
        manager = FakeLocationManager(AuthorizationState.NOT_DETERMINED)
        resolver = LocationResolver(manager)
        task = asyncio.ensure_future(resolver.resolve_coordinate_query())
        await _settle()
        resolver.did_change_authorization(AuthorizationState.GRANTED)
        # stale duplicate, must not turn the grant into a denial
        resolver.did_change_authorization(AuthorizationState.DENIED)
        await _settle()
        resolver.did_update_locations([LONDON])
        return await task

    assert asyncio.run(scenario()) == LONDON.as_query()


def test_location_error_is_position_unavailable():
    async def scenario():
        resolver = LocationResolver(FakeLocationManager())
        task = asyncio.ensure_future(resolver.resolve_coordinate_query())
        await _settle()
        cause = OSError("kCLErrorLocationUnknown")
        resolver.did_fail_with_error(cause)
        with pytest.raises(PositionUnavailable) as exc_info:
            await task
        assert exc_info.value.cause is cause

    asyncio.run(scenario())


def test_duplicate_location_events_resolve_once():
    """A second update or a late error must not touch the resolved fix."""
    async def scenario():
        manager = FakeLocationManager()
        resolver = LocationResolver(manager)
        task = asyncio.ensure_future(resolver.resolve_coordinate_query())
        await _settle()
        resolver.did_update_locations([LONDON])
        resolver.did_update_locations([Coordinate(1.0, 2.0)])
        resolver.did_fail_with_error(OSError("late"))
        result = await task
        assert resolver._location_future is None
        return result

    assert asyncio.run(scenario()) == LONDON.as_query()


def test_empty_location_batch_is_ignored():
    async def scenario():
        resolver = LocationResolver(FakeLocationManager())
        task = asyncio.ensure_future(resolver.resolve_coordinate_query())
        await _settle()
        resolver.did_update_locations([])
        await _settle()
        assert not task.done()
        resolver.did_update_locations([LONDON])
        return await task

    assert asyncio.run(scenario()) == LONDON.as_query()


def test_request_location_raising_is_position_unavailable():
    class BrokenManager(FakeLocationManager):
        def request_location(self):
            raise RuntimeError("location services disabled")

    async def scenario():
        resolver = LocationResolver(BrokenManager())
        with pytest.raises(PositionUnavailable):
            await resolver.resolve_coordinate_query()
        assert resolver._location_future is None

    asyncio.run(scenario())


def test_callback_without_pending_request_is_dropped():
    resolver = LocationResolver(FakeLocationManager())

    resolver.did_update_locations([LONDON])
    resolver.did_fail_with_error(OSError("nothing waiting"))
    resolver.did_change_authorization(AuthorizationState.GRANTED)

    assert resolver._location_future is None
    assert resolver._auth_future is None


def _resolve_city(placemarks, error=None):
    async def scenario():
        manager = FakeLocationManager()
        resolver = LocationResolver(manager)
        task = asyncio.ensure_future(resolver.resolve_city_name())
        await _settle()
        resolver.did_update_locations([LONDON])
        await _settle()
        coordinate, completion = manager.geocode_requests[0]
        assert coordinate == LONDON
        completion(placemarks, error)
        # duplicate completion is dropped
        completion([Placemark(locality="Elsewhere")], None)
        return await task

    return asyncio.run(scenario())


def test_city_name_uses_locality():
    assert _resolve_city([Placemark(locality="London", administrative_area="England")]) == "London"


def test_city_name_falls_back_to_administrative_area():
    assert _resolve_city([Placemark(administrative_area="England")]) == "England"


def test_city_name_falls_back_on_geocode_error():
    assert _resolve_city(None, OSError("network")) == LONDON.as_query()


def test_city_name_falls_back_on_empty_result():
    assert _resolve_city([]) == LONDON.as_query()


def test_city_name_falls_back_without_names():
    assert _resolve_city([Placemark(country="United Kingdom")]) == LONDON.as_query()


def test_city_name_uses_first_placemark_only():
    placemarks = [Placemark(country="United Kingdom"), Placemark(locality="London")]

    assert _resolve_city(placemarks) == LONDON.as_query()


@pytest.mark.parametrize("placemarks, error, expected", [
    ([Placemark(locality="Paris")], None, "Paris"),
    ([Placemark(locality="", administrative_area="Ile-de-France")], None, "Ile-de-France"),
    (None, None, "51.507351,-0.127758"),
    ([Placemark(locality="Paris")], OSError("boom"), "51.507351,-0.127758"),
])
def test_place_name(placemarks, error, expected):
    assert place_name(LONDON, placemarks, error) == expected


def test_cancelled_joiner_does_not_cancel_others():
    """Cancelling one waiting caller leaves the shared fix pending for the rest."""
    async def scenario():
        manager = FakeLocationManager()
        resolver = LocationResolver(manager)
        first = asyncio.ensure_future(resolver.resolve_coordinate_query())
        second = asyncio.ensure_future(resolver.resolve_coordinate_query())
        await _settle()
        assert manager.location_requests == 1

        first.cancel()
        await _settle()
        assert first.cancelled()
        assert not second.done()

        resolver.did_update_locations([Coordinate(1.5, 2.5)])
        return await second

    assert asyncio.run(scenario()) == "1.5,2.5"


def test_cancelled_caller_leaves_fix_usable_for_later_calls():
    async def scenario():
        manager = FakeLocationManager()
        resolver = LocationResolver(manager)
        first = asyncio.ensure_future(resolver.resolve_coordinate_query())
        await _settle()
        first.cancel()
        await _settle()

        later = asyncio.ensure_future(resolver.resolve_coordinate_query())
        await _settle()
        assert not later.done()
        resolver.did_update_locations([LONDON])
        return await later

    assert asyncio.run(scenario()) == LONDON.as_query()


def test_request_authorization_raising_is_permission_denied():
    class BrokenManager(FakeLocationManager):
        def request_authorization(self):
            raise RuntimeError("platform boom")

    async def scenario():
        resolver = LocationResolver(BrokenManager(AuthorizationState.NOT_DETERMINED))
        with pytest.raises(PermissionDenied) as exc_info:
            await resolver.resolve_coordinate_query()
        assert "platform boom" in str(exc_info.value)
        assert resolver._auth_future is None

    asyncio.run(scenario())
