# tests/test_proximity.py
from types import SimpleNamespace

import pytest

from radiowalk.core.errors import AuthorizationError, ValidationError
from radiowalk.db.models.stations import StationType
from radiowalk.services import geo
from radiowalk.services.proximity import (
    NEARBY_RADIUS_KM,
    VisibilityMode,
    find_nearby,
    within_radius,
)
from radiowalk.services.station_repository import StationRepository

ORIGIN = (37.7749, -122.4194)


@pytest.fixture()
def repo(db_session):
    return StationRepository(db_session)


async def _station(repo, owner_id, name, lat, lng, station_type=StationType.PUBLIC, tags=None):
    return await repo.create(
        owner_id,
        {"name": name, "latitude": lat, "longitude": lng, "type": station_type, "tags": tags},
    )


@pytest.mark.anyio
async def test_san_francisco_scenario(repo, make_user):
    owner = await make_user("sf")
    # created out of distance order on purpose
    b = await _station(repo, owner.id, "B", 37.7749, -122.4644)
    await _station(repo, owner.id, "C", 37.7749, -122.3394)
    a = await _station(repo, owner.id, "A", 37.7849, -122.4194)
    await _station(repo, owner.id, "D", 37.8249, -122.4194)

    results = await find_nearby(repo, *ORIGIN, VisibilityMode.PUBLIC)

    assert [r.station.id for r in results] == [a.id, b.id]
    assert results[0].distance_km == pytest.approx(1.11, abs=0.02)
    assert results[1].distance_km == pytest.approx(3.95, abs=0.02)


@pytest.mark.anyio
async def test_bounding_box_corner_is_filtered_out(repo, make_user):
    owner = await make_user("corner")
    # inside the 5/111 degree box but ~5.7 km away
    await _station(repo, owner.id, "corner", ORIGIN[0] + 0.04, ORIGIN[1] + 0.04)

    assert await find_nearby(repo, *ORIGIN, VisibilityMode.PUBLIC) == []


@pytest.mark.anyio
async def test_results_sorted_and_within_radius(repo, make_user):
    owner = await make_user("grid")
    for i in range(-4, 5):
        for j in range(-4, 5):
            await _station(repo, owner.id, f"g{i}{j}", ORIGIN[0] + i * 0.01, ORIGIN[1] + j * 0.01)

    results = await find_nearby(repo, *ORIGIN, VisibilityMode.PUBLIC)
    assert results
    distances = [r.distance_km for r in results]
    assert distances == sorted(distances)
    assert all(d <= NEARBY_RADIUS_KM for d in distances)
    for r in results:
        assert r.distance_km == pytest.approx(
            geo.haversine_km(*ORIGIN, r.station.latitude, r.station.longitude)
        )


@pytest.mark.anyio
async def test_both_is_union_of_public_and_private(repo, make_user):
    me = await make_user("me")
    other = await make_user("other")

    await _station(repo, me.id, "pub", ORIGIN[0] + 0.001, ORIGIN[1])
    await _station(repo, other.id, "other-pub", ORIGIN[0] + 0.002, ORIGIN[1])
    await _station(repo, me.id, "mine", ORIGIN[0] + 0.003, ORIGIN[1], StationType.PRIVATE)
    shared = await _station(repo, other.id, "shared", ORIGIN[0] + 0.004, ORIGIN[1], StationType.PRIVATE)
    await _station(repo, other.id, "hidden", ORIGIN[0] + 0.005, ORIGIN[1], StationType.PRIVATE)
    await repo.share(shared.id, other.id, me.id)

    public = await find_nearby(repo, *ORIGIN, VisibilityMode.PUBLIC, me.id)
    private = await find_nearby(repo, *ORIGIN, VisibilityMode.PRIVATE, me.id)
    both = await find_nearby(repo, *ORIGIN, VisibilityMode.BOTH, me.id)

    ids = lambda rs: {r.station.id for r in rs}  # noqa: E731
    assert ids(both) == ids(public) | ids(private)
    assert {r.station.name for r in private} == {"mine", "shared"}
    assert [r.station.name for r in both] == ["pub", "other-pub", "mine", "shared"]


@pytest.mark.anyio
@pytest.mark.parametrize("mode", [VisibilityMode.PRIVATE, VisibilityMode.BOTH])
async def test_private_modes_require_requester(repo, mode):
    with pytest.raises(AuthorizationError):
        await find_nearby(repo, *ORIGIN, mode, None)


@pytest.mark.anyio
async def test_public_mode_is_anonymous(repo, make_user):
    owner = await make_user("anon")
    s = await _station(repo, owner.id, "open", *ORIGIN)
    await _station(repo, owner.id, "closed", *ORIGIN, StationType.PRIVATE)

    results = await find_nearby(repo, *ORIGIN, VisibilityMode.PUBLIC, None)
    assert [r.station.id for r in results] == [s.id]
    assert results[0].distance_km == 0.0


@pytest.mark.anyio
@pytest.mark.parametrize("lat, lng", [(91.0, 0.0), (-90.1, 0.0), (0.0, 181.0), (0.0, -180.5)])
async def test_origin_out_of_range(repo, lat, lng):
    with pytest.raises(ValidationError):
        await find_nearby(repo, lat, lng, VisibilityMode.PUBLIC)


@pytest.mark.anyio
@pytest.mark.parametrize("mode", ["both", "ALL", ""])
async def test_unknown_mode_is_validation_error(repo, mode):
    with pytest.raises(ValidationError):
        await find_nearby(repo, *ORIGIN, mode, "someone")


@pytest.mark.anyio
async def test_mode_accepts_plain_string(repo, make_user):
    owner = await make_user("str")
    s = await _station(repo, owner.id, "open", *ORIGIN)
    results = await find_nearby(repo, *ORIGIN, "PUBLIC")
    assert [r.station.id for r in results] == [s.id]


@pytest.mark.anyio
async def test_tag_filter_applies(repo, make_user):
    owner = await make_user("tags")
    rock = await _station(repo, owner.id, "rock", *ORIGIN, tags="Indie Rock")
    await _station(repo, owner.id, "pop", *ORIGIN, tags="pop")

    results = await find_nearby(repo, *ORIGIN, VisibilityMode.PUBLIC, tags="rock")
    assert [r.station.id for r in results] == [rock.id]


def test_radius_cutoff_is_inclusive(monkeypatch):
    on_edge = SimpleNamespace(latitude=1.0, longitude=1.0)
    beyond = SimpleNamespace(latitude=2.0, longitude=2.0)
    distances = {1.0: NEARBY_RADIUS_KM, 2.0: NEARBY_RADIUS_KM + 1e-9}
    monkeypatch.setattr(geo, "haversine_km", lambda lat1, lng1, lat2, lng2: distances[lat2])

    kept = within_radius([on_edge, beyond], 0.0, 0.0)
    assert [k.station for k in kept] == [on_edge]
    assert kept[0].distance_km == NEARBY_RADIUS_KM


def test_visibility_mode_station_types():
    assert VisibilityMode.PUBLIC.station_types == (StationType.PUBLIC,)
    assert VisibilityMode.PRIVATE.station_types == (StationType.PRIVATE,)
    assert VisibilityMode.BOTH.station_types == (StationType.PUBLIC, StationType.PRIVATE)
    assert not VisibilityMode.PUBLIC.requires_identity
    assert VisibilityMode.BOTH.requires_identity
