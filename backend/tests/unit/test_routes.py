"""API tests: restaurants listing, join/leave, notes, photo proxy, error mapping."""

import httpx
import pytest
from fastapi.testclient import TestClient

from dinner_groups.api import deps
from dinner_groups.api.routes import photos as photos_route
from dinner_groups.core.errors import UpstreamFailure
from dinner_groups.db.session import get_db
from dinner_groups.main import app
from dinner_groups.services.places import photos as photo_service
from dinner_groups.services.places.config import PlacesConfig
from dinner_groups.services.restaurants.cache import RestaurantCache
from tests.factories import FakePlaces

ALICE = {"X-User-Id": "alice"}
BOB = {"X-User-Id": "bob"}


@pytest.fixture
def client(session_factory, restaurant_cache):
    def override_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[deps.get_restaurant_cache] = lambda: restaurant_cache
    app.dependency_overrides[deps.get_places_config] = lambda: PlacesConfig(api_key="secret-key", timeout=5.0)
    # No `with`: skip lifespan so no real places client is built
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestListRestaurants:
    def test_lists_nearby_for_caller(self, client, fake_places) -> None:
        resp = client.get("/restaurants", headers=ALICE)
        assert resp.status_code == 200
        body = resp.json()
        assert body["with_attendance"] == []
        assert [r["id"] for r in body["nearby"]] == ["r2", "r1", "r3"]
        assert body["filters"] == {"distance": 5.0, "rating": None, "price": None}
        assert fake_places.calls == [(40.7596, -111.8867, 8047)]

    def test_distance_filter_sets_radius(self, client, fake_places) -> None:
        body = client.get("/restaurants", params={"distance": 2}, headers=ALICE).json()
        assert fake_places.calls[-1][2] == 3219
        assert [r["id"] for r in body["nearby"]] == ["r2", "r1"]

    def test_joined_restaurants_move_to_attendance(self, client) -> None:
        assert client.post("/restaurants/join", json={"restaurant_id": "r3"}, headers=ALICE).status_code == 200
        client.post("/restaurants/join", json={"restaurant_id": "r3"}, headers=BOB)

        body = client.get("/restaurants", headers=ALICE).json()
        assert [(r["id"], r["attendee_count"], r["is_user_attending"]) for r in body["with_attendance"]] == [
            ("r3", 2, True)
        ]
        assert "r3" not in [r["id"] for r in body["nearby"]]

    def test_upstream_failure_is_502(self, session_factory, client) -> None:
        failing = RestaurantCache(FakePlaces(error=UpstreamFailure("Google Places API error: OVER_QUERY_LIMIT")), session_factory)
        app.dependency_overrides[deps.get_restaurant_cache] = lambda: failing
        resp = client.get("/restaurants", headers=ALICE)
        assert resp.status_code == 502
        assert "OVER_QUERY_LIMIT" in resp.json()["detail"]

    def test_invalid_price_rejected(self, client) -> None:
        assert client.get("/restaurants", params={"price": 7}).status_code == 422


class TestJoinLeave:
    def test_join_then_switch_then_leave(self, client) -> None:
        joined = client.post("/restaurants/join", json={"restaurant_id": "r1"}, headers=ALICE).json()
        assert joined["status"] == "success"
        assert joined["restaurant_id"] == "r1"

        switched = client.post("/restaurants/join", json={"restaurant_id": "r2"}, headers=ALICE).json()
        assert switched["restaurant_id"] == "r2"
        assert switched["dinner_group_id"] != joined["dinner_group_id"]

        assert client.get("/restaurants/r1/attendees").json()["count"] == 0
        assert client.get("/restaurants/r2/attendees").json()["attendees"] == ["alice"]

        left = client.post("/restaurants/leave", headers=ALICE).json()
        assert left == {"status": "success", "left": "r2"}
        assert client.post("/restaurants/leave", headers=ALICE).json() == {"status": "success", "left": None}

    def test_join_requires_restaurant_id(self, client) -> None:
        resp = client.post("/restaurants/join", json={}, headers=ALICE)
        assert resp.status_code == 400
        assert "restaurant_id" in resp.json()["detail"]

    def test_join_requires_user(self, client) -> None:
        assert client.post("/restaurants/join", json={"restaurant_id": "r1"}).status_code == 400

    def test_leave_requires_user(self, client) -> None:
        assert client.post("/restaurants/leave").status_code == 400

    def test_join_unknown_restaurant_is_404(self, client) -> None:
        assert client.post("/restaurants/join", json={"restaurant_id": "nope"}, headers=ALICE).status_code == 404


class TestNotes:
    def test_update_notes(self, client) -> None:
        client.post("/restaurants/join", json={"restaurant_id": "r1"}, headers=ALICE)
        resp = client.put("/restaurants/r1/notes", json={"notes": "Booth by the window"})
        assert resp.status_code == 200
        assert resp.json()["dinner_group"]["notes"] == "Booth by the window"

    def test_notes_without_group_is_404(self, client) -> None:
        assert client.put("/restaurants/r1/notes", json={"notes": "hi"}).status_code == 404


class _UnreadBody(httpx.AsyncByteStream):
    """Response body that is only produced when iterated, like a real network stream."""

    def __init__(self, chunks: list[bytes]) -> None:
        self._chunks = chunks
        self.closed = False

    async def __aiter__(self):
        for chunk in self._chunks:
            yield chunk

    async def aclose(self) -> None:
        self.closed = True


class TestPhotoProxy:
    @pytest.fixture
    def upstream(self, monkeypatch):
        seen: list[httpx.Request] = []
        state = {"status": 200, "bodies": []}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if state["status"] != 200:
                return httpx.Response(state["status"], text="denied")
            body = _UnreadBody([b"\xff\xd8", b"jpeg-bytes"])
            state["bodies"].append(body)
            return httpx.Response(200, stream=body, headers={"content-type": "image/jpeg"})

        async def fake_open(config, photo_ref):
            return await photo_service.open_photo_stream(config, photo_ref, transport=httpx.MockTransport(handler))

        monkeypatch.setattr(photos_route, "open_photo_stream", fake_open)
        return seen, state

    def test_streams_photo_with_cache_header(self, client, upstream) -> None:
        seen, state = upstream
        resp = client.get("/resources/maps/photo", params={"photoRef": "ref-1"})

        assert resp.status_code == 200
        assert resp.content == b"\xff\xd8jpeg-bytes"
        assert resp.headers["content-type"] == "image/jpeg"
        assert resp.headers["cache-control"] == "public, max-age=86400"
        assert "secret-key" not in str(resp.url)
        params = seen[0].url.params
        assert params["photoreference"] == "ref-1"
        assert params["maxwidth"] == "400"
        assert params["key"] == "secret-key"
        assert state["bodies"][0].closed is True

    def test_missing_ref_is_400(self, client) -> None:
        assert client.get("/resources/maps/photo").status_code == 400

    def test_upstream_error_status_passed_through(self, client, upstream) -> None:
        _, state = upstream
        state["status"] = 403
        resp = client.get("/resources/maps/photo", params={"photoRef": "ref-1"})
        assert resp.status_code == 403
        assert resp.text == "Failed to fetch photo"

    def test_missing_key_is_500(self, client) -> None:
        app.dependency_overrides[deps.get_places_config] = lambda: PlacesConfig(api_key="")
        assert client.get("/resources/maps/photo", params={"photoRef": "ref-1"}).status_code == 500


def test_health(client) -> None:
    assert client.get("/health").json() == {"status": "ok"}
