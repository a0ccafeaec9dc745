"""
HTTP and WebSocket tests for the marketplace API.
"""
import json
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from app.api.auth import issue_token
from app.api.marketplace import get_services
from app.api.marketplace.routes_notifications import WS_CLOSE_UNAUTHORIZED, sse_stream
from app.services import LiveChannel
from tests.conftest import TEST_SECRET


@pytest.fixture
def as_client(auth_headers, client_user):
    return auth_headers(client_user)


@pytest.fixture
def as_agent(auth_headers, agent_user):
    return auth_headers(agent_user)


@pytest.fixture
def shipment_id(api_client, as_client, shipment_fields):
    response = api_client.post("/api/shipments", json=shipment_fields, headers=as_client)
    assert response.status_code == 201
    return response.json()["shipment"]["shipment_id"]


class TestHealthAndAuth:
    def test_health(self, api_client):
        response = api_client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
        assert response.headers["X-Content-Type-Options"] == "nosniff"

    def test_requires_token(self, api_client):
        response = api_client.get("/api/shipments")
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized", "code": "unauthorized"}

    def test_expired_token(self, api_client, client_user):
        token = issue_token(TEST_SECRET, client_user.user_id, "client", -1)
        response = api_client.get("/api/shipments", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["error"] == "Token expired"

    def test_cookie_and_query_tokens(self, api_client, client_user):
        token = issue_token(TEST_SECRET, client_user.user_id, "client", 60)
        assert api_client.get(f"/api/shipments?token={token}").status_code == 200
        cookie = {"Cookie": f"auth_token={token}"}
        assert api_client.get("/api/shipments", headers=cookie).status_code == 200

    def test_me(self, api_client, as_agent):
        response = api_client.get("/api/auth/me", headers=as_agent)
        assert response.status_code == 200
        assert response.json()["user"]["email"] == "agent1@example.com"
        assert response.json()["user"]["role"] == "agent"


class TestShipmentRoutes:
    def test_create_and_list(self, api_client, as_client, as_agent, shipment_id):
        mine = api_client.get("/api/shipments", headers=as_client).json()["shipments"]
        assert [s["shipment_id"] for s in mine] == [shipment_id]
        assert mine[0]["status"] == "pending"
        assert mine[0]["dimensions"] == {"length": 120.0, "width": 80.0, "height": 95.0}

        open_list = api_client.get("/api/shipments", headers=as_agent).json()["shipments"]
        assert open_list[0]["client_name"] == "Carla Client"

    def test_missing_fields(self, api_client, as_client):
        response = api_client.post(
            "/api/shipments", json={"service_type": "transport"}, headers=as_client
        )
        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "validation_error"
        assert body["error"].startswith("Missing required fields: description, weight")

    def test_agent_cannot_create(self, api_client, as_agent, shipment_fields):
        response = api_client.post("/api/shipments", json=shipment_fields, headers=as_agent)
        assert response.status_code == 403
        assert response.json()["code"] == "forbidden"

    def test_not_found(self, api_client, as_client):
        response = api_client.get("/api/shipments/999", headers=as_client)
        assert response.status_code == 404
        assert response.json() == {"error": "Shipment 999 not found", "code": "not_found"}

    def test_non_integer_id(self, api_client, as_client):
        response = api_client.get("/api/shipments/abc", headers=as_client)
        assert response.status_code == 400
        assert response.json()["code"] == "validation_error"

    def test_other_client_forbidden(self, api_client, auth_headers, other_client, shipment_id):
        response = api_client.get(f"/api/shipments/{shipment_id}", headers=auth_headers(other_client))
        assert response.status_code == 403

    def test_delete(self, api_client, as_client, shipment_id):
        response = api_client.delete(f"/api/shipments/{shipment_id}", headers=as_client)
        assert response.status_code == 200
        assert response.json() == {"message": "Shipment deleted successfully"}
        assert api_client.get(f"/api/shipments/{shipment_id}", headers=as_client).status_code == 404

    def test_status_validation(self, api_client, as_client, shipment_id):
        response = api_client.patch(
            f"/api/shipments/{shipment_id}/status", json={"status": "flying"}, headers=as_client
        )
        assert response.status_code == 400

        response = api_client.patch(
            f"/api/shipments/{shipment_id}/status",
            json={"status": "offer_accepted"},
            headers=as_client,
        )
        assert response.status_code == 409
        assert response.json()["code"] == "invalid_state"


class TestOfferFlow:
    def test_full_marketplace_flow(
        self, api_client, auth_headers, as_client, as_agent, second_agent, shipment_id
    ):
        first = api_client.post(
            "/api/offers",
            json={"shipment_id": shipment_id, "price": 100, "notes": "Next-day pickup"},
            headers=as_agent,
        )
        assert first.status_code == 201
        first_offer = first.json()["offer"]
        assert first_offer["status"] == "pending"

        second = api_client.post(
            "/api/offers",
            json={"shipment_id": shipment_id, "price": "120"},
            headers=auth_headers(second_agent),
        )
        assert second.status_code == 201
        second_offer = second.json()["offer"]

        detail = api_client.get(f"/api/shipments/{shipment_id}", headers=as_client).json()
        assert detail["shipment"]["status"] == "offers_received"
        assert [o["offer_id"] for o in detail["shipment"]["offers"]] == [
            second_offer["offer_id"],
            first_offer["offer_id"],
        ]

        accepted = api_client.post(f"/api/offers/{first_offer['offer_id']}/accept", headers=as_client)
        assert accepted.status_code == 200
        assert accepted.json()["message"] == "Offer accepted successfully"
        assert accepted.json()["offer"]["status"] == "accepted"

        conflict = api_client.post(
            f"/api/offers/{second_offer['offer_id']}/accept", headers=as_client
        )
        assert conflict.status_code == 409
        assert conflict.json()["error"] == "This shipment already has an accepted offer"

        locked = api_client.delete(f"/api/shipments/{shipment_id}", headers=as_client)
        assert locked.status_code == 409

        moved = api_client.patch(
            f"/api/shipments/{shipment_id}/status", json={"status": "in_progress"}, headers=as_client
        )
        assert moved.status_code == 200
        assert moved.json()["shipment"]["status"] == "in_progress"

        notes = api_client.get("/api/notifications", headers=as_agent).json()["notifications"]
        assert [n["type"] for n in notes] == ["offer_accepted"]

    def test_duplicate_offer(self, api_client, as_agent, shipment_id):
        payload = {"shipment_id": shipment_id, "price": 50}
        assert api_client.post("/api/offers", json=payload, headers=as_agent).status_code == 201

        duplicate = api_client.post("/api/offers", json=payload, headers=as_agent)
        assert duplicate.status_code == 409
        assert duplicate.json() == {
            "error": "You have already submitted an offer for this shipment",
            "code": "duplicate_offer",
        }

    @pytest.mark.parametrize(
        "payload, message",
        [
            ({"price": 10}, "Shipment ID and price are required"),
            ({"shipment_id": 1, "price": "lots"}, "Price must be a number"),
            ({"shipment_id": 1, "price": -1}, "Price must not be negative"),
        ],
    )
    def test_offer_validation(self, api_client, as_agent, payload, message):
        response = api_client.post("/api/offers", json=payload, headers=as_agent)
        assert response.status_code == 400
        assert response.json()["error"] == message

    def test_reject(self, api_client, as_client, as_agent, shipment_id):
        offer = api_client.post(
            "/api/offers", json={"shipment_id": shipment_id, "price": 80}, headers=as_agent
        ).json()["offer"]

        response = api_client.post(f"/api/offers/{offer['offer_id']}/reject", headers=as_client)
        assert response.status_code == 200
        assert response.json()["message"] == "Offer rejected successfully"
        assert response.json()["offer"]["status"] == "rejected"

        notes = api_client.get("/api/notifications", headers=as_agent).json()["notifications"]
        assert notes[0]["title"] == "Offer Rejected"


class TestErrorHandling:
    def test_store_failure_is_opaque_500(self, api_client, fake_db, as_client):
        fake_db.fail_next = RuntimeError("password=hunter2")
        response = api_client.get("/api/shipments", headers=as_client)
        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error", "code": "internal_error"}

    def test_unexpected_error_is_500(self, api_client, as_client, monkeypatch):
        async def boom(requester):
            raise KeyError("unexpected")

        monkeypatch.setattr(get_services().shipments, "list", boom)
        client = TestClient(api_client.app, raise_server_exceptions=False)
        response = client.get("/api/shipments", headers=as_client)
        assert response.status_code == 500
        assert response.json()["code"] == "internal_error"


class TestLiveNotifications:
    def test_websocket_requires_token(self, api_client):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with api_client.websocket_connect("/api/notifications/ws"):
                pass
        assert exc_info.value.code == WS_CLOSE_UNAUTHORIZED

    def test_websocket_pushes_new_offer(self, api_client, client_user, as_agent, shipment_id):
        token = issue_token(TEST_SECRET, client_user.user_id, "client", 60)

        with api_client.websocket_connect(f"/api/notifications/ws?token={token}") as ws:
            assert ws.receive_json() == {"type": "connected"}

            stats = api_client.get("/api/notifications/live/stats", headers=as_agent).json()
            assert stats["total_connections"] == 1

            api_client.post(
                "/api/offers", json={"shipment_id": shipment_id, "price": 64}, headers=as_agent
            )
            message = ws.receive_json()

        assert message["type"] == "notifications"
        assert message["data"][0]["type"] == "new_offer"
        assert message["data"][0]["shipment_id"] == shipment_id

    def test_sse_requires_token(self, api_client):
        assert api_client.get("/api/notifications/sse").status_code == 401

    @pytest.mark.asyncio
    async def test_sse_frames(self, dispatcher, agent_user):
        since = datetime.now(timezone.utc) - timedelta(seconds=1)
        await dispatcher.notify_offer_accepted(agent_user.user_id, 20, 2, None)
        channel = LiveChannel(agent_user.user_id, dispatcher, interval=0.01, since=since)

        async def is_disconnected():
            return False

        frames = []
        stream = sse_stream(channel, is_disconnected)
        async for frame in stream:
            frames.append(frame)
            if len(frames) == 2:
                break
        await stream.aclose()

        assert frames[0] == 'data: {"type": "connected"}\n\n'
        assert frames[1].endswith("\n\n")
        payload = json.loads(frames[1][len("data: "):])
        assert payload["type"] == "notifications"
        assert payload["data"][0]["title"] == "Offer Accepted"
        assert channel.closed

    @pytest.mark.asyncio
    async def test_sse_stops_on_client_disconnect(self, dispatcher, agent_user):
        since = datetime.now(timezone.utc) - timedelta(seconds=1)
        await dispatcher.notify_offer_accepted(agent_user.user_id, 20, 2, None)
        channel = LiveChannel(agent_user.user_id, dispatcher, interval=0.01, since=since)
        answers = iter([False, True])

        async def is_disconnected():
            return next(answers)

        frames = [frame async for frame in sse_stream(channel, is_disconnected)]

        assert frames == ['data: {"type": "connected"}\n\n']
        assert channel.closed
