"""
Tests for ShipmentLifecycleManager against the in-memory store.
"""
import pytest

from app.core.exceptions import (
    DatabaseException,
    ForbiddenException,
    InvalidStateException,
    NotFoundException,
    ValidationException,
)


class TestCreateShipment:
    @pytest.mark.asyncio
    async def test_client_creates_pending_shipment(self, shipments, client_user, shipment_fields):
        shipment = await shipments.create(client_user, shipment_fields)

        assert shipment.shipment_id == 1
        assert shipment.client_id == client_user.user_id
        assert shipment.status == "pending"
        assert shipment.accepted_offer_id is None
        assert shipment.dimensions.width == 80
        assert shipment.required_documents == ["CMR", "Invoice"]
        assert shipment.notes == "Fragile"

    @pytest.mark.asyncio
    async def test_stores_json_text_columns(self, shipments, fake_db, client_user, shipment_fields):
        await shipments.create(client_user, shipment_fields)
        row = fake_db.shipments[1]
        assert isinstance(row["dimensions"], str)
        assert row["required_documents"] == '["CMR", "Invoice"]'

    @pytest.mark.asyncio
    async def test_agent_cannot_create(self, shipments, agent_user, shipment_fields):
        with pytest.raises(ForbiddenException):
            await shipments.create(agent_user, shipment_fields)

    @pytest.mark.asyncio
    async def test_missing_fields_listed(self, shipments, client_user, shipment_fields):
        del shipment_fields["weight"]
        shipment_fields["pickup_address"] = "   "

        with pytest.raises(ValidationException) as exc_info:
            await shipments.create(client_user, shipment_fields)

        assert exc_info.value.message == "Missing required fields: weight, pickup_address"

    @pytest.mark.asyncio
    async def test_empty_dimensions_counts_as_missing(self, shipments, fake_db, client_user, shipment_fields):
        shipment_fields["dimensions"] = {}

        with pytest.raises(ValidationException) as exc_info:
            await shipments.create(client_user, shipment_fields)

        assert exc_info.value.message == "Missing required fields: dimensions"
        assert fake_db.shipments == {}

    @pytest.mark.asyncio
    async def test_invalid_value_rejected(self, shipments, client_user, shipment_fields):
        shipment_fields["weight"] = -3
        with pytest.raises(ValidationException) as exc_info:
            await shipments.create(client_user, shipment_fields)
        assert "weight" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_store_failure_is_database_error(
        self, shipments, fake_db, client_user, shipment_fields
    ):
        fake_db.fail_next = RuntimeError("connection lost")
        with pytest.raises(DatabaseException) as exc_info:
            await shipments.create(client_user, shipment_fields)
        assert exc_info.value.status_code == 500


class TestReadShipments:
    @pytest.mark.asyncio
    async def test_client_lists_own_newest_first(
        self, shipments, client_user, other_client, shipment_fields
    ):
        first = await shipments.create(client_user, shipment_fields)
        await shipments.create(other_client, shipment_fields)
        second = await shipments.create(client_user, shipment_fields)

        listed = await shipments.list(client_user)

        assert [s.shipment_id for s in listed] == [second.shipment_id, first.shipment_id]

    @pytest.mark.asyncio
    async def test_agent_lists_open_with_client_name(
        self, shipments, fake_db, client_user, agent_user, shipment_fields
    ):
        open_one = await shipments.create(client_user, shipment_fields)
        closed = await shipments.create(client_user, shipment_fields)
        fake_db.shipments[closed.shipment_id]["status"] = "completed"

        listed = await shipments.list(agent_user)

        assert [s.shipment_id for s in listed] == [open_one.shipment_id]
        assert listed[0].client_name == "Carla Client"

    @pytest.mark.asyncio
    async def test_get_includes_offers(self, shipments, offers, client_user, agent_user, shipment_fields):
        shipment = await shipments.create(client_user, shipment_fields)
        await offers.create(agent_user, shipment.shipment_id, 150)

        loaded, shipment_offers = await shipments.get(shipment.shipment_id, client_user)

        assert loaded.status == "offers_received"
        assert len(shipment_offers) == 1
        assert shipment_offers[0].agent_name == "Alice Agent"
        assert shipment_offers[0].agent_email == "agent1@example.com"

    @pytest.mark.asyncio
    async def test_other_client_forbidden(self, shipments, client_user, other_client, shipment_fields):
        shipment = await shipments.create(client_user, shipment_fields)
        with pytest.raises(ForbiddenException):
            await shipments.get(shipment.shipment_id, other_client)

    @pytest.mark.asyncio
    async def test_agent_can_read_any(self, shipments, client_user, agent_user, shipment_fields):
        shipment = await shipments.create(client_user, shipment_fields)
        loaded, _ = await shipments.get(shipment.shipment_id, agent_user)
        assert loaded.shipment_id == shipment.shipment_id

    @pytest.mark.asyncio
    async def test_missing_shipment(self, shipments, client_user):
        with pytest.raises(NotFoundException):
            await shipments.get(404, client_user)


class TestDeleteShipment:
    @pytest.mark.asyncio
    async def test_delete_cascades(
        self, shipments, offers, fake_db, client_user, agent_user, shipment_fields
    ):
        shipment = await shipments.create(client_user, shipment_fields)
        await offers.create(agent_user, shipment.shipment_id, 90)
        assert fake_db.notifications

        await shipments.delete(shipment.shipment_id, client_user)

        assert fake_db.shipments == {}
        assert fake_db.offers == {}
        assert fake_db.notifications == {}

    @pytest.mark.asyncio
    async def test_non_owner_forbidden(
        self, shipments, client_user, other_client, agent_user, shipment_fields
    ):
        shipment = await shipments.create(client_user, shipment_fields)
        with pytest.raises(ForbiddenException):
            await shipments.delete(shipment.shipment_id, other_client)
        with pytest.raises(ForbiddenException):
            await shipments.delete(shipment.shipment_id, agent_user)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", ["offer_accepted", "in_progress", "completed"])
    async def test_locked_shipment_kept(self, shipments, fake_db, client_user, shipment_fields, status):
        shipment = await shipments.create(client_user, shipment_fields)
        fake_db.shipments[shipment.shipment_id]["status"] = status

        with pytest.raises(InvalidStateException):
            await shipments.delete(shipment.shipment_id, client_user)
        assert shipment.shipment_id in fake_db.shipments

    @pytest.mark.asyncio
    async def test_lock_taken_between_read_and_delete(
        self, shipments, fake_db, client_user, shipment_fields
    ):
        shipment = await shipments.create(client_user, shipment_fields)
        original = fake_db.delete_shipment_cascade

        def accept_then_delete(shipment_id):
            fake_db.shipments[shipment_id]["status"] = "offer_accepted"
            return original(shipment_id)

        fake_db.delete_shipment_cascade = accept_then_delete

        with pytest.raises(InvalidStateException) as exc_info:
            await shipments.delete(shipment.shipment_id, client_user)
        assert "offer_accepted" in exc_info.value.message


class TestUpdateStatus:
    @pytest.mark.asyncio
    async def test_owner_moves_forward(
        self, shipments, offers, client_user, agent_user, shipment_fields
    ):
        shipment = await shipments.create(client_user, shipment_fields)
        offer = await offers.create(agent_user, shipment.shipment_id, 80)
        await offers.accept(offer.offer_id, client_user)

        updated = await shipments.update_status(shipment.shipment_id, client_user, "in_progress")
        assert updated.status == "in_progress"
        assert updated.accepted_offer_id == offer.offer_id

        done = await shipments.update_status(shipment.shipment_id, client_user, "completed")
        assert done.status == "completed"

    @pytest.mark.asyncio
    async def test_invalid_status_value(self, shipments, client_user, shipment_fields):
        shipment = await shipments.create(client_user, shipment_fields)
        with pytest.raises(ValidationException):
            await shipments.update_status(shipment.shipment_id, client_user, "teleported")
        with pytest.raises(ValidationException):
            await shipments.update_status(shipment.shipment_id, client_user, None)

    @pytest.mark.asyncio
    async def test_cannot_set_offer_accepted_directly(self, shipments, client_user, shipment_fields):
        shipment = await shipments.create(client_user, shipment_fields)
        with pytest.raises(InvalidStateException):
            await shipments.update_status(shipment.shipment_id, client_user, "offer_accepted")

    @pytest.mark.asyncio
    async def test_cannot_reopen_after_acceptance(
        self, shipments, offers, client_user, agent_user, shipment_fields
    ):
        shipment = await shipments.create(client_user, shipment_fields)
        offer = await offers.create(agent_user, shipment.shipment_id, 80)
        await offers.accept(offer.offer_id, client_user)

        with pytest.raises(InvalidStateException):
            await shipments.update_status(shipment.shipment_id, client_user, "pending")

    @pytest.mark.asyncio
    async def test_other_client_forbidden(self, shipments, client_user, other_client, shipment_fields):
        shipment = await shipments.create(client_user, shipment_fields)
        with pytest.raises(ForbiddenException):
            await shipments.update_status(shipment.shipment_id, other_client, "in_progress")

    @pytest.mark.asyncio
    async def test_concurrent_change_detected(self, shipments, fake_db, client_user, shipment_fields):
        shipment = await shipments.create(client_user, shipment_fields)
        fake_db.update_shipment_status = lambda *args: False

        with pytest.raises(InvalidStateException):
            await shipments.update_status(shipment.shipment_id, client_user, "in_progress")
