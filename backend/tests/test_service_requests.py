"""Tests for guest service requests and staff status updates."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from serviceqr.core.clock import utcnow
from serviceqr.models import ServiceRequest
from serviceqr.services.analytics_service import get_analytics_metrics
from serviceqr.services.realtime import ChangeKind, restaurant_channel
from serviceqr.services.service_request_service import (
    ServiceRequestService,
    format_relative_time,
    request_type_info,
)


class TestCreateRequest:

    def test_create(self, db_session, feed, mario_table):
        result = ServiceRequestService(db_session, feed).create_request(mario_table.id, "waiter")
        assert result.success
        assert result.data["type"] == "waiter"
        assert result.data["status"] == "pending"
        assert result.data["table_id"] == mario_table.id

    def test_unknown_type(self, db_session, feed, mario_table):
        result = ServiceRequestService(db_session, feed).create_request(mario_table.id, "dessert")
        assert not result.success
        assert db_session.query(ServiceRequest).count() == 0

    def test_missing_table(self, db_session, feed, mario_bistro):
        result = ServiceRequestService(db_session, feed).create_request(9999, "water")
        assert result.error == "Table not found"

    def test_double_bill_creates_two_rows(self, db_session, feed, mario_table):
        service = ServiceRequestService(db_session, feed)
        first = service.create_request(mario_table.id, "bill")
        second = service.create_request(mario_table.id, "bill")

        assert first.success and second.success
        assert first.data["id"] != second.data["id"]
        pending = service.get_pending_for_restaurant("mario-bistro")
        assert [r.type for r in pending] == ["bill", "bill"]

        assert service.update_status(first.data["id"], "done").success
        remaining = service.get_pending_for_restaurant("mario-bistro")
        assert [r.id for r in remaining] == [second.data["id"]]

        assert service.update_status(second.data["id"], "done").success
        assert service.get_pending_for_restaurant("mario-bistro") == []


class TestUpdateStatus:

    def test_mark_done_moves_updated_at(self, db_session, feed, mario_table):
        service = ServiceRequestService(db_session, feed)
        created = service.create_request(mario_table.id, "water").data

        result = service.update_status(created["id"], "done")
        assert result.success
        assert result.data["status"] == "done"
        assert result.data["updated_at"] >= created["updated_at"]

    def test_missing_request(self, db_session, feed, mario_bistro):
        result = ServiceRequestService(db_session, feed).update_status(4242, "done")
        assert result.error == "Service request not found"

    def test_unknown_status(self, db_session, feed, mario_table):
        service = ServiceRequestService(db_session, feed)
        created = service.create_request(mario_table.id, "water").data
        assert not service.update_status(created["id"], "archived").success

    def test_done_is_terminal(self, db_session, feed, mario_table):
        service = ServiceRequestService(db_session, feed)
        created = service.create_request(mario_table.id, "bill").data
        service.update_status(created["id"], "done")

        result = service.update_status(created["id"], "pending")
        assert not result.success
        assert result.error == "Request already completed"
        assert db_session.get(ServiceRequest, created["id"]).status == "done"

    def test_repeat_done_leaves_record_untouched(self, db_session, feed, mario_table):
        created_at = utcnow() - timedelta(minutes=10)
        call = ServiceRequest(
            table_id=mario_table.id, type="waiter", status="done",
            created_at=created_at, updated_at=created_at + timedelta(minutes=4),
        )
        db_session.add(call)
        db_session.commit()
        stored_updated_at = call.updated_at
        assert get_analytics_metrics(db_session, "mario-bistro").average_response_time == 4.0

        result = ServiceRequestService(db_session, feed).update_status(call.id, "done")
        assert result.success
        assert result.data["status"] == "done"
        db_session.refresh(call)
        assert call.updated_at == stored_updated_at
        assert get_analytics_metrics(db_session, "mario-bistro").average_response_time == 4.0

    @pytest.mark.asyncio
    async def test_repeat_done_publishes_once(self, db_session, feed, mario_bistro, mario_table):
        subscription = feed.subscribe(restaurant_channel(mario_bistro.id))
        service = ServiceRequestService(db_session, feed)
        created = service.create_request(mario_table.id, "water").data
        service.update_status(created["id"], "done")
        service.update_status(created["id"], "done")

        kinds = [(await asyncio.wait_for(subscription.get(), timeout=1)).kind for _ in range(2)]
        await asyncio.sleep(0)
        assert kinds == [ChangeKind.INSERT, ChangeKind.UPDATE]
        assert subscription.queue.empty()


class TestPendingList:

    def test_newest_first_and_scoped(self, db_session, feed, mario_table, sakura_table):
        base = datetime(2024, 3, 15, 11, 0, tzinfo=timezone.utc)
        db_session.add_all([
            ServiceRequest(table_id=mario_table.id, type="waiter", status="pending", created_at=base),
            ServiceRequest(table_id=mario_table.id, type="bill", status="pending",
                           created_at=base + timedelta(minutes=5)),
            ServiceRequest(table_id=mario_table.id, type="water", status="done",
                           created_at=base + timedelta(minutes=7)),
            ServiceRequest(table_id=sakura_table.id, type="water", status="pending",
                           created_at=base + timedelta(minutes=9)),
        ])
        db_session.commit()

        pending = ServiceRequestService(db_session, feed).get_pending_for_restaurant("mario-bistro")
        assert [r.type for r in pending] == ["bill", "waiter"]
        assert all(r.restaurant_slug == "mario-bistro" for r in pending)
        assert pending[0].table_number == "1"
        assert pending[0].created_at.tzinfo is not None

    def test_details(self, db_session, feed, mario_table):
        service = ServiceRequestService(db_session, feed)
        created = service.create_request(mario_table.id, "waiter").data
        details = service.get_with_details(created["id"])
        assert details.restaurant_name == "Mario's Bistro"
        assert service.get_with_details(999) is None


class TestChangeEvents:

    @pytest.mark.asyncio
    async def test_insert_then_update_on_restaurant_channel(self, db_session, feed, mario_bistro, mario_table, sakura_sushi):
        mine = feed.subscribe(restaurant_channel(mario_bistro.id))
        other = feed.subscribe(restaurant_channel(sakura_sushi.id))
        service = ServiceRequestService(db_session, feed)

        created = service.create_request(mario_table.id, "waiter").data
        service.update_status(created["id"], "done")

        inserted = await asyncio.wait_for(mine.get(), timeout=1)
        updated = await asyncio.wait_for(mine.get(), timeout=1)
        assert inserted.kind == ChangeKind.INSERT
        assert inserted.record_id == created["id"]
        assert updated.kind == ChangeKind.UPDATE
        assert updated.record["status"] == "done"
        assert other.queue.empty()

    def test_failed_mutation_publishes_nothing(self, db_session, feed, mario_bistro):
        loop = asyncio.new_event_loop()
        try:
            subscription = feed.subscribe(restaurant_channel(mario_bistro.id), loop=loop)
            ServiceRequestService(db_session, feed).create_request(9999, "bill")
            loop.run_until_complete(asyncio.sleep(0))
            assert subscription.queue.empty()
        finally:
            loop.close()


@pytest.mark.parametrize("minutes,expected", [
    (0, "Just now"),
    (1, "1 min ago"),
    (12, "12 mins ago"),
    (60, "1 hour ago"),
    (150, "2 hours ago"),
    (60 * 24, "1 day ago"),
    (60 * 24 * 3, "3 days ago"),
])
def test_format_relative_time(minutes, expected):
    now = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)
    assert format_relative_time(now - timedelta(minutes=minutes), now) == expected


def test_format_relative_time_naive_input():
    now = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)
    assert format_relative_time(datetime(2024, 3, 15, 11, 30), now) == "30 mins ago"


def test_request_type_info():
    assert request_type_info("bill")["label"] == "Bill"
    assert request_type_info("unknown")["label"] == "Request"


class TestServiceRequestRoutes:

    def test_create(self, client, mario_table):
        res = client.post("/api/v1/service-requests", json={"table_id": mario_table.id, "type": "water"})
        assert res.status_code == 200
        body = res.json()
        assert body["success"] is True
        assert body["data"]["status"] == "pending"

    def test_invalid_type_422(self, client, mario_table):
        res = client.post("/api/v1/service-requests", json={"table_id": mario_table.id, "type": "dessert"})
        assert res.status_code == 422

    def test_missing_table_400(self, client, mario_bistro):
        res = client.post("/api/v1/service-requests", json={"table_id": 9999, "type": "bill"})
        assert res.status_code == 400
        assert res.json() == {"success": False, "error": "Table not found"}

    def test_mark_done_and_pending_list(self, client, mario_table):
        first = client.post("/api/v1/service-requests", json={"table_id": mario_table.id, "type": "bill"}).json()
        second = client.post("/api/v1/service-requests", json={"table_id": mario_table.id, "type": "bill"}).json()

        res = client.get("/api/v1/restaurants/mario-bistro/requests/pending")
        assert res.status_code == 200
        assert res.json()["total"] == 2

        res = client.patch(f"/api/v1/service-requests/{first['data']['id']}/status", json={"status": "done"})
        assert res.status_code == 200
        assert res.json()["data"]["status"] == "done"

        items = client.get("/api/v1/restaurants/mario-bistro/requests/pending").json()["items"]
        assert [i["id"] for i in items] == [second["data"]["id"]]

    def test_cannot_reopen_done_request(self, client, mario_table):
        created = client.post("/api/v1/service-requests", json={"table_id": mario_table.id, "type": "water"}).json()
        url = f"/api/v1/service-requests/{created['data']['id']}/status"
        done = client.patch(url, json={"status": "done"}).json()

        res = client.patch(url, json={"status": "pending"})
        assert res.status_code == 400
        assert res.json() == {"success": False, "error": "Request already completed"}

        again = client.patch(url, json={"status": "done"})
        assert again.status_code == 200
        assert again.json()["data"]["updated_at"] == done["data"]["updated_at"]
        assert client.get("/api/v1/restaurants/mario-bistro/requests/pending").json()["total"] == 0

    def test_mark_done_missing_400(self, client, mario_bistro):
        res = client.patch("/api/v1/service-requests/555/status", json={"status": "done"})
        assert res.status_code == 400

    def test_get_details(self, client, mario_table):
        created = client.post("/api/v1/service-requests", json={"table_id": mario_table.id, "type": "waiter"}).json()
        res = client.get(f"/api/v1/service-requests/{created['data']['id']}")
        assert res.status_code == 200
        assert res.json()["restaurant_slug"] == "mario-bistro"
        assert client.get("/api/v1/service-requests/9999").status_code == 404

    def test_pending_unknown_restaurant(self, client):
        assert client.get("/api/v1/restaurants/ghost/requests/pending").status_code == 404
