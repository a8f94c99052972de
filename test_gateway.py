"""
Tests for the persistence gateway and the in-process live feed
"""

import pytest

from app.errors import TransientIOError, ValidationError
from app.services.gateway import Filter, GatewayResult
from app.services.realtime import DELETE, INSERT, UPDATE, ChangeEvent, ChangeFeed


class TestGatewayResult:
    def test_unwrap_ok(self):
        assert GatewayResult(data=[1]).unwrap() == [1]

    def test_unwrap_raises_error(self):
        result = GatewayResult(error=TransientIOError("down"))
        assert result.ok is False
        with pytest.raises(TransientIOError):
            result.unwrap()


class TestSqlGateway:
    async def test_insert_select_update_delete(self, gateway, client_profile):
        created = (await gateway.insert("notifications", {
            "user_id": client_profile["id"],
            "type": "comment",
            "title": "Hi",
            "message": "Hello",
        })).unwrap()
        assert created["id"] is not None
        assert created["is_read"] is False

        updated = (await gateway.update("notifications", {"id": created["id"]}, {"is_read": True})).unwrap()
        assert [row["is_read"] for row in updated] == [True]

        rows = (await gateway.select("notifications", [Filter("is_read", "eq", True)])).unwrap()
        assert [row["id"] for row in rows] == [created["id"]]

        deleted = (await gateway.delete("notifications", {"id": created["id"]})).unwrap()
        assert [row["id"] for row in deleted] == [created["id"]]
        assert (await gateway.select_one("notifications", {"id": created["id"]})).unwrap() is None

    async def test_order_and_limit(self, gateway, seed):
        for name in ("b", "c", "a"):
            seed.profile(f"{name}@example.com", name)

        rows = (await gateway.select("profiles", order_by=("-full_name",), limit=2)).unwrap()

        assert [row["full_name"] for row in rows] == ["c", "b"]

    async def test_unknown_table_is_an_error_result(self, gateway):
        result = await gateway.select("tasks")
        assert isinstance(result.error, ValidationError)

    async def test_unknown_filter_column_is_an_error_result(self, gateway):
        result = await gateway.select("profiles", {"nickname": "x"})
        assert isinstance(result.error, ValidationError)

    async def test_writes_publish_change_events(self, gateway, client_profile):
        events = []

        async def listener(event):
            events.append(event.event_type)

        gateway.subscribe("all-notifications", "notifications", None, listener)
        created = (await gateway.insert("notifications", {
            "user_id": client_profile["id"], "type": "comment", "title": "t", "message": "m",
        })).unwrap()
        await gateway.update("notifications", {"id": created["id"]}, {"is_read": True})
        await gateway.delete("notifications", {"id": created["id"]})

        assert events == [INSERT, UPDATE, DELETE]

    async def test_failed_write_publishes_nothing(self, gateway):
        events = []

        async def listener(event):
            events.append(event)

        gateway.subscribe("all-notifications", "notifications", None, listener)
        result = await gateway.insert("notifications", {"title": "missing user and message"})

        assert isinstance(result.error, TransientIOError)
        assert events == []


class TestChangeFeed:
    async def test_filters_and_event_types(self):
        feed = ChangeFeed()
        received = []

        async def listener(event):
            received.append(event.record["id"])

        feed.subscribe("notifications:1", "notifications", {"user_id": 1}, listener, events=(INSERT,))

        await feed.publish(ChangeEvent("notifications", INSERT, new={"id": 1, "user_id": 1}))
        await feed.publish(ChangeEvent("notifications", INSERT, new={"id": 2, "user_id": 2}))
        await feed.publish(ChangeEvent("notifications", UPDATE, new={"id": 3, "user_id": 1}))
        await feed.publish(ChangeEvent("comments", INSERT, new={"id": 4, "user_id": 1}))

        assert received == [1]

    async def test_listener_registered_once(self):
        feed = ChangeFeed()
        received = []

        async def listener(event):
            received.append(event)

        feed.subscribe("comments:7", "comments", {"project_id": 7}, listener)
        feed.subscribe("comments:7", "comments", {"project_id": 7}, listener)
        await feed.publish(ChangeEvent("comments", INSERT, new={"id": 1, "project_id": 7}))

        assert len(received) == 1
        assert feed.listener_count("comments:7") == 1

    def test_scope_cannot_be_rebound(self):
        feed = ChangeFeed()
        feed.channel("comments:7", "comments", {"project_id": 7})

        with pytest.raises(ValueError):
            feed.channel("comments:7", "comments", {"project_id": 8})

    async def test_failing_listener_does_not_block_others(self):
        feed = ChangeFeed()
        received = []

        async def broken(event):
            raise RuntimeError("boom")

        async def healthy(event):
            received.append(event)

        feed.subscribe("comments:7", "comments", {"project_id": 7}, broken)
        feed.subscribe("comments:7", "comments", {"project_id": 7}, healthy)
        await feed.publish(ChangeEvent("comments", DELETE, old={"id": 1, "project_id": 7}))

        assert len(received) == 1

    def test_unsubscribe_closes_empty_channel(self):
        feed = ChangeFeed()

        async def listener(event):
            pass

        unsubscribe = feed.subscribe("comments:7", "comments", {"project_id": 7}, listener)
        unsubscribe()
        unsubscribe()

        assert "comments:7" not in feed.channels
