import pytest

from livestock_portal import realtime
from livestock_portal.realtime import ChangeFeed, Recomputed


def test_publish_reaches_matching_subscribers():
    feed = ChangeFeed()
    seen = []
    feed.subscribe("health_records", lambda t, e, r: seen.append(("all", e)))
    feed.subscribe("health_records", lambda t, e, r: seen.append(("insert", e)), events=("INSERT",))
    feed.subscribe("animals", lambda t, e, r: seen.append(("animals", e)))

    assert feed.publish("health_records", "insert", {"id": "h1"}) == 2
    assert feed.publish("health_records", "UPDATE") == 1
    assert seen == [("all", "INSERT"), ("insert", "INSERT"), ("all", "UPDATE")]


def test_unsubscribe_stops_delivery():
    feed = ChangeFeed()
    seen = []
    sub = feed.subscribe("vaccinations", lambda t, e, r: seen.append(e))
    sub.unsubscribe()
    assert feed.publish("vaccinations", "INSERT") == 0
    assert seen == []


def test_failing_callback_does_not_block_others():
    feed = ChangeFeed()
    seen = []

    def boom(table, event, record):
        raise RuntimeError("recompute failed")

    feed.subscribe("animals", boom)
    feed.subscribe("animals", lambda t, e, r: seen.append(e))
    assert feed.publish("animals", "UPDATE") == 2
    assert seen == ["UPDATE"]


def test_recomputed_refreshes_on_change_and_closes():
    feed = ChangeFeed()
    snapshots = iter([["a"], ["a", "b"], ["a", "b", "c"]])
    view = Recomputed(lambda: next(snapshots), {"health_records": ("INSERT",)}, change_feed=feed)
    assert view.refreshes == 0
    assert view.get() == ["a"]
    assert view.get() == ["a"]

    feed.publish("health_records", "DELETE")
    assert view.get() == ["a"]
    feed.publish("health_records", "INSERT")
    assert view.stale
    assert view.get() == ["a", "b"]
    assert view.refreshes == 2

    view.close()
    feed.publish("health_records", "INSERT")
    assert view.get() == ["a", "b"]


def test_recomputed_does_not_keep_a_failed_compute():
    feed = ChangeFeed()
    calls = []

    def compute():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("upstream down")
        return ["alert"]

    view = Recomputed(compute, {"animals": ("*",)}, change_feed=feed)
    with pytest.raises(RuntimeError):
        view.get()
    assert view.get() == ["alert"]
    assert view.refreshes == 1


def test_recomputed_rebuilds_when_key_changes():
    feed = ChangeFeed()
    view = Recomputed(lambda: object(), {"vaccinations": ("*",)}, change_feed=feed)
    monday = view.get("2024-06-17")
    assert view.get("2024-06-17") is monday
    assert view.get("2024-06-18") is not monday


def test_webhook_dispatches_to_feed(client):
    seen = []
    realtime.feed.subscribe("vaccinations", lambda t, e, r: seen.append((t, e, r)))

    resp = client.post("/realtime/webhook", json={
        "type": "INSERT", "table": "vaccinations", "schema": "public", "record": {"id": "v1"},
    })
    assert resp.status_code == 200
    assert resp.get_json() == {"success": True, "delivered": 1}
    assert seen == [("vaccinations", "INSERT", {"id": "v1"})]


def test_webhook_requires_table_and_type(client):
    resp = client.post("/realtime/webhook", json={"table": "animals"})
    assert resp.status_code == 400


def test_webhook_secret(client, monkeypatch):
    monkeypatch.setattr(realtime.config, "REALTIME_WEBHOOK_SECRET", "s3cret")
    payload = {"type": "UPDATE", "table": "animals"}
    assert client.post("/realtime/webhook", json=payload).status_code == 401
    ok = client.post("/realtime/webhook", json=payload, headers={"X-Webhook-Secret": "s3cret"})
    assert ok.status_code == 200
