"""
Change feed for recomputing views when tables change.

Supabase database webhooks POST {"type", "table", "record", ...} to
/realtime/webhook; each payload is published to the subscribers of that table.
Subscribers only learn "table X changed with event Y" and refetch.
"""
import logging
import threading
from typing import Callable, Dict, Iterable, List, Optional

from flask import Blueprint, jsonify, request

from . import config

logger = logging.getLogger(__name__)

realtime_bp = Blueprint("realtime", __name__)

Callback = Callable[[str, str, Optional[dict]], None]


class Subscription:
    def __init__(self, feed: "ChangeFeed", table: str, callback: Callback, events: Iterable[str]):
        self.feed = feed
        self.table = table
        self.callback = callback
        self.events = {e.upper() for e in events}
        self.active = True

    def matches(self, table: str, event: str) -> bool:
        return self.active and table == self.table and ("*" in self.events or event in self.events)

    def unsubscribe(self):
        self.feed.remove(self)


class ChangeFeed:
    def __init__(self):
        self._subs: List[Subscription] = []
        self._lock = threading.Lock()

    def subscribe(self, table: str, callback: Callback, events: Iterable[str] = ("*",)) -> Subscription:
        sub = Subscription(self, table, callback, events)
        with self._lock:
            self._subs.append(sub)
        return sub

    def remove(self, sub: Subscription):
        with self._lock:
            sub.active = False
            if sub in self._subs:
                self._subs.remove(sub)

    def close(self):
        with self._lock:
            for sub in self._subs:
                sub.active = False
            self._subs.clear()

    def publish(self, table: str, event: str, record: Optional[dict] = None) -> int:
        """Deliver to every matching subscriber; returns how many were called."""
        event = event.upper()
        with self._lock:
            targets = [s for s in self._subs if s.matches(table, event)]
        for sub in targets:
            try:
                sub.callback(table, event, record)
            except Exception:
                logger.exception("Change callback failed for %s %s", event, table)
        return len(targets)


feed = ChangeFeed()


class Recomputed:
    """
    Lazily recomputed result of a compute function.

    Change events of interest only mark the view stale; the next get()
    recomputes. get(key) also recomputes whenever the key differs from the one
    the cached value was built for (e.g. today's date). A compute that raises
    leaves nothing cached. Dispose with close() on shutdown.
    """

    def __init__(self, compute: Callable[[], object], tables: Dict[str, Iterable[str]],
                 change_feed: Optional[ChangeFeed] = None):
        self.compute = compute
        self.refreshes = 0
        self._value = None
        self._key = None
        self._version = 0
        self._built_version = None
        self._lock = threading.Lock()
        change_feed = change_feed or feed
        self._subs = [change_feed.subscribe(table, self._on_change, events) for table, events in tables.items()]

    def _on_change(self, table, event, record):
        self._version += 1

    @property
    def stale(self) -> bool:
        return self._built_version != self._version

    def get(self, key=None):
        with self._lock:
            if self.stale or key != self._key:
                version = self._version
                value = self.compute()
                self._value, self._key, self._built_version = value, key, version
                self.refreshes += 1
            return self._value

    def close(self):
        for sub in self._subs:
            sub.unsubscribe()
        self._subs = []


@realtime_bp.route("/realtime/webhook", methods=["POST"])
def database_webhook():
    if config.REALTIME_WEBHOOK_SECRET and request.headers.get("X-Webhook-Secret") != config.REALTIME_WEBHOOK_SECRET:
        return jsonify({"success": False, "message": "Invalid webhook secret"}), 401
    body = request.get_json(silent=True) or {}
    table = body.get("table")
    event = body.get("type")
    if not table or not event:
        return jsonify({"success": False, "message": "table and type are required"}), 400
    delivered = feed.publish(table, event, body.get("record"))
    return jsonify({"success": True, "delivered": delivered})
