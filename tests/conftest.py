"""
Shared pytest fixtures.

Supabase is never contacted: the REST helpers are replaced per module with a
FakeSupabase that serves canned rows and records writes.
"""
import pytest

from livestock_portal import dashboards, demo_data, feeding, functions, supabase_rest
from livestock_portal.realtime import feed


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.errors = {}
        self.gets = []
        self.inserts = []
        self.updates = []
        self.fail_insert = set()
        self.fail_update = set()

    def get(self, table, params=None, select="*", token=None):
        self.gets.append({"table": table, "params": params or {}, "select": select, "token": token})
        if table in self.errors:
            raise self.errors[table]
        return list(self.tables.get(table, []))

    def insert(self, table, payload, returning="*", token=None):
        if table in self.fail_insert:
            raise RuntimeError(f"insert into {table} failed")
        self.inserts.append((table, payload))
        return [dict(row, id=row.get("id", f"{table}-{len(self.inserts)}")) for row in payload]

    def update(self, table, match, payload, returning="*"):
        if table in self.fail_update:
            raise RuntimeError(f"update of {table} failed")
        self.updates.append((table, match, payload))
        return [dict(match, **payload)]


@pytest.fixture
def fake_supabase(monkeypatch):
    fake = FakeSupabase()
    for module in (supabase_rest, dashboards, feeding, functions):
        if hasattr(module, "supabase_get"):
            monkeypatch.setattr(module, "supabase_get", fake.get)
        if hasattr(module, "supabase_insert"):
            monkeypatch.setattr(module, "supabase_insert", fake.insert)
        if hasattr(module, "supabase_update"):
            monkeypatch.setattr(module, "supabase_update", fake.update)
    return fake


@pytest.fixture
def app():
    from app import app as flask_app

    flask_app.config.update(TESTING=True)
    yield flask_app
    dashboards.close_admin_views()
    feed.close()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def farmer(monkeypatch):
    """Any bearer token resolves to this farmer."""
    user = {"id": "farmer-1", "email": "farmer@test.com"}
    monkeypatch.setattr(supabase_rest, "get_auth_user_from_token", lambda token: user if token else None)
    return user


@pytest.fixture
def auth_headers(farmer):
    return {"Authorization": "Bearer farmer-token"}


@pytest.fixture
def seeded_source(monkeypatch):
    source = demo_data.DemoDataSource(seed=7)
    monkeypatch.setattr(dashboards, "_source", source)
    return source
