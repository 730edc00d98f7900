from datetime import date, timedelta

import pytest
import requests

from livestock_portal import dashboards

YESTERDAY = (date.today() - timedelta(days=1)).isoformat()


def test_farmer_routes_require_token(client):
    for path in ("/farmer/alerts", "/farmer/disease-stats", "/farmer/vaccination-reminders", "/farmer/feeding-logs"):
        resp = client.get(path)
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Authorization token required"


def test_farmer_alerts(client, auth_headers, fake_supabase):
    fake_supabase.tables = {
        "animals": [{"id": "A1", "name": "Chhoti", "species": "Goat", "health_status": "sick"}],
        "vaccinations": [{"id": "v1", "animal_id": "A1", "vaccine_name": "PPR", "next_due_date": YESTERDAY,
                          "animals": {"name": "Chhoti", "species": "Goat"}}],
        "health_records": [{"id": "h1", "animal_id": "B2", "record_date": "2024-01-01",
                            "next_checkup_date": YESTERDAY, "animals": {"name": "Moti", "species": "Cattle"}}],
    }

    resp = client.get("/farmer/alerts", headers=auth_headers)

    assert resp.status_code == 200
    alerts = resp.get_json()["alerts"]
    assert [(a["type"], a["priority"]) for a in alerts] == [
        ("critical_health", "critical"), ("vaccination_due", "critical"), ("checkup_overdue", "high"),
    ]
    # reads go through the caller's token so row-level security applies
    assert {g["token"] for g in fake_supabase.gets} == {"farmer-token"}
    animal_query = next(g for g in fake_supabase.gets if g["table"] == "animals")
    assert animal_query["params"]["health_status"] == "in.(sick,under_treatment,quarantine)"


def test_farmer_alerts_degrade_to_empty_list(client, auth_headers, fake_supabase):
    fake_supabase.errors["vaccinations"] = requests.HTTPError("503 Service Unavailable")
    resp = client.get("/farmer/alerts", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.get_json() == {"success": True, "alerts": []}


def test_farmer_disease_stats(client, auth_headers, fake_supabase):
    today = date.today().isoformat()
    fake_supabase.tables["health_records"] = [
        {"animal_id": "a1", "diagnosis": "Mastitis", "record_date": today, "animals": {"species": "Cattle"}},
        {"animal_id": "a2", "diagnosis": " mastitis", "record_date": today, "animals": {"species": "Buffalo"}},
    ]
    resp = client.get("/farmer/disease-stats", headers=auth_headers)
    stats = resp.get_json()["disease_stats"]
    assert stats == [{"diagnosis": "Mastitis", "count": 2, "trend": "up", "recent_cases": 2,
                      "species_affected": ["Cattle", "Buffalo"]}]


def test_farmer_vaccination_reminders(client, auth_headers, fake_supabase):
    due = (date.today() + timedelta(days=3)).isoformat()
    fake_supabase.tables["vaccinations"] = [
        {"id": "v1", "animal_id": "a1", "vaccine_name": "HS", "next_due_date": due,
         "animals": {"name": "Ganga", "species": "Cattle"}},
    ]
    resp = client.get("/farmer/vaccination-reminders?horizon=14", headers=auth_headers)
    body = resp.get_json()
    assert body["reminders"][0]["urgency"] == "urgent"
    assert body["reminders"][0]["due_text"] == "Due in 3 days"
    assert body["reminders"][0]["next_due_date"] == due
    assert body["labels"]["urgent"] == "Due Soon"

    limit = (date.today() + timedelta(days=14)).isoformat()
    assert fake_supabase.gets[0]["params"]["next_due_date"] == f"lte.{limit}"


def test_negative_horizon_rejected(client, auth_headers, fake_supabase):
    resp = client.get("/farmer/vaccination-reminders?horizon=-1", headers=auth_headers)
    assert resp.status_code == 400


def test_admin_alerts_require_admin(client, auth_headers, fake_supabase):
    fake_supabase.tables["user_roles"] = [{"role": "farmer"}]
    assert client.get("/admin/alerts", headers=auth_headers).status_code == 403


def test_admin_alerts_refresh_on_change(client, auth_headers, fake_supabase):
    fake_supabase.tables["user_roles"] = [{"role": "admin"}]
    fake_supabase.tables["animals"] = [{"id": "a1", "name": "Ganga", "species": "Cattle",
                                        "health_status": "under_treatment"}]

    first = client.get("/admin/alerts", headers=auth_headers).get_json()["alerts"]
    assert [a["priority"] for a in first] == ["high"]

    fake_supabase.tables["animals"][0]["health_status"] = "sick"
    # cached until the change feed says otherwise
    assert client.get("/admin/alerts", headers=auth_headers).get_json()["alerts"][0]["priority"] == "high"

    client.post("/realtime/webhook", json={"type": "UPDATE", "table": "animals"})
    refreshed = client.get("/admin/alerts", headers=auth_headers).get_json()["alerts"]
    assert refreshed[0]["priority"] == "critical"
    # service-role reads, not the caller's token
    assert fake_supabase.gets[-1]["token"] is None


def test_admin_alerts_recover_after_failed_fetch(client, auth_headers, fake_supabase):
    fake_supabase.tables["user_roles"] = [{"role": "admin"}]
    fake_supabase.errors["animals"] = requests.ConnectionError("connection reset")

    first = client.get("/admin/alerts", headers=auth_headers)
    assert first.status_code == 200
    assert first.get_json()["alerts"] == []

    # no webhook in between: the empty fallback must not stick
    del fake_supabase.errors["animals"]
    fake_supabase.tables["animals"] = [{"id": "a1", "name": "Ganga", "species": "Cattle", "health_status": "sick"}]
    alerts = client.get("/admin/alerts", headers=auth_headers).get_json()["alerts"]
    assert [a["id"] for a in alerts] == ["health-a1"]


def test_admin_alerts_recomputed_when_the_day_changes(client, auth_headers, fake_supabase, monkeypatch):
    fake_supabase.tables["user_roles"] = [{"role": "admin"}]
    client.get("/admin/alerts", headers=auth_headers)
    reads = len([g for g in fake_supabase.gets if g["table"] == "vaccinations"])

    class Tomorrow(date):
        @classmethod
        def today(cls):
            return date.fromordinal(date.today().toordinal() + 1)

    monkeypatch.setattr(dashboards, "date", Tomorrow)
    client.get("/admin/alerts", headers=auth_headers)
    assert len([g for g in fake_supabase.gets if g["table"] == "vaccinations"]) == reads + 1


# =====================================================================
# Write paths
# =====================================================================
ANIMAL_UUID = "0b6d2a52-7c1e-4c55-9a39-0d3c8a3c9f10"


def test_feeding_log_created(client, auth_headers, fake_supabase):
    resp = client.post("/farmer/feeding-logs", headers=auth_headers, json={
        "animal_id": ANIMAL_UUID, "feed_type": "  Berseem ", "quantity_fed": "25 kg", "notes": "",
    })
    assert resp.status_code == 201
    table, rows = fake_supabase.inserts[0]
    assert table == "feeding_logs"
    assert rows[0] == {"animal_id": ANIMAL_UUID, "feed_type": "Berseem", "quantity_fed": "25 kg",
                       "fed_by": "farmer-1", "animal_response": None, "notes": None}


@pytest.mark.parametrize("body,field", [
    ({"animal_id": "not-a-uuid", "feed_type": "Hay", "quantity_fed": "2 kg"}, "animal_id"),
    ({"animal_id": ANIMAL_UUID, "feed_type": "   ", "quantity_fed": "2 kg"}, "feed_type"),
    ({"animal_id": ANIMAL_UUID, "feed_type": "Hay", "quantity_fed": "x" * 51}, "quantity_fed"),
])
def test_feeding_log_validation(client, auth_headers, fake_supabase, body, field):
    resp = client.post("/farmer/feeding-logs", headers=auth_headers, json=body)
    assert resp.status_code == 400
    assert resp.get_json()["message"].startswith(f"{field}:")
    assert fake_supabase.inserts == []


def test_feeding_logs_listed_for_own_animals(client, auth_headers, fake_supabase):
    fake_supabase.tables["animals"] = [{"id": "a1"}, {"id": "a2"}]
    fake_supabase.tables["feeding_logs"] = [{"id": "f1", "animal_id": "a1"}]
    resp = client.get("/farmer/feeding-logs", headers=auth_headers)
    assert resp.get_json()["logs"] == [{"id": "f1", "animal_id": "a1"}]
    params = fake_supabase.gets[1]["params"]
    assert params["animal_id"] == "in.(a1,a2)"
    assert params["limit"] == "50"


def test_review_submission(client, auth_headers, fake_supabase):
    resp = client.post("/marketplace/listings/l1/reviews", headers=auth_headers,
                       json={"rating": 5, "review_text": "  Healthy animal "})
    assert resp.status_code == 201
    assert fake_supabase.inserts[0][1][0] == {"listing_id": "l1", "reviewer_id": "farmer-1",
                                              "rating": 5, "review_text": "Healthy animal"}


def test_review_rating_out_of_range(client, auth_headers, fake_supabase):
    resp = client.post("/marketplace/listings/l1/reviews", headers=auth_headers, json={"rating": 0})
    assert resp.status_code == 400
    assert resp.get_json()["message"].startswith("rating:")


def test_review_insert_failure(client, auth_headers, fake_supabase):
    fake_supabase.fail_insert.add("marketplace_reviews")
    resp = client.post("/marketplace/listings/l1/reviews", headers=auth_headers, json={"rating": 4})
    assert resp.status_code == 500
    assert resp.get_json() == {"success": False, "message": "Failed to submit review"}


# =====================================================================
# Reference data
# =====================================================================
def test_nutrition_guidelines(client):
    body = client.get("/nutrition/cattle/lactating").get_json()
    assert body["daily_cost"] == {"min": 156, "max": 234}
    assert body["requirement"]["daily_requirements"]["greenFodder"] == "30-35"
    assert body["quantities"]["greenFodder"] == {"min": 30.0, "max": 35.0, "unit": "kg"}
    assert body["season"] in ("summer", "monsoon", "winter")
    assert body["seasonal_advice"] == body["requirement"]["seasonal_adjustments"][body["season"]]


def test_nutrition_unknown_species(client):
    assert client.get("/nutrition/camel/adult").status_code == 404


def test_nutrition_feeds(client):
    feeds = client.get("/nutrition/sheep/feeds").get_json()["feeds"]
    assert {f["name"] for f in feeds} == {"Berseem (Egyptian Clover)", "Jowar Fodder", "Wheat Bran",
                                          "Mineral Mixture"}


def test_weather_and_disease_alerts_from_demo_source(client, seeded_source):
    weather = client.get("/weather?lat=18.52&lon=73.85").get_json()["weather"]
    assert weather["condition"] in {c["condition"] for c in dashboards.demo_data.WEATHER_CONDITIONS}

    alerts = client.get("/disease-alerts?count=3").get_json()["alerts"]
    assert len(alerts) == 3


def test_demo_notifications(client):
    assert len(client.get("/notifications/demo?count=4").get_json()["notifications"]) == 4


def test_ping(client):
    assert client.get("/ping").get_json()["status"] == "ok"
