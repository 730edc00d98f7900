"""
Farmer dashboard and admin overview endpoints.

Farmer routes read with the caller's token so row-level security scopes the
rows. Any upstream failure degrades the section to an empty list.
"""
import threading
from datetime import date, timedelta
from typing import List, Optional

from flask import Blueprint, current_app, g, jsonify, request

from . import demo_data
from .alerts import CRITICAL_STATUSES, compute_alerts
from .disease_trends import compute_disease_stats
from .models import AnimalRecord, HealthRecord, VaccinationRecord
from .nutrition import current_season, estimate_daily_cost, lookup, suitable_feeds
from .realtime import Recomputed
from .supabase_rest import fetch_roles, supabase_get, verify_auth
from .vaccinations import DEFAULT_HORIZON_DAYS, URGENCY_LABELS, compute_reminders

dashboards_bp = Blueprint("dashboards", __name__)

JOINED_ANIMAL = "animals(name,species)"

_source: Optional[demo_data.DataSource] = None
_admin_views = {}
_admin_views_lock = threading.Lock()


def data_source() -> demo_data.DataSource:
    global _source
    if _source is None:
        _source = demo_data.get_data_source()
    return _source


# ------------------------
# Snapshot fetches
# ------------------------
def fetch_alerts(today: date, token: Optional[str] = None):
    animals = supabase_get("animals", params={"health_status": f"in.({','.join(CRITICAL_STATUSES)})"},
                           select="id,name,species,health_status", token=token)
    vaccinations = supabase_get("vaccinations", params={"next_due_date": f"lt.{today.isoformat()}"},
                                select=f"id,next_due_date,vaccine_name,animal_id,{JOINED_ANIMAL}", token=token)
    checkups = supabase_get("health_records", params={"next_checkup_date": f"lt.{today.isoformat()}"},
                            select=f"id,next_checkup_date,record_date,animal_id,{JOINED_ANIMAL}", token=token)
    return compute_alerts(
        [AnimalRecord.model_validate(a) for a in animals],
        [VaccinationRecord.model_validate(v) for v in vaccinations],
        [HealthRecord.model_validate(h) for h in checkups],
        today,
    )


def fetch_disease_stats(today: date, token: Optional[str] = None):
    rows = supabase_get("health_records",
                        params={"diagnosis": "not.is.null", "order": "record_date.desc"},
                        select="diagnosis,record_date,animal_id,animals(species)", token=token)
    return compute_disease_stats([HealthRecord.model_validate(r) for r in rows], today)


def fetch_reminders(today: date, horizon: int, token: Optional[str] = None):
    limit = today + timedelta(days=horizon)
    rows = supabase_get("vaccinations",
                        params={"next_due_date": f"lte.{limit.isoformat()}", "order": "next_due_date.asc"},
                        select=f"id,vaccine_name,next_due_date,animal_id,{JOINED_ANIMAL}", token=token)
    return compute_reminders([VaccinationRecord.model_validate(r) for r in rows], today, horizon)


def degrade(section: str, fn, *args, **kwargs) -> List:
    """Run a fetch+compute; on any failure log it and return an empty list."""
    try:
        return fn(*args, **kwargs)
    except Exception as e:
        current_app.logger.exception("Error fetching %s: %s", section, e)
        return []


def dump(items):
    return [item.model_dump(mode="json") for item in items]


# =====================================================================
# Farmer endpoints
# =====================================================================
@dashboards_bp.route("/farmer/alerts", methods=["GET"])
@verify_auth
def farmer_alerts():
    alerts = degrade("alerts", fetch_alerts, date.today(), g.access_token)
    return jsonify({"success": True, "alerts": dump(alerts)})


@dashboards_bp.route("/farmer/disease-stats", methods=["GET"])
@verify_auth
def farmer_disease_stats():
    stats = degrade("disease stats", fetch_disease_stats, date.today(), g.access_token)
    return jsonify({"success": True, "disease_stats": dump(stats)})


@dashboards_bp.route("/farmer/vaccination-reminders", methods=["GET"])
@verify_auth
def farmer_vaccination_reminders():
    horizon = request.args.get("horizon", DEFAULT_HORIZON_DAYS, type=int)
    if horizon < 0:
        return jsonify({"success": False, "message": "horizon must be zero or more days"}), 400
    reminders = degrade("vaccination reminders", fetch_reminders, date.today(), horizon, g.access_token)
    return jsonify({"success": True, "reminders": dump(reminders), "labels": URGENCY_LABELS})


# =====================================================================
# Admin overview (service role, refetched when the change feed or the day moves)
# =====================================================================
def admin_view(name: str, compute, tables) -> Recomputed:
    with _admin_views_lock:
        view = _admin_views.get(name)
        if view is None:
            view = Recomputed(compute, tables)
            _admin_views[name] = view
        return view


def close_admin_views():
    with _admin_views_lock:
        for view in _admin_views.values():
            view.close()
        _admin_views.clear()


def _require_admin():
    try:
        roles = fetch_roles(g.user["id"])
    except Exception as e:
        current_app.logger.exception(e)
        roles = []
    if "admin" not in roles:
        return jsonify({"success": False, "message": "Admin role required"}), 403
    return None


@dashboards_bp.route("/admin/alerts", methods=["GET"])
@verify_auth
def admin_alerts():
    denied = _require_admin()
    if denied:
        return denied
    view = admin_view("alerts", lambda: fetch_alerts(date.today()), {
        "animals": ("*",),
        "vaccinations": ("*",),
        "health_records": ("*",),
    })
    alerts = degrade("alerts", view.get, date.today())
    return jsonify({"success": True, "alerts": dump(alerts)})


@dashboards_bp.route("/admin/disease-stats", methods=["GET"])
@verify_auth
def admin_disease_stats():
    denied = _require_admin()
    if denied:
        return denied
    view = admin_view("disease_stats", lambda: fetch_disease_stats(date.today()),
                      {"health_records": ("INSERT", "UPDATE", "DELETE")})
    stats = degrade("disease stats", view.get, date.today())
    return jsonify({"success": True, "disease_stats": dump(stats)})


# =====================================================================
# Reference data (public)
# =====================================================================
@dashboards_bp.route("/nutrition/<string:species>/<string:category>", methods=["GET"])
def nutrition_guidelines(species, category):
    req = lookup(species, category)
    if not req:
        return jsonify({"success": False, "message": "No guidelines for this species"}), 404
    season = current_season()
    return jsonify({
        "success": True,
        "requirement": req.model_dump(),
        "quantities": {
            field: (q.model_dump() if q else None)
            for field, q in (
                ("greenFodder", req.quantity("greenFodder")),
                ("dryFodder", req.quantity("dryFodder")),
                ("concentrate", req.quantity("concentrate")),
                ("water", req.quantity("water", "l")),
            )
        },
        "daily_cost": estimate_daily_cost(species, category),
        "season": season,
        "seasonal_advice": req.seasonal_adjustments.get(season),
    })


@dashboards_bp.route("/nutrition/<string:species>/feeds", methods=["GET"])
def nutrition_feeds(species):
    return jsonify({"success": True, "feeds": dump(suitable_feeds(species))})


@dashboards_bp.route("/weather", methods=["GET"])
def weather():
    lat = request.args.get("lat", type=float)
    lon = request.args.get("lon", type=float)
    try:
        data = data_source().weather(lat, lon)
    except Exception as e:
        current_app.logger.exception(e)
        return jsonify({"success": True, "weather": None})
    return jsonify({"success": True, "weather": data})


@dashboards_bp.route("/disease-alerts", methods=["GET"])
def disease_alerts():
    count = request.args.get("count", 3, type=int)
    state = request.args.get("state")
    alerts = degrade("disease alerts", data_source().disease_alerts, count, state)
    return jsonify({"success": True, "alerts": alerts})


@dashboards_bp.route("/notifications/demo", methods=["GET"])
def demo_notifications():
    count = request.args.get("count", 10, type=int)
    return jsonify({"success": True, "notifications": demo_data.generate_notifications(max(count, 0))})


@dashboards_bp.route("/emergency-contacts", methods=["GET"])
def default_emergency_contacts():
    return jsonify({"success": True, "contacts": demo_data.emergency_contacts()})
