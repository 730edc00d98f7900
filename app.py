"""
Flask back end for the livestock portal (Supabase-backed)

Usage:
  - Put your Supabase URL and SERVICE_ROLE key in .env (SUPABASE_URL, SUPABASE_SERVICE_KEY)
  - Frontend obtains an access_token via Supabase Auth and sends it as "Authorization: Bearer <token>"
  - Farmer dashboards under /farmer, admin overview under /admin, reference data under
    /nutrition, /weather, /disease-alerts
  - Supabase database webhooks POST to /realtime/webhook
  - Cron (or the built-in scheduler) calls /functions/send-enquiry-reminders

Note: This uses the Supabase PostgREST endpoints (REST) via HTTP requests.
"""
import atexit
import logging

from flask import Flask, jsonify

from livestock_portal import config
from livestock_portal.dashboards import close_admin_views, dashboards_bp
from livestock_portal.feeding import feeding_bp
from livestock_portal.functions import functions_bp
from livestock_portal.realtime import feed, realtime_bp
from livestock_portal.scheduler import build_scheduler

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = Flask(__name__)

app.register_blueprint(dashboards_bp)
app.register_blueprint(feeding_bp)
app.register_blueprint(realtime_bp)
app.register_blueprint(functions_bp)


@app.route("/ping")
def ping():
    return {"status": "ok", "message": "Flask is working"}


@app.errorhandler(404)
def not_found(e):
    return jsonify({"success": False, "message": "Not found"}), 404


scheduler = build_scheduler()


def shutdown():
    close_admin_views()
    feed.close()
    if scheduler and scheduler.running:
        scheduler.shutdown(wait=False)


atexit.register(shutdown)


# ------------------------
# Run server
# ------------------------
if __name__ == "__main__":
    if scheduler:
        scheduler.start()
    port = config.PORT
    app.logger.info("Starting Flask server on http://0.0.0.0:%s", port)
    app.run(host="0.0.0.0", port=port, debug=True, use_reloader=False)
