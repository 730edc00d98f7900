import os

from dotenv import load_dotenv

load_dotenv()

SUPABASE_URL = os.environ.get("SUPABASE_URL", "")  # https://<project>.supabase.co
SUPABASE_REST = SUPABASE_URL.rstrip("/") + "/rest/v1"
SUPABASE_AUTH_URL = SUPABASE_URL.rstrip("/") + "/auth/v1"
SERVICE_KEY = os.environ.get("SUPABASE_SERVICE_KEY", "")  # service_role
ANON_KEY = os.environ.get("SUPABASE_ANON_KEY")  # optional

RF_API_BASE = os.environ.get("RF_API_BASE", "").rstrip("/")
DATA_SOURCE = os.environ.get("DATA_SOURCE", "demo")
DEMO_SEED = os.environ.get("DEMO_SEED") or None
REALTIME_WEBHOOK_SECRET = os.environ.get("REALTIME_WEBHOOK_SECRET", "")

ENQUIRY_REMINDER_INTERVAL_MINUTES = int(os.environ.get("ENQUIRY_REMINDER_INTERVAL_MINUTES", "0"))
REQUEST_TIMEOUT = float(os.environ.get("REQUEST_TIMEOUT", "10"))
PORT = int(os.environ.get("PORT", 5000))


HEADERS_SERVICE = {
    "apikey": SERVICE_KEY,
    "Authorization": f"Bearer {SERVICE_KEY}",
    "Content-Type": "application/json",
}

# For verifying frontend token
HEADERS_ANON = {
    "apikey": ANON_KEY or SERVICE_KEY,
    "Content-Type": "application/json",
}

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}
