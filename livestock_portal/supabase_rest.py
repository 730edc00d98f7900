"""
Helpers for talking to Supabase over HTTP (PostgREST, Auth).

Reads made with a user's access token go through row-level security exactly
as the browser client would; everything else uses the service-role key.
"""
from functools import wraps
from typing import Any, Dict, List, Optional

import requests
from flask import current_app, g, jsonify, request
from supabase import Client, create_client

from . import SupabaseError, config

_client: Optional[Client] = None


def _headers(token: Optional[str] = None, prefer: Optional[str] = None) -> Dict[str, str]:
    if token:
        headers = config.HEADERS_ANON.copy()
        headers["Authorization"] = f"Bearer {token}"
    else:
        headers = config.HEADERS_SERVICE.copy()
    if prefer:
        headers["Prefer"] = prefer
    return headers


def supabase_get(table: str, params: Optional[Dict[str, str]] = None, select: str = "*",
                 token: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Generic GET from Supabase PostgREST.
    params: dict of query params (PostgREST style), e.g. {"animal_id": "eq.<uuid>"}
    select: select string, embedded joins allowed, e.g. "id,animals(name,species)"
    token: caller's access token; when given, row-level security applies
    """
    url = f"{config.SUPABASE_REST}/{table}"
    q = {"select": select}
    if params:
        q.update(params)
    resp = requests.get(url, headers=_headers(token), params=q, timeout=config.REQUEST_TIMEOUT)
    resp.raise_for_status()
    rows = resp.json()
    if not isinstance(rows, list):
        raise SupabaseError(f"Expected a list of rows from {table}")
    return rows


def supabase_insert(table: str, payload: Any, returning: str = "*", token: Optional[str] = None) -> Any:
    url = f"{config.SUPABASE_REST}/{table}"
    params = {"select": returning}
    r = requests.post(url, headers=_headers(token, "return=representation"), json=payload,
                      params=params, timeout=config.REQUEST_TIMEOUT)
    r.raise_for_status()
    return r.json()


def supabase_update(table: str, match: Dict[str, Any], payload: Dict[str, Any], returning: str = "*") -> Any:
    url = f"{config.SUPABASE_REST}/{table}"
    # Build match query string like ?id=eq.<val>&...
    params = {"select": returning}
    params.update({k: f"eq.{v}" for k, v in match.items()})
    r = requests.patch(url, headers=_headers(prefer="return=representation"), json=payload,
                       params=params, timeout=config.REQUEST_TIMEOUT)
    r.raise_for_status()
    return r.json()


def get_client() -> Client:
    """Lazily built supabase-py client (service role, no session persistence)."""
    global _client
    if _client is None:
        _client = create_client(config.SUPABASE_URL, config.SERVICE_KEY)
    return _client


# ------------------------
# Auth & roles
# ------------------------
def get_auth_user_from_token(access_token: str) -> Optional[dict]:
    """
    Call Supabase Auth endpoint to validate access_token.
    Returns auth user JSON on success, else None.
    """
    if not access_token:
        return None
    url = f"{config.SUPABASE_AUTH_URL}/user"
    headers = {"Authorization": f"Bearer {access_token}", "apikey": config.ANON_KEY or config.SERVICE_KEY}
    r = requests.get(url, headers=headers, timeout=config.REQUEST_TIMEOUT)
    if r.status_code != 200:
        return None
    return r.json()


def fetch_roles(user_id: str) -> List[str]:
    rows = supabase_get("user_roles", params={"user_id": f"eq.{user_id}"}, select="role")
    return [row.get("role") for row in rows]


def bearer_token() -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1]
    return None


def log_activity(user_id: str, activity_type: str, description: str, metadata: Optional[dict] = None):
    """
    Insert into user_activity_logs for traceability.
    Failures are logged and never raised to the caller.
    """
    payload = {
        "user_id": user_id,
        "activity_type": activity_type,
        "activity_description": description,
        "metadata": metadata or {},
    }
    try:
        supabase_insert("user_activity_logs", [payload])
    except Exception as e:
        current_app.logger.error("Failed to write activity log: %s", e)


# ------------------------
# Decorator: verify_auth
# ------------------------
def verify_auth(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        token = bearer_token()
        if not token:
            return jsonify({"success": False, "message": "Authorization token required"}), 401

        auth_user = get_auth_user_from_token(token)
        if not auth_user:
            return jsonify({"success": False, "message": "Invalid or expired token"}), 401

        # Attach minimal user info to g
        g.auth_user = auth_user
        g.access_token = token
        g.user = {"id": auth_user.get("id"), "email": auth_user.get("email")}
        return fn(*args, **kwargs)
    return wrapper
