"""
Server-side handlers that the front end and cron call directly:

- impersonate-user: an admin starts/stops viewing the portal as another user.
  Only the audit trail is written; no session or token is minted.
- send-enquiry-reminders: nudges sellers about marketplace enquiries that have
  been pending for more than a day. Each enquiry is reminded at most once,
  guarded by its reminder_sent flag. Callers must present the
  service-role key as their bearer token.
"""
import hmac
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from flask import Blueprint, jsonify, make_response, request

from . import AuthorizationError, config
from .supabase_rest import (bearer_token, fetch_roles, get_client, log_activity,
                            supabase_get, supabase_insert, supabase_update)

logger = logging.getLogger(__name__)

functions_bp = Blueprint("functions", __name__, url_prefix="/functions")

ENQUIRY_REMINDER_AGE = timedelta(hours=24)


def _cors(response, status=200):
    response.status_code = status
    response.headers.update(config.CORS_HEADERS)
    return response


def _is_service_call(token: Optional[str]) -> bool:
    """True when the caller presents the service-role key as its bearer token."""
    if not token or not config.SERVICE_KEY:
        return False
    return hmac.compare_digest(token, config.SERVICE_KEY)


def _auth_user(token: str):
    """Resolve an access token to the Supabase auth user, or None."""
    try:
        res = get_client().auth.get_user(token)
    except Exception as e:
        logger.info("Token lookup failed: %s", e)
        return None
    return res.user if res else None


# =====================================================================
# impersonate-user
# =====================================================================
def impersonate(token: Optional[str], body: Dict[str, Any]) -> Dict[str, Any]:
    if not token:
        raise AuthorizationError("No authorization header")

    user = _auth_user(token)
    if not user:
        raise AuthorizationError("Invalid authentication token")

    try:
        roles = fetch_roles(user.id)
    except Exception as e:
        logger.error("Role lookup failed for %s: %s", user.id, e)
        roles = []
    if "admin" not in roles:
        raise AuthorizationError("User does not have admin privileges")

    target_user_id = body.get("targetUserId")
    action = body.get("action")
    if not target_user_id:
        raise ValueError("Target user ID is required")
    if action not in ("start", "stop"):
        raise ValueError('Invalid action. Use "start" or "stop"')

    verb = "started" if action == "start" else "stopped"
    log_activity(
        user.id,
        f"impersonation_{verb}",
        f"Admin {user.email} {verb} impersonating user {target_user_id}",
        {
            "admin_id": user.id,
            "target_user_id": target_user_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )

    if action == "start":
        return {
            "success": True,
            "impersonatedUserId": target_user_id,
            "adminUserId": user.id,
            "message": "Impersonation started successfully",
        }
    return {"success": True, "message": "Impersonation stopped successfully"}


@functions_bp.route("/impersonate-user", methods=["POST", "OPTIONS"])
def impersonate_user():
    if request.method == "OPTIONS":
        return _cors(make_response(""))
    try:
        result = impersonate(bearer_token(), request.get_json(silent=True) or {})
        return _cors(jsonify(result))
    except Exception as e:
        logger.error("Error in impersonate-user: %s", e)
        message = str(e) or "An error occurred during impersonation"
        return _cors(jsonify({"error": message}), 400)


# =====================================================================
# send-enquiry-reminders
# =====================================================================
def send_enquiry_reminders(now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Insert a seller notification for each stale pending enquiry and flag it.
    A failing row is logged and skipped; fetch failures propagate.
    """
    now = now or datetime.now(timezone.utc)
    cutoff = (now - ENQUIRY_REMINDER_AGE).isoformat()
    logger.info("Starting enquiry reminder check...")

    enquiries = supabase_get("marketplace_enquiries", params={
        "status": "eq.pending",
        "reminder_sent": "eq.false",
        "created_at": f"lt.{cutoff}",
    }, select="id,listing_id,buyer_name,created_at,listing:marketplace_listings(title,seller_id)")
    logger.info("Found %d enquiries needing reminders", len(enquiries))

    if not enquiries:
        return {"message": "No enquiries need reminders", "total_enquiries": 0, "reminders_sent": 0}

    sent = 0
    for enquiry in enquiries:
        listing = enquiry.get("listing") or {}
        seller_id = listing.get("seller_id")
        if not seller_id:
            logger.warning("No seller found for enquiry %s", enquiry["id"])
            continue

        try:
            supabase_insert("notifications", [{
                "user_id": seller_id,
                "title": "Marketplace Enquiry Reminder",
                "message": (f"You have a pending enquiry from {enquiry.get('buyer_name')} for "
                            f"\"{listing.get('title')}\". Please respond to help close the sale."),
                "type": "marketplace",
                "priority": "medium",
                "related_entity_type": "marketplace_enquiry",
                "related_entity_id": enquiry["id"],
            }])
        except Exception as e:
            logger.error("Error creating notification for enquiry %s: %s", enquiry["id"], e)
            continue

        try:
            supabase_update("marketplace_enquiries", {"id": enquiry["id"]}, {"reminder_sent": True})
        except Exception as e:
            logger.error("Error updating enquiry %s: %s", enquiry["id"], e)
            continue

        sent += 1
        logger.info("Sent reminder for enquiry %s to seller %s", enquiry["id"], seller_id)

    logger.info("Successfully sent %d reminders", sent)
    return {
        "message": "Reminders processed successfully",
        "total_enquiries": len(enquiries),
        "reminders_sent": sent,
    }


@functions_bp.route("/send-enquiry-reminders", methods=["POST", "OPTIONS"])
def send_enquiry_reminders_endpoint():
    if request.method == "OPTIONS":
        return _cors(make_response(""))
    if not _is_service_call(bearer_token()):
        return _cors(jsonify({"error": "Unauthorized"}), 401)
    try:
        return _cors(jsonify(send_enquiry_reminders()))
    except Exception as e:
        logger.exception("Error in send-enquiry-reminders: %s", e)
        return _cors(jsonify({"error": str(e) or "An unknown error occurred"}), 500)
