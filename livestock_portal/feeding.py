from flask import Blueprint, current_app, g, jsonify, request
from pydantic import ValidationError

from .models import FeedingLogInput, ReviewInput, first_error_message
from .supabase_rest import supabase_get, supabase_insert, verify_auth

feeding_bp = Blueprint("feeding", __name__)

FEEDING_LOG_LIMIT = 50


@feeding_bp.route("/farmer/feeding-logs", methods=["GET"])
@verify_auth
def farmer_feeding_logs():
    """Latest feeding logs for the caller's animals, newest first."""
    try:
        animals = supabase_get("animals", params={"owner_id": f"eq.{g.user['id']}"},
                               select="id", token=g.access_token)
        animal_ids = [a["id"] for a in animals]
        if not animal_ids:
            return jsonify({"success": True, "logs": []})

        logs = supabase_get("feeding_logs", params={
            "animal_id": f"in.({','.join(animal_ids)})",
            "order": "feeding_time.desc",
            "limit": str(FEEDING_LOG_LIMIT),
        }, select="*,animals:animal_id(name,species,breed)", token=g.access_token)
        return jsonify({"success": True, "logs": logs})
    except Exception as e:
        current_app.logger.exception(e)
        return jsonify({"success": True, "logs": []})


@feeding_bp.route("/farmer/feeding-logs", methods=["POST"])
@verify_auth
def farmer_create_feeding_log():
    try:
        validated = FeedingLogInput.model_validate(request.get_json(silent=True) or {})
    except ValidationError as e:
        return jsonify({"success": False, "message": first_error_message(e)}), 400

    try:
        payload = {
            "animal_id": str(validated.animal_id),
            "feed_type": validated.feed_type,
            "quantity_fed": validated.quantity_fed,
            "fed_by": g.user["id"],
            "animal_response": validated.animal_response,
            "notes": validated.notes or None,
        }
        res = supabase_insert("feeding_logs", [payload], token=g.access_token)
        return jsonify({"success": True, "message": "Feeding log recorded successfully", "log": res[0]}), 201
    except Exception as e:
        current_app.logger.exception(e)
        return jsonify({"success": False, "message": "Failed to record feeding log"}), 500


@feeding_bp.route("/marketplace/listings/<string:listing_id>/reviews", methods=["POST"])
@verify_auth
def submit_review(listing_id):
    body = request.get_json(silent=True) or {}
    try:
        validated = ReviewInput.model_validate(body)
    except ValidationError as e:
        return jsonify({"success": False, "message": first_error_message(e)}), 400

    try:
        payload = {
            "listing_id": listing_id,
            "reviewer_id": g.user["id"],
            "rating": validated.rating,
            "review_text": validated.review_text or None,
        }
        res = supabase_insert("marketplace_reviews", [payload], token=g.access_token)
        return jsonify({"success": True, "message": "Review submitted successfully", "review": res[0]}), 201
    except Exception as e:
        current_app.logger.exception(e)
        return jsonify({"success": False, "message": "Failed to submit review"}), 500
