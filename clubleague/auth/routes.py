"""Routes for the auth blueprint."""

from __future__ import annotations

from typing import Any

from firebase_admin import auth, firestore
from flask import current_app, jsonify, request, session
from flask_wtf.csrf import generate_csrf

from . import bp


@bp.route("/csrf", methods=["GET"])
def csrf_token() -> Any:
    """Hand the client a CSRF token to send back in the X-CSRFToken header."""
    return jsonify({"csrfToken": generate_csrf()})


@bp.route("/session_login", methods=["POST"])
def session_login() -> Any:
    """
    This endpoint is called from the client-side after a successful Firebase login.
    It receives the ID token, verifies it, and creates a server-side session.
    """
    payload = request.get_json(silent=True) or {}
    id_token = payload.get("idToken")
    if not id_token:
        return (
            jsonify(
                {
                    "status": "error",
                    "code": "validation_error",
                    "message": "Missing idToken.",
                }
            ),
            400,
        )
    try:
        decoded_token = auth.verify_id_token(id_token)
    except (auth.InvalidIdTokenError, auth.ExpiredIdTokenError, ValueError) as e:
        current_app.logger.warning(f"Rejected ID token during session login: {e}")
        return (
            jsonify(
                {
                    "status": "error",
                    "code": "not_signed_in",
                    "message": "Invalid or expired token.",
                }
            ),
            401,
        )

    uid = decoded_token["uid"]
    db = firestore.client()
    user_doc = db.collection("users").document(uid).get()
    if not user_doc.exists:
        return (
            jsonify(
                {
                    "status": "error",
                    "code": "not_found",
                    "message": "User not found in Firestore.",
                }
            ),
            404,
        )

    session.clear()
    session["user_id"] = uid
    current_app.logger.info(f"Session started for user {uid}")
    return jsonify({"status": "success", "uid": uid})


@bp.route("/logout", methods=["POST"])
def logout() -> Any:
    """Clear the current session."""
    session.clear()
    return jsonify({"status": "success"})
