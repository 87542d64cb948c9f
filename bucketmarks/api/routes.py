from __future__ import annotations

from flask import current_app, g, jsonify, request

from bucketmarks.api import api_bp
from bucketmarks.entities import Tree
from bucketmarks.extensions import db
from bucketmarks.models import User
from bucketmarks.services.common import format_timestamp, is_http_url
from bucketmarks.services.content import extract_metadata
from bucketmarks.services.documents import check_document, load_document, save_document
from bucketmarks.services.search import collect_tags, search_tree
from bucketmarks.services.security import (
    api_auth_required,
    bearer_token_from_request,
    find_session,
    issue_session,
)


def _credentials(payload: dict) -> tuple[str, str]:
    username = (payload.get("username") or "").strip()
    password = payload.get("password") or ""
    return username, password


@api_bp.route("/auth/register", methods=["POST"])
def register():
    payload = request.get_json(silent=True) or {}
    username, password = _credentials(payload)
    if not username or not password:
        return jsonify({"error": "username and password are required"}), 400
    if User.query.filter_by(username=username).first():
        return jsonify({"error": "username already exists"}), 409

    user = User(username=username)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return jsonify({"success": True, "username": user.username}), 201


@api_bp.route("/auth/login", methods=["POST"])
def login():
    payload = request.get_json(silent=True) or {}
    username, password = _credentials(payload)
    if not username or not password:
        return jsonify({"error": "username and password are required"}), 400

    user = User.query.filter_by(username=username).first()
    if not user or not user.check_password(password):
        return jsonify({"error": "invalid credentials"}), 401

    token, session_row = issue_session(user)
    return jsonify(
        {
            "success": True,
            "token": token,
            "username": user.username,
            "expiresAt": format_timestamp(session_row.expires_at),
        }
    )


@api_bp.route("/auth/logout", methods=["POST"])
def logout():
    session_row = find_session(bearer_token_from_request())
    if session_row:
        db.session.delete(session_row)
        db.session.commit()
    return jsonify({"success": True})


@api_bp.route("/auth/session", methods=["GET"])
@api_auth_required
def session_info():
    return jsonify({"username": g.api_user.username})


@api_bp.route("/data", methods=["GET"])
@api_auth_required
def get_data():
    data, last_modified = load_document(g.api_user.id)
    return jsonify({"data": data, "lastModified": last_modified})


@api_bp.route("/data", methods=["POST"])
@api_auth_required
def put_data():
    payload = request.get_json(silent=True) or {}
    data = payload.get("data")
    if not isinstance(data, dict) or not isinstance(data.get("buckets"), list):
        return jsonify({"error": "data must be an object with a buckets list"}), 400

    last_modified = save_document(g.api_user.id, Tree.from_dict(data))
    return jsonify({"success": True, "lastModified": last_modified})


@api_bp.route("/data/check", methods=["GET"])
@api_auth_required
def check_data():
    return jsonify({"lastModified": check_document(g.api_user.id)})


@api_bp.route("/extract-metadata", methods=["POST"])
@api_auth_required
def extract_url_metadata():
    payload = request.get_json(silent=True) or {}
    url = (payload.get("url") or "").strip()
    if not url:
        return jsonify({"error": "url is required"}), 400
    if not is_http_url(url):
        return jsonify({"error": "invalid url format"}), 400

    metadata = extract_metadata(
        url,
        timeout=float(current_app.config["CONTENT_FETCH_TIMEOUT"]),
        max_bytes=int(current_app.config["CONTENT_MAX_BYTES"]),
    )
    if metadata.error:
        current_app.logger.warning(
            "Metadata extraction failed for %s: %s", url, metadata.error
        )
        return (
            jsonify(
                {"error": "failed to extract metadata", "message": metadata.error}
            ),
            502,
        )
    return jsonify(metadata.as_dict())


@api_bp.route("/tags", methods=["GET"])
@api_auth_required
def tags_list():
    data, _ = load_document(g.api_user.id)
    return jsonify({"items": collect_tags(Tree.from_dict(data))})


@api_bp.route("/search", methods=["GET"])
@api_auth_required
def search_api():
    data, _ = load_document(g.api_user.id)
    ranked = search_tree(
        Tree.from_dict(data),
        (request.args.get("q") or "").strip(),
        bucket_id=request.args.get("bucket") or None,
        category_id=request.args.get("category") or None,
        tag=request.args.get("tag") or None,
        limit=request.args.get("limit", type=int) or 50,
    )
    return jsonify(
        {
            "items": [
                {
                    **item["bookmark"].as_dict(),
                    "bucketId": item["bucket"].id,
                    "categoryId": item["category"].id,
                    "score": item["score"],
                    "match_reasons": item["reasons"],
                }
                for item in ranked
            ]
        }
    )
