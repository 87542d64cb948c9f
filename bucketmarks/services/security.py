from datetime import timedelta
from functools import wraps

from flask import current_app, g, jsonify, request
from flask_login import current_user

from bucketmarks.extensions import db, login_manager
from bucketmarks.models import SessionToken, utcnow


def bearer_token_from_request() -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    token = auth_header.removeprefix("Bearer ").strip()
    return token or None


def find_session(token: str | None) -> SessionToken | None:
    if not token:
        return None
    return SessionToken.query.filter_by(
        token_hash=SessionToken.hash_token(token)
    ).first()


@login_manager.request_loader
def load_user_from_request(req):
    token_row = find_session(bearer_token_from_request())
    if not token_row:
        return None
    if token_row.is_expired():
        db.session.delete(token_row)
        db.session.commit()
        return None
    token_row.last_used_at = utcnow()
    db.session.commit()
    return token_row.user


def issue_session(user) -> tuple[str, SessionToken]:
    token, token_hash = SessionToken.issue_token()
    ttl_days = int(current_app.config.get("SESSION_TTL_DAYS", 30))
    row = SessionToken(
        user_id=user.id,
        token_hash=token_hash,
        expires_at=utcnow() + timedelta(days=ttl_days),
    )
    db.session.add(row)
    db.session.commit()
    return token, row


def api_auth_required(func):
    @wraps(func)
    def wrapped(*args, **kwargs):
        if not current_user.is_authenticated:
            return jsonify({"error": "authentication required"}), 401
        g.api_user = current_user._get_current_object()
        return func(*args, **kwargs)

    return wrapped
