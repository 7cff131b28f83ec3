import hashlib
import secrets
from datetime import datetime, timedelta
from flask import request, current_app

from models import db
from models.session import Session


def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def client_ip():
    return request.headers.get("X-Forwarded-For", request.remote_addr)


def _cookie_token():
    return request.cookies.get(current_app.config["AUTH_COOKIE_NAME"])


def create_session(user_id: int) -> str:
    """Store a new session for ``user_id`` and return the raw token for the cookie."""
    raw_token = secrets.token_urlsafe(32)
    lifetime = current_app.config.get("SESSION_LIFETIME_SECONDS", 28800)

    db.session.add(Session(
        user_id=user_id,
        token_hash=_hash_token(raw_token),
        expires_at=datetime.utcnow() + timedelta(seconds=lifetime),
        ip=client_ip(),
        user_agent=(request.headers.get("User-Agent") or "")[:255],
    ))
    db.session.commit()
    return raw_token


def get_session_from_request():
    raw_token = _cookie_token()
    if not raw_token:
        return None

    sess = Session.live_by_hash(_hash_token(raw_token))
    now = datetime.utcnow()
    if sess is None or sess.is_expired(now, current_app.config.get("IDLE_TIMEOUT_SECONDS", 1200)):
        return None

    # sliding idle window
    sess.last_seen_at = now
    db.session.commit()
    return sess


def revoke_current_session() -> bool:
    raw_token = _cookie_token()
    sess = Session.live_by_hash(_hash_token(raw_token)) if raw_token else None
    if sess is None:
        return False
    sess.revoked = True
    db.session.commit()
    return True


def revoke_all_sessions(user_id: int) -> int:
    count = (
        Session.query
        .filter_by(user_id=user_id, revoked=False)
        .update({"revoked": True}, synchronize_session=False)
    )
    db.session.commit()
    return count
