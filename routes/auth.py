from flask import Blueprint, request, jsonify, current_app, g

from models import db
from models.enums import RoleName
from models.user import User
from security.csrf import clear_csrf_token, issue_csrf_token
from security.password import hash_password, password_problems, verify_password
from security.session import create_session, revoke_all_sessions, revoke_current_session
from utils.audit import log_event
from utils.auth_context import login_required
from utils.seed import get_role

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")

# roles a user may pick at signup; ADMIN only through the make-admin command
SELF_SERVICE_ROLES = {RoleName.PLAYER, RoleName.OWNER}


def _is_valid_email(email: str) -> bool:
    return isinstance(email, str) and "@" in email and len(email) <= 255


@auth_bp.post("/register")
def register():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    full_name = (data.get("full_name") or "").strip() or None
    phone_number = (data.get("phone_number") or "").strip() or None

    if not _is_valid_email(email):
        return jsonify(error="Invalid email"), 400
    problems = password_problems(password)
    if problems:
        return jsonify(error="Password does not meet policy", details=problems), 400

    try:
        role = RoleName((data.get("role") or RoleName.PLAYER.value).strip().upper())
    except ValueError:
        role = None
    if role not in SELF_SERVICE_ROLES:
        return jsonify(error="role must be PLAYER or OWNER"), 400

    if User.query.filter_by(email=email).first():
        log_event("REGISTER_FAIL_EMAIL_EXISTS", metadata={"email": email})
        return jsonify(error="Email already registered"), 409

    user = User(
        email=email,
        password_hash=hash_password(password),
        full_name=full_name,
        phone_number=phone_number,
    )
    db.session.add(user)
    db.session.flush()

    for name in {RoleName.PLAYER, role}:
        row = get_role(name)
        if row:
            user.roles.append(row)

    db.session.commit()
    log_event("REGISTER_SUCCESS", user_id=user.id, metadata={"role": role.value})

    return jsonify(message="Registered successfully", id=user.id), 201


@auth_bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""

    user = User.query.filter_by(email=email).first()
    if not user or not verify_password(password, user.password_hash):
        log_event("LOGIN_FAIL", user_id=user.id if user else None, metadata={"email": email})
        return jsonify(error="Invalid credentials"), 401

    # Rotate: revoke any existing sessions for this user
    revoked_count = revoke_all_sessions(user.id)
    raw_token = create_session(user.id)

    resp = jsonify(message="Login OK", user=user.to_dict())
    resp.set_cookie(
        current_app.config["AUTH_COOKIE_NAME"],
        raw_token,
        httponly=True,
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        samesite=current_app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
        max_age=current_app.config.get("SESSION_LIFETIME_SECONDS", 8 * 60 * 60),
        path="/",
    )
    resp = issue_csrf_token(resp)

    log_event("LOGIN_SUCCESS", user_id=user.id, metadata={"revoked_sessions": revoked_count})
    return resp, 200


@auth_bp.get("/me")
@login_required
def me():
    return jsonify(g.user.to_dict()), 200


@auth_bp.post("/logout")
@login_required
def logout():
    cookie_name = current_app.config["AUTH_COOKIE_NAME"]
    revoke_current_session()
    log_event("LOGOUT", user_id=g.user.id)

    resp = jsonify(message="Logged out")
    resp.delete_cookie(cookie_name, path="/")
    clear_csrf_token(resp)
    return resp, 200
