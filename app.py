import logging

import click
from flask import Flask, jsonify
from flask_migrate import Migrate

from config import Config
from models import db
from models.enums import RoleName
from models.user import User
from routes import (
    health_bp,
    auth_bp,
    facilities_bp,
    time_slots_bp,
    venues_bp,
    booking_bp,
    payments_bp,
    webhook_bp,
)
from security.csrf import csrf_protect
from services.checkout import expire_stale_orders
from services.errors import BookingServiceError
from services.payments import StripeGateway
from services.store import SqlAlchemyStore
from utils.auth_context import load_current_user
from utils.clock import venue_now
from utils.seed import get_role, seed_roles

logger = logging.getLogger(__name__)


def create_app(config_object=Config, payment_gateway=None):
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(facilities_bp)
    app.register_blueprint(time_slots_bp)
    app.register_blueprint(venues_bp)
    app.register_blueprint(booking_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(webhook_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    app.extensions["payment_gateway"] = payment_gateway or StripeGateway.from_config(app.config)

    # Seed default roles at startup (safe & idempotent)
    with app.app_context():
        if app.config.get("TESTING"):
            db.create_all()
        seed_roles()

    @app.before_request
    def _load_user():
        load_current_user()

    app.before_request(csrf_protect)

    @app.errorhandler(BookingServiceError)
    def _service_error(exc):
        db.session.rollback()
        if exc.status_code >= 500:
            logger.error("%s: %s", type(exc).__name__, exc.message)
        return jsonify(exc.to_dict()), exc.status_code

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    register_cli(app)

    return app


def register_cli(app):
    @app.cli.command("make-admin")
    @click.argument("email")
    def make_admin(email):
        """Promote a user to ADMIN by email (bootstrap)."""
        user = User.query.filter_by(email=email.strip().lower()).first()
        if not user:
            click.echo("User not found")
            return

        admin_role = get_role(RoleName.ADMIN)
        if admin_role not in user.roles:
            user.roles.append(admin_role)
            db.session.commit()

        click.echo(f"{user.email} promoted to ADMIN")

    @app.cli.command("expire-orders")
    def expire_orders():
        """Mark unpaid checkouts past their hold deadline as EXPIRED."""
        count = expire_stale_orders(SqlAlchemyStore(), venue_now())
        click.echo(f"Expired {count} payment orders")


if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
