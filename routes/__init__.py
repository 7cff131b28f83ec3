from routes.health import health_bp
from routes.auth import auth_bp
from routes.facilities import facilities_bp
from routes.time_slots import time_slots_bp
from routes.venues import venues_bp
from routes.booking import booking_bp
from routes.payments import payments_bp
from routes.stripe_webhook import webhook_bp

__all__ = [
    "health_bp",
    "auth_bp",
    "facilities_bp",
    "time_slots_bp",
    "venues_bp",
    "booking_bp",
    "payments_bp",
    "webhook_bp",
]
