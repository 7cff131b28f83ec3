import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


def _env_int(name, default):
    return int(os.getenv(name, str(default)))


def _env_bool(name, default):
    return os.getenv(name, str(default)).strip().lower() in ("1", "true", "yes")


class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite file next to the app unless DATABASE_URL points elsewhere
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "slotbook.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Session cookie name for our auth token
    AUTH_COOKIE_NAME = os.getenv("AUTH_COOKIE_NAME", "slotbook_session")

    # 8 hours session lifetime
    SESSION_LIFETIME_SECONDS = _env_int("SESSION_LIFETIME_SECONDS", 8 * 60 * 60)

    # Idle timeout: 20 minutes
    IDLE_TIMEOUT_SECONDS = _env_int("IDLE_TIMEOUT_SECONDS", 20 * 60)

    # Session/cookie security defaults
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = _env_bool("SESSION_COOKIE_SECURE", False)  # set True when using HTTPS

    BCRYPT_ROUNDS = _env_int("BCRYPT_ROUNDS", 12)

    # Cancellation policy (players only; owners and admins are not bound)
    CANCEL_CUTOFF_HOURS = _env_int("CANCEL_CUTOFF_HOURS", 12)

    # How long an unpaid checkout holds its slots
    RESERVATION_TTL_MINUTES = _env_int("RESERVATION_TTL_MINUTES", 15)

    # Slot generation
    GENERATION_MAX_DAYS = _env_int("GENERATION_MAX_DAYS", 90)
    PEAK_HOURS = ((6, 9), (18, 21))
    PEAK_MULTIPLIER = os.getenv("PEAK_MULTIPLIER", "1.2")

    # Payments (Stripe Checkout)
    CURRENCY = os.getenv("CURRENCY", "INR")
    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
    STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
    STRIPE_SUCCESS_URL = os.getenv("STRIPE_SUCCESS_URL", "http://localhost:5173/payments/success")
    STRIPE_CANCEL_URL = os.getenv("STRIPE_CANCEL_URL", "http://localhost:5173/payments/cancel")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Basic app settings
    DEBUG = False


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    BCRYPT_ROUNDS = 4
    STRIPE_SECRET_KEY = "sk_test_dummy"
    STRIPE_WEBHOOK_SECRET = "whsec_test"
    CANCEL_CUTOFF_HOURS = 12
