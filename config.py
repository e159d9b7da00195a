# backend/config.py
import os

from dotenv import load_dotenv

# Load .env in local/dev; harmless in containers where the env is injected
load_dotenv()


def _to_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}

def _to_int(val: str | None, default: int) -> int:
    try:
        return int(val) if val is not None else default
    except ValueError:
        return default


class Config:
    # ── Core ─────────────────────────────────────────────────────────────────
    DEBUG = _to_bool(os.environ.get("DEBUG") or os.environ.get("FLASK_DEBUG"), True)
    TESTING = False
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev_secret")  # ← override in prod!
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # Production-like deployments never leak dev OTPs / delivery errors to clients
    PRODUCTION_LIKE = _to_bool(os.environ.get("PRODUCTION_LIKE"), False)

    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///careerhub.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
    }

    # ── Auth / JWT ──────────────────────────────────────────────────────────
    JWT_TTL_DAYS = _to_int(os.environ.get("JWT_TTL_DAYS"), 30)
    MIN_PASSWORD_LENGTH = _to_int(os.environ.get("MIN_PASSWORD_LENGTH"), 6)

    # ── Two-factor ──────────────────────────────────────────────────────────
    TOTP_ISSUER = os.environ.get("TOTP_ISSUER", "CareerHub")
    OTP_TTL_MINUTES = _to_int(os.environ.get("OTP_TTL_MINUTES"), 5)
    OTP_MAX_ATTEMPTS = _to_int(os.environ.get("OTP_MAX_ATTEMPTS"), 5)

    # ── Twilio (WhatsApp OTP) ───────────────────────────────────────────────
    TWILIO_ACCOUNT_SID   = os.environ.get("TWILIO_ACCOUNT_SID")
    TWILIO_AUTH_TOKEN    = os.environ.get("TWILIO_AUTH_TOKEN")
    TWILIO_WHATSAPP_FROM = os.environ.get("TWILIO_WHATSAPP_FROM")   # e.g. +14155238886
    WHATSAPP_DEFAULT_COUNTRY_CODE = os.environ.get("WHATSAPP_DEFAULT_COUNTRY_CODE", "+91")

    # Defaults to on when credentials are present; TWILIO_ENABLED=0 switches delivery off
    TWILIO_ENABLED = _to_bool(
        os.environ.get("TWILIO_ENABLED"),
        bool(TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN and TWILIO_WHATSAPP_FROM),
    )

    # ── Bootstrap admin (seed_admin.py / `flask seed-admin`) ────────────────
    ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL", "admin@careerhub.local")
    ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD", "admin1234")
    ADMIN_FULL_NAME = os.environ.get("ADMIN_FULL_NAME", "System Admin")


class ProductionConfig(Config):
    DEBUG = False
    PRODUCTION_LIKE = True
    SECRET_KEY = os.environ.get("SECRET_KEY")


class DevelopmentConfig(Config):
    DEBUG = True


class TestingConfig(Config):
    DEBUG = True
    TESTING = True
    PRODUCTION_LIKE = False
    SECRET_KEY = "test-secret-key-with-enough-length-for-hs256"
    SQLALCHEMY_DATABASE_URI = os.environ.get("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ENGINE_OPTIONS = {}
    MIN_PASSWORD_LENGTH = 6
    TOTP_ISSUER = "CareerHub"
    OTP_TTL_MINUTES = 5
    OTP_MAX_ATTEMPTS = 5
    JWT_TTL_DAYS = 30

    # Tests never talk to Twilio unless they patch the sender explicitly
    TWILIO_ACCOUNT_SID = None
    TWILIO_AUTH_TOKEN = None
    TWILIO_WHATSAPP_FROM = None
    TWILIO_ENABLED = False


CONFIGS = {
    "production": ProductionConfig,
    "development": DevelopmentConfig,
    "testing": TestingConfig,
}


def get_config(name: str | None = None) -> type[Config]:
    name = (name or os.environ.get("APP_ENV") or "development").strip().lower()
    return CONFIGS.get(name, DevelopmentConfig)
