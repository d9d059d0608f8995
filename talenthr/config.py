import os
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))

SECRET_KEY = os.getenv("SECRET_KEY", "talenthr-secret-key")
DEFAULT_DB = f"sqlite:///{os.path.join(BASE_DIR, 'talenthr.db')}"


def _bool(name, default=False):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    ENV_NAME = "development"
    DEBUG = _bool("DEBUG", False)
    TESTING = False

    SECRET_KEY = SECRET_KEY
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", DEFAULT_DB)
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Tokens (seconds)
    JWT_SECRET = os.getenv("JWT_SECRET", SECRET_KEY)
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", SECRET_KEY + "-refresh")
    JWT_EXPIRES_IN = int(os.getenv("JWT_EXPIRES_IN", "86400"))
    JWT_REFRESH_EXPIRES_IN = int(os.getenv("JWT_REFRESH_EXPIRES_IN", "604800"))
    COOKIE_SECURE = _bool("COOKIE_SECURE", False)

    INVITATION_EXPIRES_DAYS = int(os.getenv("INVITATION_EXPIRES_DAYS", "7"))
    OTP_EXPIRES_MINUTES = int(os.getenv("OTP_EXPIRES_MINUTES", "10"))
    OTP_MAX_ATTEMPTS = int(os.getenv("OTP_MAX_ATTEMPTS", "5"))
    SIGNUP_OTP_WINDOW_MINUTES = 30
    LATE_HOUR = int(os.getenv("LATE_HOUR", "10"))

    APP_URL = os.getenv("APP_URL", "http://localhost:3000")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", APP_URL)

    MAIL_SERVER = os.getenv("MAIL_SERVER", "smtp.gmail.com")
    MAIL_PORT = int(os.getenv("MAIL_PORT", "587"))
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_FROM = os.getenv("MAIL_FROM", "TalentHR <noreply@talenthr.local>")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


class DevelopmentConfig(Config):
    DEBUG = True
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")


class TestingConfig(Config):
    ENV_NAME = "testing"
    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SECRET_KEY = "test-secret"
    JWT_SECRET = "test-access-secret"
    JWT_REFRESH_SECRET = "test-refresh-secret"
    MAIL_USERNAME = None
    MAIL_PASSWORD = None
    APP_URL = "http://testserver"
    COOKIE_SECURE = False
    CORS_ORIGINS = "http://testserver"


class ProductionConfig(Config):
    ENV_NAME = "production"
    DEBUG = False
    COOKIE_SECURE = _bool("COOKIE_SECURE", True)


def get_config():
    env = os.getenv("APP_ENV", "development").lower()
    if env in {"prod", "production"}:
        return ProductionConfig
    if env in {"test", "testing"}:
        return TestingConfig
    return DevelopmentConfig
