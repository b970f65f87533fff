import os
from datetime import timedelta
from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "default-secret")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Database
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///lms.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Auth
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "jwt-secret")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=int(os.getenv("JWT_ACCESS_TOKEN_EXPIRES_HOURS", 24)))

    # Mail Configuration
    MAIL_SERVER = os.getenv("MAIL_SERVER", "localhost")
    MAIL_PORT = int(os.getenv("MAIL_PORT", 587))
    MAIL_USE_TLS = os.getenv("MAIL_USE_TLS", "True").lower() in ("true", "1", "yes")
    MAIL_USE_SSL = os.getenv("MAIL_USE_SSL", "False").lower() in ("true", "1", "yes")
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "no-reply@lms.local")
    CERTIFICATE_EMAILS_ENABLED = os.getenv("CERTIFICATE_EMAILS_ENABLED", "False").lower() in ("true", "1", "yes")

    # Q&A listing
    QUESTIONS_PER_PAGE = int(os.getenv("QUESTIONS_PER_PAGE", 10))
    MAX_QUESTIONS_PER_PAGE = int(os.getenv("MAX_QUESTIONS_PER_PAGE", 100))


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    JWT_SECRET_KEY = "test-jwt-secret-that-is-long-enough-for-hs256"
    CERTIFICATE_EMAILS_ENABLED = True
    LOG_LEVEL = "DEBUG"
