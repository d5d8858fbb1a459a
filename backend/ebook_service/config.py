import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name, default):
    return os.getenv(name, str(default)).strip().lower() in ("1", "true", "yes")


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", SECRET_KEY)
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Document slot
    EBOOK_DOCUMENT_SLUG = os.getenv("EBOOK_DOCUMENT_SLUG", "main")

    # Media boundary: only CDN URLs under this prefix are tracked or deleted
    ASSETS_CDN_BASE_URL = os.getenv("ASSETS_CDN_BASE_URL", "https://assets.example.com")
    EBOOK_MEDIA_PREFIX = os.getenv("EBOOK_MEDIA_PREFIX", "ebooks/main/")
    EBOOK_VERSIONS_PREFIX = os.getenv("EBOOK_VERSIONS_PREFIX", "ebook/versions/")

    # Object storage (S3 compatible)
    STORAGE_ENDPOINT = os.getenv("STORAGE_ENDPOINT")
    STORAGE_ACCESS_KEY = os.getenv("STORAGE_ACCESS_KEY")
    STORAGE_SECRET_KEY = os.getenv("STORAGE_SECRET_KEY")
    STORAGE_USE_SSL = _env_bool("STORAGE_USE_SSL", True)
    STORAGE_REGION = os.getenv("STORAGE_REGION", "eu-central-1")
    EBOOK_VERSIONS_BUCKET = os.getenv("EBOOK_VERSIONS_BUCKET")
    MEDIA_BUCKET = os.getenv("MEDIA_BUCKET") or EBOOK_VERSIONS_BUCKET

    # Deferred deletion
    MEDIA_DELETION_TTL_SECONDS = int(os.getenv("MEDIA_DELETION_TTL_SECONDS", "900"))
    MEDIA_REAPER_BATCH_SIZE = int(os.getenv("MEDIA_REAPER_BATCH_SIZE", "100"))
    MEDIA_REAPER_MAX_ATTEMPTS = int(os.getenv("MEDIA_REAPER_MAX_ATTEMPTS", "10"))

    VERSIONS_PAGE_MAX = int(os.getenv("VERSIONS_PAGE_MAX", "100"))


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.getenv("DEV_DATABASE_URI", "sqlite:///ebook-dev.db")


class ProductionConfig(BaseConfig):
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URI")


class TestingConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    JWT_SECRET_KEY = "test-secret-key-with-enough-length-for-hs256"
    ASSETS_CDN_BASE_URL = "https://cdn.test"
    EBOOK_MEDIA_PREFIX = "ebooks/main/"
    EBOOK_VERSIONS_BUCKET = "versions"
    MEDIA_BUCKET = "media"
    MEDIA_DELETION_TTL_SECONDS = 900
    MEDIA_REAPER_MAX_ATTEMPTS = 3


config_by_name = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}
