import os


class ConfigError(RuntimeError):
    pass


class Config:
    NOTION_TOKEN = os.environ.get("NOTION_TOKEN")
    NOTION_DATABASE_ID = os.environ.get("NOTION_DATABASE_ID")
    NOTION_API_URL = os.environ.get("NOTION_API_URL", "https://api.notion.com/v1")
    NOTION_VERSION = os.environ.get("NOTION_VERSION", "2022-06-28")
    SITE_TITLE = os.environ.get("SITE_TITLE", "NotionLinks")
    PORT = int(os.environ.get("PORT", "3000"))
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    UPSTREAM_TIMEOUT = float(os.environ.get("UPSTREAM_TIMEOUT", "30"))
    UPSTREAM_PAGE_SIZE = int(os.environ.get("UPSTREAM_PAGE_SIZE", "100"))
    UPSTREAM_MAX_PAGES = int(os.environ.get("UPSTREAM_MAX_PAGES", "50"))
    UPSTREAM_PAGE_DELAY = float(os.environ.get("UPSTREAM_PAGE_DELAY", "0.1"))

    RATE_LIMIT_WINDOW_SECONDS = float(
        os.environ.get("RATE_LIMIT_WINDOW_SECONDS", "60")
    )
    RATE_LIMIT_MAX_REQUESTS = int(os.environ.get("RATE_LIMIT_MAX_REQUESTS", "30"))
    CACHE_TTL_SECONDS = float(os.environ.get("CACHE_TTL_SECONDS", "300"))
    CACHE_MAX_SIZE = int(os.environ.get("CACHE_MAX_SIZE", "1000"))
    INCREMENTAL_MIN_INTERVAL_SECONDS = float(
        os.environ.get("INCREMENTAL_MIN_INTERVAL_SECONDS", "60")
    )
    DEFAULT_PAGE_SIZE = int(os.environ.get("DEFAULT_PAGE_SIZE", "50"))
    MAX_PAGE_SIZE = int(os.environ.get("MAX_PAGE_SIZE", "100"))

    SCHEDULER_ENABLED = os.environ.get("SCHEDULER_ENABLED", "1") == "1"
    CACHE_SWEEP_INTERVAL_MINUTES = int(
        os.environ.get("CACHE_SWEEP_INTERVAL_MINUTES", "10")
    )
    RATE_LIMIT_SWEEP_INTERVAL_MINUTES = int(
        os.environ.get("RATE_LIMIT_SWEEP_INTERVAL_MINUTES", "5")
    )


class TestConfig(Config):
    TESTING = True
    NOTION_TOKEN = "secret_test_token"
    NOTION_DATABASE_ID = "test-database"
    UPSTREAM_PAGE_DELAY = 0
    SCHEDULER_ENABLED = False


REQUIRED_KEYS = ("NOTION_TOKEN", "NOTION_DATABASE_ID")


def validate_config(config) -> None:
    missing = [key for key in REQUIRED_KEYS if not config.get(key)]
    if missing:
        raise ConfigError(
            f"Missing required configuration: {', '.join(missing)}. "
            "Set them in the environment before starting the server."
        )
