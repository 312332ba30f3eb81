import logging

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Database
    DATABASE_URL: str = "sqlite:///./shortlinks.db"

    # Domain
    DEFAULT_DOMAIN: str = "customslinks.com"
    BASE_URL: str = "https://customslinks.com"
    SERVER_IP: str = "127.0.0.1"  # Custom domains point their A record here
    CONTACT_LINK: str = "https://t.me/customslinks"

    # Admin API, disabled while empty
    ADMIN_API_KEY: str = ""

    # Rate Limiting
    RATE_LIMIT_PER_HOUR: int = 10

    # Short codes
    SHORT_CODE_LENGTH: int = 6

    # Click recording
    USER_AGENT_MAX_LENGTH: int = 500

    # Geolocation
    GEO_API_URL: str = "http://ip-api.com/json/{ip}"
    GEO_TIMEOUT_SECONDS: float = 2.0
    GEO_CACHE_SIZE: int = 10000

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"


settings = Settings()


def setup_logging(config: Settings = None) -> None:
    """Configure the root logger from settings"""
    if config is None:
        config = settings

    log_level = getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Leave handlers installed by uvicorn or a test runner alone
    if root_logger.handlers:
        return

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)


def get_settings() -> Settings:
    return settings
