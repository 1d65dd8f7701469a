import os


class BaseConfig:
    """Base application configuration shared across environments."""

    APP_NAME: str = "pastestore"

    # Key-value store
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    REDIS_SOCKET_TIMEOUT: float = float(os.getenv("REDIS_SOCKET_TIMEOUT", "5"))
    PASTE_KEY_PREFIX: str = os.getenv("PASTE_KEY_PREFIX", "paste:")

    # Paste rules
    PASTE_ID_LENGTH: int = int(os.getenv("PASTE_ID_LENGTH", "10"))
    PASTE_ID_ATTEMPTS: int = 3
    MAX_BATCH_PASTES: int = 10
    MAX_CONTENT_BYTES: int = int(os.getenv("MAX_CONTENT_BYTES", str(512 * 1024)))

    # Share links are built from the request host unless this is set.
    PUBLIC_BASE_URL: str | None = os.getenv("PUBLIC_BASE_URL")

    # Other Flask-style config flags
    TESTING: bool = False
    DEBUG: bool = False


class DevelopmentConfig(BaseConfig):
    DEBUG = True


class ProductionConfig(BaseConfig):
    DEBUG = False


class TestingConfig(BaseConfig):
    TESTING = True

    REDIS_URL: str = os.getenv("TEST_REDIS_URL", "redis://localhost:6379/15")


CONFIG_BY_NAME = {
    "development": DevelopmentConfig,
    "dev": DevelopmentConfig,
    "production": ProductionConfig,
    "prod": ProductionConfig,
    "testing": TestingConfig,
    "test": TestingConfig,
}


def get_config(env_name: str | None) -> type[BaseConfig]:
    """Return a config class for the given environment name."""
    if not env_name:
        return DevelopmentConfig
    return CONFIG_BY_NAME.get(env_name, DevelopmentConfig)
