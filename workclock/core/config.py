from typing import Optional

from atams import AtamsBaseSettings


class Settings(AtamsBaseSettings):
    """
    Application Settings

    Inherits from AtamsBaseSettings which includes:
    - DATABASE_URL, DB_POOL_SIZE, DB_MAX_OVERFLOW, DB_POOL_RECYCLE, DB_POOL_TIMEOUT, DB_POOL_PRE_PING
    - ENCRYPTION_ENABLED, ENCRYPTION_KEY, ENCRYPTION_IV (response encryption)
    - LOGGING_ENABLED, LOG_LEVEL, LOG_TO_FILE, LOG_FILE_PATH
    - CORS_ORIGINS, CORS_ALLOW_CREDENTIALS, CORS_ALLOW_METHODS, CORS_ALLOW_HEADERS
    - RATE_LIMIT_ENABLED, RATE_LIMIT_REQUESTS, RATE_LIMIT_WINDOW
    - DEBUG

    All settings can be overridden via .env file or by redefining them here.
    """
    APP_NAME: str = "Work Clock"
    APP_VERSION: str = "1.0.0"

    # Single-user tracker, local SQLite file unless configured otherwise
    DATABASE_URL: str = "sqlite:///./work_clock.db"

    # Not used for authentication (single user), required by the base settings
    ATLAS_APP_CODE: str = "WORKCLOCK"

    # Viewer UTC offset used to bucket days when a request does not pass one.
    # Unset means the server's local zone.
    DEFAULT_TZ_OFFSET_MINUTES: Optional[int] = None

    # Upper bound for a single bulk import request
    IMPORT_MAX_EVENTS: int = 10000


settings = Settings()
