from os import getenv


class Settings:
    DATABASE_URL = getenv("DATABASE_URL", "sqlite:///./taskflow.db")

    JWT_SECRET = getenv("JWT_SECRET", "dev-secret-change-in-prod")
    JWT_EXPIRE_MIN = int(getenv("JWT_EXPIRE_MIN", "15"))
    JWT_REFRESH_EXPIRE_MIN = int(getenv("JWT_REFRESH_EXPIRE_MIN", "43200"))  # 30 days

    # Applied to new subscriptions that do not pick a zone at sign-up
    DEFAULT_TIME_ZONE = getenv("DEFAULT_TIME_ZONE", "Europe/Berlin")
    RECENT_DAYS = int(getenv("RECENT_DAYS", "7"))

    LOG_LEVEL = getenv("LOG_LEVEL", "INFO")
    LOG_DIR = getenv("LOG_DIR")


settings = Settings()
