from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env")

    APP_NAME: str = "SalesTrack"
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    DATABASE_URL: str = "sqlite+pysqlite:///./salestrack.db"
    BCRYPT_ROUNDS: int = 12
    DEFAULT_CURRENCY: str = "GH₵"
    DEFAULT_TIMEZONE: str = "UTC"
    PROVISIONING_KEY: str = "change-me"
    REPORTS_MAX_DATE_RANGE_DAYS: int = 366
    ACTIVITY_LIST_MAX_PAGE_SIZE: int = 200
    METRICS_ENABLED: bool = True
    LOG_LEVEL: str = "INFO"


settings = Settings()
