from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    DATABASE_URL: str
    REDIS_URL: str = "redis://localhost:6379/0"

    # sync: insert the audit row in-request | celery: enqueue record_audit_entry
    AUDIT_MODE: str = "sync"

    LOG_LEVEL: str = "INFO"
    ENV: str = "dev"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
