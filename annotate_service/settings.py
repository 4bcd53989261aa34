from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    max_rows: int = 100

    annotate_api_key: str | None = None
    random_seed: int | None = None

    cors_allow_origin: str = "*"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

settings = Settings()
