from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    sql_echo: bool = False
    log_level: str = "INFO"

    # LLM провайдер
    openai_api_key: str = ""
    openai_model: str = "gpt-4-0125-preview"
    ai_cache_ttl_hours: int = 24

    # Присутствие пользователей в документе
    presence_heartbeat_seconds: float = 30
    presence_sweep_seconds: float = 60
    presence_window_minutes: int = 5

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
