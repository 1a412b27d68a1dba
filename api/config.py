"""
Application configuration loaded from the environment
"""
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    VERSION: str = Field("1.0.0")
    APP_MODE: str = Field("server")

    API_HOST: str = Field("0.0.0.0")
    API_PORT: int = Field(8080)
    API_LOG_LEVEL: str = Field("info")
    DEBUG: bool = Field(False)
    ENABLE_METRICS: bool = Field(True)

    REDIS_URL: str = Field("redis://redis:6379/0")
    REDIS_MAX_CONNECTIONS: int = Field(20)
    REDIS_POOL_TIMEOUT: float = Field(20.0)
    JOB_QUEUE: str = Field("jobs")
    RESULT_QUEUE: str = Field("results")
    DEQUEUE_TIMEOUT: int = Field(30)
    ENQUEUE_TIMEOUT: float = Field(5.0)

    MAX_PARALLELIZATION: int = Field(4)
    WORKER_ERROR_BACKOFF: float = Field(1.0)
    WORKER_HARDWARE_DEVICE: Optional[str] = Field(None)
    WORKER_METRICS_PORT: Optional[int] = Field(None)
    FFMPEG_PATH: str = Field("ffmpeg")

    @field_validator("APP_MODE")
    @classmethod
    def normalize_mode(cls, value: str) -> str:
        return (value or "server").strip().lower()

    @field_validator("MAX_PARALLELIZATION")
    @classmethod
    def positive_parallelization(cls, value: int) -> int:
        if value < 1:
            raise ValueError("MAX_PARALLELIZATION must be a positive integer")
        return value


settings = Settings()
