from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Literal, Optional

class Settings(BaseSettings):
    SLACK_BOT_TOKEN: str = Field(..., description="Slack Bot User OAuth Token")
    SLACK_SIGNING_SECRET: str = Field(..., description="Slack Signing Secret for request verification")
    OPENAI_API_KEY: str = Field(..., description="OpenAI API Key")
    OPENAI_MODEL: str = "chatgpt-4o-latest"
    PORT: int = 8080
    LOG_LEVEL: str = "INFO"

    # Retrieval settings
    FETCHER_BACKEND: Literal["http", "browser"] = Field("http", description="Content fetcher implementation")
    FETCH_TIMEOUT_SECONDS: float = 30.0

    # Ingress / processing settings
    MENTION_TIMEOUT_SECONDS: Optional[float] = Field(None, description="Upper bound for one mention's processing")
    SIGNATURE_MAX_AGE_SECONDS: int = Field(300, description="Max age of X-Slack-Request-Timestamp")
    EVENT_DEDUP_CAPACITY: int = Field(1024, description="How many recent event_ids to remember")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

@lru_cache()
def get_settings() -> Settings:
    return Settings()
