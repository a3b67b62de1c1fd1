"""Environment-based configuration for the AI extraction service."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """AI extraction settings, loaded from environment variables."""

    # Server
    PORT: int = 8092
    LOG_LEVEL: str = "INFO"

    # Provider HTTP timeouts and retry (per attempt, before failing over)
    PROVIDER_TIMEOUT_SECONDS: int = 60
    PROVIDER_CONNECT_TIMEOUT: int = 10
    PROVIDER_RETRY_ATTEMPTS: int = 2
    PROVIDER_RETRY_DELAY: float = 1.0
    PROVIDER_RETRY_BACKOFF: float = 2.0

    # Generation defaults when a provider config has no override
    DEFAULT_MAX_TOKENS: int = 2048
    DEFAULT_TEMPERATURE: float = 0.1

    # Skip providers whose monthly usage cap is reached. Off by default: caps
    # are reported through usage stats and providers are still tried in order.
    ENFORCE_USAGE_LIMITS: bool = False

    model_config = {"env_prefix": "", "case_sensitive": True}


settings = Settings()
