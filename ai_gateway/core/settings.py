from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

from ai_gateway.analysis.parsing import MalformedResponsePolicy


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Performance logging (console)
    # Logs request durations in ms. Useful for spotting slow model calls.
    PERF_LOG_ENABLED: bool = True
    # Log slow requests / spans at WARNING when >= this threshold.
    PERF_LOG_SLOW_MS: int = 250
    # Internal (non-request) spans: upstream model calls, normalization.
    PERF_LOG_INNER_ENABLED: bool = True
    # If true, logs all internal spans (can be noisy). If false, logs only slow spans.
    PERF_LOG_INNER_ALWAYS: bool = False

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # CORS
    CORS_ALLOW_ORIGINS: list[str] = ["*"]

    # API security (optional)
    REQUIRE_API_KEY: bool = False
    API_KEY: str | None = None
    # Optional admin key for runtime controls. Falls back to API_KEY.
    API_KEY_ADMIN: str | None = None

    # Basic rate limiting (optional)
    RATE_LIMIT_ENABLED: bool = False
    RATE_LIMIT_PER_MINUTE: int = 60
    # Only trust X-Forwarded-For when a reverse proxy you control sets it.
    TRUST_PROXY_HEADERS: bool = False

    # Upstream model (OpenAI Responses API)
    OPENAI_API_KEY: str | None = None
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_MODEL: str = "gpt-4.1-mini"
    OPENAI_TIMEOUT_SECONDS: float = 60.0

    # Uploads
    MAX_IMAGE_BYTES: int = 8 * 1024 * 1024

    # Harmonic patterns
    # v2 (scored, pixel points) endpoint is OFF by default. Can be toggled at runtime
    # through /api/controls/features/harmonic_v2 without a restart.
    HARMONIC_V2_ENABLED: bool = False
    # What to do when the model reply is not JSON: strict_error (502) | soft_warning (200 + warning)
    HARMONIC_MALFORMED_POLICY: MalformedResponsePolicy = MalformedResponsePolicy.STRICT_ERROR
    HARMONIC_V2_MALFORMED_POLICY: MalformedResponsePolicy = MalformedResponsePolicy.SOFT_WARNING


settings = Settings()
