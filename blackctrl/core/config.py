from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "BLACK CTRL"

    # BLACK CTRL API (auth, generation, history, PDF rendering)
    API_BASE_URL: str = "http://localhost:5000"
    API_PREFIX: str = "/api"

    # Transport timeouts in seconds; generation runs the model and is slower
    HTTP_TIMEOUT: float = 15.0
    GENERATE_TIMEOUT: float = 120.0

    # Exports
    EXPORT_PREFIX: str = "black-ctrl-outreach"
    DOWNLOADS_DIR: str = "."

    # Client-side session cache
    SESSION_CACHE_KEY: str = "authenticated"

    # Tracing: "otlp", "console" or "none"; the console UI owns stdout by default
    OTEL_SERVICE_NAME: str = "blackctrl-client"
    OTEL_TRACES_EXPORTER: str = "none"
    OTEL_EXPORTER_OTLP_ENDPOINT: str = "http://localhost:4317"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def API_URL(self) -> str:
        """Base URL of the API including its prefix, without a trailing slash."""
        prefix = self.API_PREFIX.strip("/")
        base = self.API_BASE_URL.rstrip("/")
        return f"{base}/{prefix}" if prefix else base

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
