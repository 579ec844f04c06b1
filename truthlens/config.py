from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    # ==========================================================================
    # ENVIRONMENT
    # ==========================================================================
    environment: str = "dev"  # "dev", "prod"
    debug: bool = True
    service_name: str = "TruthLens AI Server"

    # ==========================================================================
    # DATABASE (key-value store backing table)
    # ==========================================================================
    database_url: str = "sqlite:///./truthlens.db"

    # ==========================================================================
    # GOOGLE CLOUD / GEMINI
    # ==========================================================================
    google_cloud_api_key: str = ""
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta/models"
    gemini_model: str = "gemini-1.5-flash"
    gemini_temperature: float = 0.3
    gemini_top_k: int = 40
    gemini_top_p: float = 0.95
    gemini_max_output_tokens: int = 2048

    translation_base_url: str = "https://translation.googleapis.com/language/translate/v2"
    speech_base_url: str = "https://speech.googleapis.com/v1"
    vision_base_url: str = "https://vision.googleapis.com/v1"

    upstream_timeout_seconds: float = 30.0  # Per outbound call

    # ==========================================================================
    # API SECURITY
    # ==========================================================================
    # Bearer tokens accepted on every endpoint.
    # Both empty = auth disabled (dev).
    anon_key: str = ""
    service_key: str = ""

    # ==========================================================================
    # RATE LIMITING
    # ==========================================================================
    rate_limit_requests: int = 60  # Max requests per window, 0 disables
    rate_limit_window: int = 60  # Window in seconds
    # Behind a reverse proxy: key on the hop it appends to X-Forwarded-For
    trust_proxy: bool = False

    # ==========================================================================
    # HTTP
    # ==========================================================================
    api_prefix: str = "/make-server-76a6fe9f"
    cors_origins: str = "*"  # Comma-separated origins, or "*" for all

    # ==========================================================================
    # ANALYSES
    # ==========================================================================
    recent_analyses_limit: int = 50

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "prod"

    @property
    def cors_origins_list(self) -> list:
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def api_key_configured(self) -> bool:
        return bool(self.google_cloud_api_key)

    @property
    def accepted_tokens(self) -> List[str]:
        return [token for token in (self.anon_key, self.service_key) if token]


settings = Settings()
