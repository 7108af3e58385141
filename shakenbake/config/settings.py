from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    enabled: bool = True
    destination: str = "mock"
    redact_fields: list[str] = []
    default_audio_mime_type: str = "audio/webm"

    mock_delay_seconds: float = 0.0

    proxy_endpoint: str = ""
    proxy_timeout_seconds: int = 30

    linear_api_key: str = ""
    linear_team_id: str = ""
    linear_project_id: str = ""
    linear_api_url: str = "https://api.linear.app/graphql"
    linear_default_label_ids: list[str] = []
    linear_timeout_seconds: int = 30
    linear_upload_fallback_timeout_seconds: float = 30.0

    cloud_api_key: str = ""
    cloud_endpoint: str = ""
    cloud_timeout_seconds: int = 30
