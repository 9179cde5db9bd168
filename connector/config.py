"""Configuration settings for the BBVA connector."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Bank API
    bank_api_base: str = "https://servicios.bbva.es"
    bank_host_header: str = "bancamovil.grupobbva.com"
    request_timeout_seconds: float = 30.0

    # The API expects an identifier before the device description, any number works
    user_agent_id: str = "12345"
    device_vendor: str = "LGE"
    device_model: str = "Nexus 5"
    device_resolution: str = "1080x1776"
    os_version: str = "5.1.1"
    app_version: str = "4.4"

    # Service identification
    service_name: str = "bbva-connector"

    # Transaction window used when the caller gives no dates (calendar months)
    default_window_months: int = 1

    # Upper bound on pages walked by a single transaction fetch
    max_movement_pages: int = 500

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def user_agent(self) -> str:
        """User agent string sent in both User-Agent and BBVA-User-Agent."""
        return ";".join([
            self.user_agent_id,
            "Android",
            self.device_vendor,
            self.device_model,
            self.device_resolution,
            "Android",
            self.os_version,
            "BMES",
            self.app_version,
            "xxhd",
        ])


settings = Settings()
