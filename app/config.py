from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # WhatsApp Cloud API
    verify_token: str = ""
    whatsapp_token: Optional[str] = None
    whatsapp_phone_number_id: Optional[str] = None
    whatsapp_api_version: str = "v19.0"
    whatsapp_api_base_url: str = "https://graph.facebook.com"

    # Google Sheets
    sheet_id: Optional[str] = None
    sheet_range: str = "Sheet1!A1"
    google_client_email: Optional[str] = None
    google_private_key: Optional[str] = None

    # Alerts / admin
    alert_bot_token: Optional[str] = None
    alert_chat_id: Optional[str] = None
    admin_token: Optional[str] = None

    business_name: str = "Customer Care"
    conversation_idle_minutes: int = 120
    idle_sweep_interval_seconds: float = 60.0
    idle_sweeper_enabled: bool = True
    dedup_ttl_seconds: int = 3600
    timezone: str = "Asia/Karachi"

    log_level: str = "INFO"
    debug: bool = False

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
