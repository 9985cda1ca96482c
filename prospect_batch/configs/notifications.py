"""
Notification configuration settings.

SMTP delivery for batch completion emails. Delivery is disabled (log only)
when no host is configured.

Dependencies: pydantic_settings
System role: Completion email configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class NotificationSettings(BaseSettings):
    """SMTP settings for completion notifications."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SMTP_",
        case_sensitive=False,
        extra="ignore",
    )

    host: str | None = Field(default=None, description="SMTP host; unset disables delivery")
    port: int = Field(default=587)
    username: str | None = Field(default=None)
    password: str | None = Field(default=None)
    sender: str = Field(default="research@localhost", description="From address")
    use_tls: bool = Field(default=True)
