"""
Research pipeline configuration settings.

Model selection and credentials for the prospect research agent.

Dependencies: pydantic_settings
System role: AI enrichment configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ResearchSettings(BaseSettings):
    """Gemini model settings for prospect research."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RESEARCH_",
        case_sensitive=False,
        extra="ignore",
    )

    model_id: str = Field(default="gemini-2.5-flash", description="Gemini chat model ID")
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    google_api_key: str | None = Field(
        default=None,
        description="Fallback API key when the user has none on file",
    )
