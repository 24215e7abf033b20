"""Configuration management for the application."""

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from snap_card_generator.exceptions import ConfigurationError

# Load environment variables from .env file
load_dotenv()

# Values that show up when the key was never filled in
PLACEHOLDER_KEYS = ("$(OPENAI_API_KEY_APP)", "$(OPENAI_API_KEY)")
PLACEHOLDER_MARKERS = ("YOUR_API_KEY", "your-api-key", "sk-...")


class Settings(BaseSettings):
    """Application settings."""

    app_name: str = "Snap Card Generator"
    app_version: str = "0.1.0"
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # API Settings
    openai_api_key: Optional[str] = Field(default=None, alias="OPENAI_API_KEY")
    api_base_url: str = Field(default="https://api.openai.com/v1")
    api_timeout: int = Field(default=60)

    # Models
    chat_model: str = Field(default="gpt-4o-mini")
    image_model: str = Field(default="dall-e-3")

    # Image handling
    jpeg_quality: int = Field(default=70, ge=1, le=95)
    image_size: int = Field(default=1024)
    image_quality: str = Field(default="standard")
    image_style: Optional[str] = Field(default="vivid")

    # Paths
    data_dir: Path = Field(default=Path("data"))
    store_file: str = Field(default="preferences.json")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    def __init__(self, **kwargs):
        """Initialize settings and create the data directory."""
        super().__init__(**kwargs)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    @property
    def store_path(self) -> Path:
        """Location of the JSON preference store."""
        return self.data_dir / self.store_file

    def require_api_key(self) -> str:
        """Return the API key, refusing missing or placeholder values.

        Raises:
            ConfigurationError: If no usable key is configured
        """
        return validate_api_key(self.openai_api_key)


def validate_api_key(api_key: Optional[str]) -> str:
    """Check that an API key is present and not a template placeholder.

    Args:
        api_key: The configured key, possibly None

    Returns:
        The key, stripped of surrounding whitespace

    Raises:
        ConfigurationError: If the key is empty or a placeholder
    """
    key = (api_key or "").strip()
    if not key:
        raise ConfigurationError(
            "OPENAI_API_KEY is not set. Add it to your environment or .env file."
        )
    if key in PLACEHOLDER_KEYS or any(marker in key for marker in PLACEHOLDER_MARKERS):
        raise ConfigurationError(
            f"OPENAI_API_KEY is a placeholder ('{key}'). "
            "Replace it with a real key and restart."
        )
    return key
