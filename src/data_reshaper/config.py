"""Runtime configuration loaded from the environment."""
import os
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Settings:
    """Engine and store settings."""

    def __init__(self):
        self.default_encoding = os.getenv('DEFAULT_ENCODING', 'utf-8')
        self.default_delimiter = os.getenv('DEFAULT_DELIMITER', ',')
        self.sample_size = int(os.getenv('DETECT_SAMPLE_SIZE', '2000'))
        self.sample_lines = int(os.getenv('DETECT_SAMPLE_LINES', '5'))
        self.phone_country_code = os.getenv('PHONE_COUNTRY_CODE', '49')
        self.store_backend = os.getenv('STORE_BACKEND', 'json').lower()
        self.store_path = os.getenv('STORE_PATH', '.data_reshaper')
        self.store_url = os.getenv('STORE_URL', 'sqlite:///data_reshaper.db')
        self.log_level = os.getenv('LOG_LEVEL', 'WARNING').upper()


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the cached Settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment (useful for testing)."""
    global _settings
    _settings = None
