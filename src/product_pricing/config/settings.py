"""
Centralized settings for the product pricing tool.

Values come from the environment (optionally a .env file at the project root).
"""
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


ENV_PREFIX = "PRODUCT_PRICING_"


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


def _env(name: str, default: str) -> str:
    return os.getenv(f"{ENV_PREFIX}{name}", default).strip()


def _env_bool(name: str, default: bool) -> bool:
    raw = _env(name, 'true' if default else 'false')
    return raw.lower() in ('1', 'true', 'yes', 'on')


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    project_root: Path

    # Engine
    max_special_fields: int = 4
    # Treat a numeric selection of 0 as "not answered" for Number/base fields
    legacy_number_truthiness: bool = False

    # Session
    # Largest number a customer may enter in a number field
    max_number_selection: int = 1_000_000_000
    history_limit: int = 50

    # Presentation
    currency_symbol: str = "$"
    log_level: str = "INFO"
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from the environment and an optional .env file."""
        root = project_root or get_project_root()

        env_file = root / '.env'
        if env_file.exists():
            load_dotenv(env_file)

        return cls(
            project_root=root,
            max_special_fields=int(_env('MAX_SPECIAL_FIELDS', '4')),
            legacy_number_truthiness=_env_bool('LEGACY_NUMBER_TRUTHINESS', False),
            history_limit=int(_env('HISTORY_LIMIT', '50')),
            max_number_selection=int(_env('MAX_NUMBER_SELECTION', '1000000000')),
            currency_symbol=_env('CURRENCY_SYMBOL', '$'),
            log_level=_env('LOG_LEVEL', 'INFO').upper(),
            api_host=_env('API_HOST', '0.0.0.0'),
            api_port=int(_env('API_PORT', '8000')),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings
