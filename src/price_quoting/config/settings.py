"""
Centralized settings and path configuration for the quoting engine.
"""
import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional


# ISO 4217 minor units for currencies that differ from the 2-decimal default
CURRENCY_MINOR_UNITS = {
    'JPY': 0,
    'KRW': 0,
    'CLP': 0,
    'ISK': 0,
    'BHD': 3,
    'KWD': 3,
    'OMR': 3,
    'TND': 3,
}


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


def get_sample_data_dir() -> Path:
    """Directory holding the bundled sample price books, entries and tax rules."""
    return Path(__file__).resolve().parent.parent / 'data' / 'sample'


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Project paths
    project_root: Path

    # Directory with price_books.csv, price_entries.csv, products.csv, tax_rules.csv
    data_dir: Path

    log_level: str = 'INFO'

    # Decimal places used when a currency is not listed in currency_minor_units
    default_currency_digits: int = 2
    currency_minor_units: dict[str, int] = field(default_factory=lambda: dict(CURRENCY_MINOR_UNITS))

    def minor_units(self, currency: Optional[str]) -> int:
        """Number of decimal places for a currency code."""
        if currency:
            digits = self.currency_minor_units.get(currency.upper())
            if digits is not None:
                return digits
        return self.default_currency_digits

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from the project structure and environment."""
        root = project_root or get_project_root()

        data_dir_env = os.environ.get('PRICE_QUOTING_DATA_DIR')
        data_dir = Path(data_dir_env) if data_dir_env else get_sample_data_dir()

        digits_env = os.environ.get('PRICE_QUOTING_DEFAULT_CURRENCY_DIGITS', '').strip()

        return cls(
            project_root=root,
            data_dir=data_dir,
            log_level=os.environ.get('PRICE_QUOTING_LOG_LEVEL', 'INFO').upper(),
            default_currency_digits=int(digits_env) if digits_env else 2,
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings

