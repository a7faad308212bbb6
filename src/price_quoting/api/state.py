"""
Shared engine instance for the API.

The engine only holds the repository's data directory; pricing data is read
fresh on every request.
"""
from ..config.settings import get_settings
from ..data.repository import CsvPricingRepository
from ..engine.quoting_engine import QuotingEngine

settings = get_settings()
engine = QuotingEngine(CsvPricingRepository(settings.data_dir), settings)


def get_engine() -> QuotingEngine:
    """FastAPI dependency; tests override it with an in-memory engine."""
    return engine
