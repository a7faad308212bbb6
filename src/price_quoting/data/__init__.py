"""Data subpackage - pricing repositories and CSV validation."""
from .repository import CsvPricingRepository, InMemoryPricingRepository, PricingRepository

__all__ = ['CsvPricingRepository', 'InMemoryPricingRepository', 'PricingRepository']
