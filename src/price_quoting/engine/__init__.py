"""Engine subpackage - core price resolution, tax and assembly logic."""
from .quoting_engine import QuotingEngine
from .models import PriceBasis, QuoteErr, QuoteOk, QuoteRequest, ShipTo, PriceQuoteResult
from .errors import ErrorKind, PricingError

__all__ = [
    'QuotingEngine', 'PriceBasis', 'QuoteErr', 'QuoteOk', 'QuoteRequest',
    'ShipTo', 'PriceQuoteResult', 'ErrorKind', 'PricingError',
]
