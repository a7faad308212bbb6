"""
Error taxonomy for quoting.

Components raise PricingError subclasses; QuotingEngine.quote() turns them
into QuoteErr values so callers can render "no pricing available" inline.
"""
from enum import Enum


class ErrorKind(str, Enum):
    NO_PRICE_FOR_QUANTITY = "NO_PRICE_FOR_QUANTITY"
    PRICE_BOOK_INACTIVE = "PRICE_BOOK_INACTIVE"
    PRICE_BOOK_NOT_FOUND = "PRICE_BOOK_NOT_FOUND"
    PRODUCT_NOT_FOUND = "PRODUCT_NOT_FOUND"
    INVALID_QUANTITY = "INVALID_QUANTITY"
    INVALID_REQUEST = "INVALID_REQUEST"


class PricingError(Exception):
    """Base class for every recoverable quoting failure."""
    kind = ErrorKind.INVALID_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NoPriceForQuantityError(PricingError):
    kind = ErrorKind.NO_PRICE_FOR_QUANTITY


class PriceBookInactiveError(PricingError):
    kind = ErrorKind.PRICE_BOOK_INACTIVE


class PriceBookNotFoundError(PricingError):
    kind = ErrorKind.PRICE_BOOK_NOT_FOUND


class ProductNotFoundError(PricingError):
    kind = ErrorKind.PRODUCT_NOT_FOUND


class InvalidQuantityError(PricingError):
    kind = ErrorKind.INVALID_QUANTITY


class InvalidRequestError(PricingError):
    kind = ErrorKind.INVALID_REQUEST
