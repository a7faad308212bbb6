"""
Price Quoting Package

Deterministic price and tax quoting for quote and invoice lines.
Resolves Price Book → Tier Entry → Discount → Tax → Line totals over a
point-in-time snapshot of pricing data.
"""

__version__ = "1.0.0"
