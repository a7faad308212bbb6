#!/usr/bin/env python
"""
Print a fully traced quote for one line.

Usage:
    python scripts/debug_quote.py P100 10 --book PB1 --country DE
"""
import argparse
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from price_quoting.config.logging_config import configure_logging
from price_quoting.config.settings import get_settings
from price_quoting.data.repository import CsvPricingRepository
from price_quoting.engine import PricingError, QuotingEngine, QuoteRequest


def debug():
    parser = argparse.ArgumentParser(description="Trace a single quote")
    parser.add_argument("product_id")
    parser.add_argument("quantity")
    parser.add_argument("--variant")
    parser.add_argument("--book", help="Price book id (default: active default book)")
    parser.add_argument("--unit", help="Unit override (default: entry unit, else product unit)")
    parser.add_argument("--country")
    parser.add_argument("--region")
    parser.add_argument("--postal")
    parser.add_argument("--as-of", help="ISO timestamp to quote at")
    parser.add_argument("--data-dir")
    args = parser.parse_args()

    configure_logging("DEBUG")
    settings = get_settings()
    data_dir = Path(args.data_dir) if args.data_dir else settings.data_dir
    engine = QuotingEngine(CsvPricingRepository(data_dir), settings)

    try:
        request = QuoteRequest.from_dict({
            "productId": args.product_id,
            "variantId": args.variant,
            "priceBookId": args.book,
            "unitId": args.unit,
            "quantity": args.quantity,
            "shipTo": {"country": args.country, "region": args.region, "postal": args.postal},
            "asOf": args.as_of,
        })
    except PricingError as e:
        print(f"❌ {e.kind.value}: {e.message}")
        sys.exit(1)

    print(f"Quoting {request.quantity} × {request.product_id} from {data_dir}")
    outcome = engine.quote(request)

    if not outcome.ok:
        print(f"\n❌ {outcome.kind.value}: {outcome.message}")
        sys.exit(1)

    result = outcome.result
    print("\nTrace:")
    print(result.get_trace_text())
    print("\nResult:")
    for key, value in result.to_response().items():
        print(f"  {key}: {value}")


if __name__ == "__main__":
    debug()
