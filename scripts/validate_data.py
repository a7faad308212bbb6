#!/usr/bin/env python
"""
Data check pipeline - validates a pricing data directory and runs the golden tests.

Usage:
    python scripts/validate_data.py [DATA_DIR] [--skip-tests]
"""
import argparse
import subprocess
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from price_quoting.data.validate_data import validate_data_dir


def main():
    parser = argparse.ArgumentParser(description="Validate pricing CSV tables")
    parser.add_argument("data_dir", nargs="?", help="Directory to validate (default: configured data dir)")
    parser.add_argument("--skip-tests", action="store_true", help="Do not run the golden quote tests")
    args = parser.parse_args()

    print("=" * 60)
    print("PRICING DATA CHECK")
    print("=" * 60)
    print()

    print("[1/2] Validating pricing tables...")
    report = validate_data_dir(Path(args.data_dir) if args.data_dir else None, verbose=True)

    for warning in report["warnings"]:
        print(f"  WARNING: {warning}")

    if report["status"] != "success":
        print("\n❌ VALIDATION FAILED")
        for error in report["errors"]:
            print(f"  ERROR: {error}")
        sys.exit(1)

    if args.skip_tests:
        print("\n✅ DATA VALID")
        return

    print()
    print("[2/2] Running golden tests...")
    test_result = subprocess.run(
        [sys.executable, '-m', 'pytest', 'tests/test_golden_cases.py', '-v', '--tb=short'],
        cwd=Path(__file__).parent.parent
    )

    if test_result.returncode != 0:
        print("\n❌ TESTS FAILED")
        sys.exit(1)

    print()
    print("=" * 60)
    print("✅ DATA CHECK COMPLETE")
    print("=" * 60)
    print()
    print("Summary:")
    for name, stats in report["files"].items():
        print(f"  {name}: {stats['valid']} valid / {stats['rows']} rows")


if __name__ == "__main__":
    main()
