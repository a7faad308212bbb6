#!/usr/bin/env python
"""
Run the Price Quoting API (FastAPI via uvicorn).

Usage:
    python scripts/run_api.py [--data-dir DIR] [--host HOST] [--port PORT] [--no-reload]
"""
import argparse
import os
import subprocess
import sys
from pathlib import Path


def main():
    parser = argparse.ArgumentParser(description="Run the Price Quoting API")
    parser.add_argument("--data-dir", help="Directory with the pricing CSV tables")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--no-reload", action="store_true")
    args = parser.parse_args()

    project_root = Path(__file__).parent.parent

    # Ensure src is in python path
    env = os.environ.copy()
    src_path = str(project_root / "src")
    env["PYTHONPATH"] = os.pathsep.join(p for p in (src_path, env.get("PYTHONPATH")) if p)
    if args.data_dir:
        env["PRICE_QUOTING_DATA_DIR"] = str(Path(args.data_dir).resolve())

    cmd = [
        sys.executable, "-m", "uvicorn",
        "price_quoting.api.main:app",
        "--host", args.host,
        "--port", str(args.port),
    ]
    if not args.no_reload:
        cmd.append("--reload")

    print(f"Starting Price Quoting API on {args.host}:{args.port}...")
    try:
        subprocess.run(cmd, env=env, cwd=str(project_root))
    except KeyboardInterrupt:
        print("\nAPI stopped.")


if __name__ == "__main__":
    main()
