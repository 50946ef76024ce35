#!/usr/bin/env python
"""
Start the wholesale pricing API.

Usage:
    python scripts/run_api.py [--data-dir DIR] [--port 8000] [--reload]
"""
import argparse
import os
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

import uvicorn

from wholesale_pricing.config.settings import DATA_DIR_ENV
from wholesale_pricing.logging_config import setup_logging


def main():
    parser = argparse.ArgumentParser(description="Run the wholesale pricing API")
    parser.add_argument("--data-dir", help="Directory with tiers/bulk/moq CSVs")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=int(os.environ.get("PORT", 8000)))
    parser.add_argument("--reload", action="store_true")
    parser.add_argument("--log-level", help="Overrides the configured log level")
    args = parser.parse_args()

    if args.data_dir:
        os.environ[DATA_DIR_ENV] = str(Path(args.data_dir).resolve())

    setup_logging(args.log_level)
    uvicorn.run(
        "wholesale_pricing.api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )


if __name__ == "__main__":
    main()
