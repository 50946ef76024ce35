#!/usr/bin/env python
"""
Data check - loads wholesale CSVs, prints the load report, and prices a
sample cart for every tier.

Usage:
    python scripts/check_data.py [DATA_DIR]
"""
import json
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from wholesale_pricing.config.settings import Settings
from wholesale_pricing.data.loaders import load_wholesale_data
from wholesale_pricing.engine.models import Cart, CartLine
from wholesale_pricing.logging_config import setup_logging


def main():
    setup_logging("WARNING")
    data_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    data = load_wholesale_data(Settings.load(data_dir))
    report = data.report

    print("=" * 60)
    print("WHOLESALE DATA CHECK")
    print("=" * 60)
    print(json.dumps(report["metrics"], indent=2))

    if report["errors"]:
        print("\n❌ LOAD ERRORS")
        for error in report["errors"]:
            print(f"  ERROR: {error}")
    for warning in report["warnings"]:
        print(f"  WARNING: {warning}")

    sample_items = data.schedule.item_ids()[:3]
    if not sample_items:
        print("\nNo bulk-discounted items to sample.")
        sys.exit(1 if report["errors"] else 0)

    engine = data.engine()
    print("\nSample quotes (100 units of each bulk item at $10.00 retail):")
    for tier in data.catalog.list_tiers(active_only=True):
        data.catalog.assign_tier("sample", tier.slug)
        cart = Cart(customer_id="sample", lines=[CartLine(i, 100, 1000) for i in sample_items])
        quote = engine.calculate(cart)
        status = "ok" if quote.validation.is_valid else f"{len(quote.validation.errors)} errors"
        print(f"  {tier.name:<12} total ${quote.summary.total / 100:>10,.2f}  "
              f"savings ${quote.summary.total_savings / 100:>10,.2f}  [{status}]")
    data.catalog.unassign_tier("sample")

    sys.exit(1 if report["errors"] else 0)


if __name__ == "__main__":
    main()
