"""
Data Loaders - reads tier, bulk-rule, MOQ and assignment CSVs.

Each loader validates rows individually: a bad row is recorded in the load
report with its line number and skipped, the rest still load. The report
mirrors the catalog build report (input file hashes, metrics, warnings,
errors).
"""
import hashlib
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd
from loguru import logger

from ..config.settings import get_settings, Settings
from ..engine.bulk_schedule import BulkDiscountSchedule
from ..engine.errors import ConfigurationError, NotFoundError
from ..engine.models import BulkDiscountRule, Tier
from ..engine.pricing_engine import PricingEngine
from ..engine.sources import InMemoryCatalogSource
from ..services.tier_catalog import TierCatalog


def get_file_hash(path: Path) -> str:
    """Get SHA256 hash of a file."""
    if not path.exists():
        return ""
    with open(path, 'rb') as f:
        return hashlib.sha256(f.read()).hexdigest()[:12]


def parse_bool(value: str) -> bool:
    """Parse a boolean from CSV string."""
    return value.strip().lower() in ('true', '1', 'yes', 'on')


def parse_optional_int(value: str) -> Optional[int]:
    """Parse optional integer."""
    if not value or value.strip() == '':
        return None
    return int(value)


def parse_number(value: str):
    """Parse an int when possible, else a float (e.g. 12.5 percent)."""
    number = float(value)
    return int(number) if number.is_integer() else number


def parse_optional_str(value: str) -> Optional[str]:
    """Parse optional string (empty = None)."""
    if not value or value.strip() == '':
        return None
    return value.strip()


def new_report() -> dict:
    return {
        "timestamp": datetime.now().isoformat(),
        "status": "pending",
        "input_files": {},
        "metrics": {},
        "warnings": [],
        "errors": []
    }


def read_rows(path: Path, name: str, required: list[str], report: dict) -> Optional[pd.DataFrame]:
    """Read a CSV as stripped strings, or None (with a report entry) if unusable."""
    if not path.exists():
        report["warnings"].append(f"{path.name} not found, no {name} loaded")
        return None

    report["input_files"][name] = {"path": str(path), "hash": get_file_hash(path)}

    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df.columns = [c.strip() for c in df.columns]
    for col in df.columns:
        df[col] = df[col].astype(str).str.strip()

    missing = [c for c in required if c not in df.columns]
    if missing:
        report["errors"].append(f"{path.name}: missing columns {', '.join(missing)}")
        return None

    return df


def row_error(report: dict, path: Path, index: int, error: Exception):
    # +2: header line plus 1-based numbering
    report["errors"].append(f"{path.name} line {index + 2}: {error}")


def load_tiers(path: Path, report: Optional[dict] = None) -> list[Tier]:
    """Load tier definitions."""
    report = report if report is not None else new_report()
    df = read_rows(path, "tiers", ["name", "slug", "discount_percent"], report)
    if df is None:
        return []

    tiers = []
    for index, row in df.iterrows():
        try:
            tiers.append(Tier(
                id=row.get('id', '') or '',
                name=row['name'],
                slug=row['slug'],
                discount_percent=parse_number(row['discount_percent']),
                min_order_value=parse_optional_int(row.get('min_order_value', '')) or 0,
                min_order_quantity=parse_optional_int(row.get('min_order_quantity', '')) or 0,
                default_moq=parse_optional_int(row.get('default_moq', '')) or 1,
                payment_terms=row.get('payment_terms', '') or 'net_30',
                description=parse_optional_str(row.get('description', '')),
                color=row.get('color', '') or '#3B82F6',
                active=parse_bool(row.get('active', '') or 'true'),
                priority=parse_optional_int(row.get('priority', '')) or 0,
            ))
        except ValueError as e:
            row_error(report, path, index, e)

    report["metrics"]["tier_rows"] = len(df)
    return tiers


def load_bulk_discounts(path: Path, report: Optional[dict] = None) -> BulkDiscountSchedule:
    """Load bulk discount rules into a schedule."""
    report = report if report is not None else new_report()
    schedule = BulkDiscountSchedule()
    df = read_rows(path, "bulk_discounts", ["item_id", "min_quantity", "discount_percent"], report)
    if df is None:
        return schedule

    for index, row in df.iterrows():
        try:
            schedule.add_rule(BulkDiscountRule(
                item_id=row['item_id'],
                min_quantity=int(row['min_quantity']),
                discount_percent=parse_number(row['discount_percent']),
                description=parse_optional_str(row.get('description', '')),
                active=parse_bool(row.get('active', '') or 'true'),
            ))
        except ValueError as e:
            row_error(report, path, index, e)

    report["metrics"]["bulk_rules"] = len(schedule)
    report["metrics"]["bulk_items"] = len(schedule.item_ids())
    return schedule


def load_moq(path: Path, report: Optional[dict] = None) -> dict[str, int]:
    """Load per-item minimum order quantities."""
    report = report if report is not None else new_report()
    df = read_rows(path, "moq", ["item_id", "moq"], report)
    if df is None:
        return {}

    moq = {}
    for index, row in df.iterrows():
        try:
            value = int(row['moq'])
            if value < 1:
                raise ConfigurationError(f"moq must be at least 1, got {value}")
            if row['item_id'] in moq:
                raise ConfigurationError(f"duplicate MOQ for item '{row['item_id']}'")
            moq[row['item_id']] = value
        except ValueError as e:
            row_error(report, path, index, e)

    report["metrics"]["moq_items"] = len(moq)
    return moq


def load_customer_tiers(path: Path, report: Optional[dict] = None) -> dict[str, str]:
    """Load customer → tier slug assignments."""
    report = report if report is not None else new_report()
    df = read_rows(path, "customer_tiers", ["customer_id", "tier_slug"], report)
    if df is None:
        return {}

    assignments = {}
    for _, row in df.iterrows():
        if row['customer_id'] and row['tier_slug']:
            assignments[row['customer_id']] = row['tier_slug']
    return assignments


@dataclass
class WholesaleData:
    """Everything loaded from the data directory."""
    catalog: TierCatalog
    schedule: BulkDiscountSchedule
    moq: dict[str, int]
    settings: Settings
    report: dict = field(default_factory=dict)

    def source(self) -> InMemoryCatalogSource:
        return InMemoryCatalogSource(moq=self.moq, schedule=self.schedule)

    def engine(self) -> PricingEngine:
        return PricingEngine(
            tier_resolver=self.catalog.resolve_tier,
            source=self.source(),
            settings=self.settings,
        )


def load_wholesale_data(settings: Optional[Settings] = None) -> WholesaleData:
    """
    Load all wholesale configuration from the settings' data directory.

    Returns:
        WholesaleData whose report has status "success" or "partial"
    """
    settings = settings or get_settings()
    report = new_report()

    catalog = TierCatalog()
    for tier in load_tiers(settings.tiers_csv, report):
        try:
            catalog.create_tier(tier)
        except ConfigurationError as e:
            report["errors"].append(f"tier '{tier.slug}': {e}")

    schedule = load_bulk_discounts(settings.bulk_discounts_csv, report)
    moq = load_moq(settings.moq_csv, report)

    assigned = 0
    for customer_id, slug in load_customer_tiers(settings.customer_tiers_csv, report).items():
        try:
            catalog.assign_tier(customer_id, slug)
            assigned += 1
        except NotFoundError:
            report["warnings"].append(f"customer {customer_id} assigned to unknown tier '{slug}'")

    report["metrics"]["tiers"] = len(catalog.list_tiers())
    report["metrics"]["assigned_customers"] = assigned
    report["status"] = "partial" if report["errors"] else "success"

    for warning in report["warnings"]:
        logger.warning(warning)
    for error in report["errors"]:
        logger.error(error)
    logger.info(
        "Loaded {} tiers, {} bulk rules, {} MOQs from {}",
        report["metrics"]["tiers"], len(schedule), len(moq), settings.data_dir
    )

    return WholesaleData(catalog=catalog, schedule=schedule, moq=moq, settings=settings, report=report)
