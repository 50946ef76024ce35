"""
Centralized settings and path configuration for the wholesale pricing engine.
"""
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional


DATA_DIR_ENV = "WHOLESALE_PRICING_DATA_DIR"
LOG_LEVEL_ENV = "WHOLESALE_PRICING_LOG_LEVEL"

CART_THRESHOLD_MODES = ("off", "warn", "error")


def get_seed_dir() -> Path:
    """Directory holding the packaged seed CSVs."""
    return Path(__file__).resolve().parent.parent / 'data' / 'seed'


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Input files
    data_dir: Path
    tiers_csv: Path
    bulk_discounts_csv: Path
    moq_csv: Path
    customer_tiers_csv: Path

    # Per-item fetch pool
    max_workers: int = 8

    # Cart recomputation coalescing window
    debounce_seconds: float = 0.3

    # Validation behaviour (see DESIGN.md for the decisions behind these)
    enforce_moq_without_tier: bool = False
    enforce_cart_thresholds: str = "off"
    suggest_bulk_upgrades: bool = True

    log_level: str = "INFO"

    def __post_init__(self):
        if self.enforce_cart_thresholds not in CART_THRESHOLD_MODES:
            raise ValueError(
                f"enforce_cart_thresholds must be one of {CART_THRESHOLD_MODES}, "
                f"got {self.enforce_cart_thresholds!r}"
            )
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")

    @classmethod
    def load(cls, data_dir: Optional[Path] = None, **overrides) -> 'Settings':
        """Load settings, resolving data files under data_dir."""
        root = Path(data_dir or os.environ.get(DATA_DIR_ENV) or get_seed_dir())
        overrides.setdefault("log_level", os.environ.get(LOG_LEVEL_ENV, "INFO"))

        return cls(
            data_dir=root,
            tiers_csv=root / 'tiers.csv',
            bulk_discounts_csv=root / 'bulk_discounts.csv',
            moq_csv=root / 'moq.csv',
            customer_tiers_csv=root / 'customer_tiers.csv',
            **overrides,
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings
