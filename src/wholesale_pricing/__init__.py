"""
Wholesale Pricing Package

Tiered wholesale pricing and cart validation for the commerce platform.
Prices order lines using Retail → Tier → Bulk discount pipeline and checks
minimum order quantities before checkout.
"""

__version__ = "1.0.0"
