"""Storefront orders service: multi-role e-commerce order workflow API."""

__version__ = "1.0.0"
