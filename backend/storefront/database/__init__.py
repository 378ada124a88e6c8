"""
Database package: declarative base, async engine/session management and ORM
models for users, products, orders and order items.

Import submodules explicitly to avoid circular imports between models and
services.
"""

__all__ = []
