"""
Shipping resolution and pricing engine.

Resolves shipping groups for a destination through a location containment
hierarchy, merges delivery-time estimates and prices shipments with
incremental per-item rates across currencies.
"""

__version__ = "0.1.0"
