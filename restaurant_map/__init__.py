"""
Restaurant map API.

Bounded map queries over restaurants and restaurant-week events, with
per-meal price and category filters and premium gating for combined filters.
"""
