"""
Restaurant catalogue and map queries.

Responsibilities:
- Evaluate per-meal price and category filters.
- Combine spatial index pages with document fetches into bounded queries.
- Gate multi-filter queries behind the premium entitlement.
- Keep the spatial index in sync with restaurant writes.
"""
