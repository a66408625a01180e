"""
Geospatial layer.

Responsibilities:
- Point and rectangle types shared by the index and the API.
- Great-circle distance helpers.
- The spatial index contract and its in-memory implementation.
"""
