"""
Document storage.

Responsibilities:
- The document store contract and its in-memory implementation.
- Loading the bundled seed catalogue.
- Process-wide store / index instances used by the API.
"""
