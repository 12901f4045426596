"""Internal modules for callback-fetch.

These modules back the public clients and are not a stable API.

Modules:
    dispatch - Request composition, outcome routing and data model
    http - Shared HTTP client configuration
"""
