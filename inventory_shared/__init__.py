"""
Shared utilities for the IT Asset Inventory toolkit.

This package aggregates common building blocks consumed by the toolkit
service and the API client:

- config: Settings via pydantic-settings (``INVENTORY_`` environment prefix)
- logging: Structured logging with request/user correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- retry: Retry decorator for backend calls
- base_service: FastAPI service scaffolding (health, metrics, error handlers)

Do not import from service_inventory into this package.
"""
