"""
Client package for the inventory REST backend.

Modules of interest:
- session: Session object and its persistence stores.
- api_client: Async HTTP client with bearer auth, envelope handling,
  retries and the single-flight guard.
- resources: Thin per-resource clients (employees, hardware, software,
  assignments, users, activities, auth).
"""
