"""
IT Asset Inventory toolkit service package.

This package holds the reusable logic behind the inventory console's
import, export and reporting flows, plus the client used to talk to the
inventory REST backend. It provides:

- app.main: API surface for record queries, imports, exports, reports and
  form validation, plus health and metrics.
- app.rules: Filter/sort rule model and the record evaluator.
- app.imports: File parsing, column mapping and row validation.
- app.exports: Excel/CSV/PDF/JSON writers and style presets.
- app.reports: Grouping and aggregation over evaluated records.
- app.assignments: Assignment eligibility and return checks.
- app.access: Roles, route guard table and field validators.
- app.client: Session and HTTP client for the REST backend.

Guidelines:
- The service is stateless; records arrive with each request.
- Evaluator and validators report problems as data, never by raising.
"""
