"""
Access control and validation package.

Holds the role model, the route guard table that maps console and API
paths to the roles allowed to open them, the status dictionaries used by
forms and imports, and the field validators (regex checks, password
strength scoring, per-form validators).

Modules of interest:
- permissions: Roles, role hierarchy and the default permission matrix.
- routes: Route guard table and lookup helpers.
- constants: Status dictionaries and limits.
- validators: Field and form validators.
- tokens: Bearer token verification.
- guard: Token and route-table check applied to every API request.
"""
