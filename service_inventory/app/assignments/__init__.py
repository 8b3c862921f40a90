"""
Assignment rules package.

Checks run before an asset is handed to an employee (asset availability,
per-employee limits, software licence usage, duplicate assignments) and
before it is taken back (timing, condition issues, documentation, the
condition score that decides whether a manager has to approve).

Modules of interest:
- eligibility: Pre-assignment checks.
- returns: Return checks and condition scoring.
"""
