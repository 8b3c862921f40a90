"""
Import package.

Turns uploaded CSV/Excel files into validated records for one of the
inventory record types. The flow is preview (headers, sample rows,
detected type, suggested column mapping, issues) followed by validation
of every mapped row against the type's import configuration.

Modules of interest:
- schemas: Import configurations per record type.
- mapping: Header matching and data type detection.
- parser: CSV and .xlsx readers.
- service: Preview, row validation and result models.
"""
