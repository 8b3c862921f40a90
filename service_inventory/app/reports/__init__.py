"""
Reports package.

Groups filtered records and computes aggregations (count, sum, avg, min,
max, distinct) per group for the custom report builder.

Modules of interest:
- builder: Report config models and the aggregation logic.
"""
